"""Reading and writing collection operator fields of request and response objects."""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Iterator
from typing import Any, Union

_WRAPPER_PREFIXES = ("typing.Optional[", "Optional[", "typing.Union[", "Union[")


def _matches_text(hint: str, op_type: type) -> bool:
    text = hint.replace(" ", "").strip("'\"")
    for prefix in _WRAPPER_PREFIXES:
        if text.startswith(prefix) and text.endswith("]"):
            text = text[len(prefix):-1]
            break
    parts = [
        part.strip("'\"")
        for part in text.replace(",", "|").split("|")
        if part.strip("'\"") not in ("None", "")
    ]
    return len(parts) == 1 and parts[0].rsplit(".", 1)[-1] == op_type.__name__


def _matches(hint: Any, op_type: type) -> bool:
    if hint is op_type:
        return True
    if isinstance(hint, str):
        return _matches_text(hint, op_type)
    origin = typing.get_origin(hint)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        return args == [op_type]
    return False


def _require_struct(obj: Any, role: str) -> None:
    if obj is None:
        raise TypeError(f"{role} is None")
    if not dataclasses.is_dataclass(obj) or isinstance(obj, type):
        raise TypeError(f"{role} value is not a struct - {type(obj).__name__}")


def _matching_fields(obj: Any, op_type: type) -> Iterator[str]:
    for f in dataclasses.fields(obj):
        if _matches(f.type, op_type):
            yield f.name


def _assign(obj: Any, name: str, value: Any) -> None:
    try:
        setattr(obj, name, value)
    except dataclasses.FrozenInstanceError as err:
        raise TypeError(
            f"operation field {name} in {type(obj).__name__} cannot be set"
        ) from err


def set_collection_ops(req: Any, op: Any) -> None:
    """Store ``op`` in every field of ``req`` declared with the type of ``op``."""
    _require_struct(req, "request")
    for name in _matching_fields(req, type(op)):
        _assign(req, name, op)


def get_and_unset_op(res: Any, op_type: type, unset: bool) -> tuple[str | None, Any]:
    """Find the field of ``res`` declared with ``op_type``.

    Returns the field name and its value (None for either when there is no
    such field or it is empty); with ``unset`` the field is cleared.
    """
    _require_struct(res, "response")
    if not isinstance(op_type, type):
        raise TypeError(f"operator is not a type - {op_type!r}")

    field_name: str | None = None
    value: Any = None
    for name in _matching_fields(res, op_type):
        current = getattr(res, name)
        if current is not None:
            value = current
        field_name = name
        if unset:
            _assign(res, name, None)
    return field_name, value


def get_collection_op(res: Any, op_type: type) -> Any:
    """Return the value of the ``op_type`` field of ``res``, or None."""
    return get_and_unset_op(res, op_type, False)[1]


def unset_op(res: Any, op_type: type) -> Any:
    """Return the value of the ``op_type`` field of ``res`` and clear the field."""
    return get_and_unset_op(res, op_type, True)[1]