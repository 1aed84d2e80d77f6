"""Field presence: record which JSON fields a request carried, and fill field masks from them."""

from __future__ import annotations

import json
import types
import typing
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Union

from .header import header_n
from .metadata import CallContext, Metadata
from .wire import Request

FIELD_PRESENCE_META_KEY = "field-paths"
PATHS_SEPARATOR = "$"
BULK_FIELD = "objects"


@dataclass
class FieldMask:
    """A set of dotted field paths naming the fields present in a message."""

    paths: list[str] = field(default_factory=list)


def _camel(name: str) -> str:
    """Turn a snake_case JSON key into a CamelCase field name."""
    if not name:
        return name
    parts = name.split("_")
    out = []
    if parts[0] == "":
        out.append("X")
        parts = parts[1:]
    for part in parts:
        if part:
            out.append(part[0].upper() + part[1:])
    return "".join(out)


def _is_leaf(path: tuple[str, ...], node: Any) -> bool:
    if isinstance(node, dict):
        return not node and bool(path)
    return bool(path)


def _roots(root: Any) -> list[Any]:
    if isinstance(root, dict):
        bulk = root.get(BULK_FIELD)
        if isinstance(bulk, list):
            return bulk
    return [root]


def _leaf_paths(root: Any) -> Iterable[str]:
    queue: deque[tuple[tuple[str, ...], Any]] = deque([((), root)])
    while queue:
        path, node = queue.popleft()
        if _is_leaf(path, node):
            yield ".".join(path)
        elif isinstance(node, dict):
            queue.extend((path + (_camel(key),), value) for key, value in node.items())


def new_presence_annotator(
    *methods: str,
) -> Callable[[CallContext | None, Request | None], Metadata | None]:
    """Return an annotator that stores the paths of the fields in a JSON body as metadata.

    Only requests whose method is one of ``methods`` are annotated. A bulk body
    (an object whose "objects" field is a list) yields one entry per element.
    """

    def annotator(ctx: CallContext | None, req: Request | None) -> Metadata | None:
        if req is None or req.method not in methods:
            return None

        md = Metadata()
        if not req.body:
            md[FIELD_PRESENCE_META_KEY] = None
            return md

        try:
            root = json.loads(req.body)
        except (ValueError, UnicodeDecodeError):
            return None

        for item in _roots(root):
            entry = PATHS_SEPARATOR.join(_leaf_paths(item))
            if entry:
                md.append(FIELD_PRESENCE_META_KEY, entry)
        return md

    return annotator


def field_mask_from_paths(paths: list[str]) -> FieldMask | list[FieldMask]:
    """Build a field mask from one entry, or a list of masks from several entries."""
    if not paths:
        return FieldMask()
    if len(paths) > 1:
        return [FieldMask(p.split(PATHS_SEPARATOR)) for p in paths]
    return FieldMask(paths[0].split(PATHS_SEPARATOR))


def _unwrap_optional(hint: Any) -> Any:
    origin = typing.get_origin(hint)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _unwrap_optional_text(text: str) -> str:
    text = text.replace(" ", "").replace("'", "").replace('"', "")
    for prefix in ("typing.Optional[", "Optional["):
        if text.startswith(prefix) and text.endswith("]"):
            return text[len(prefix):-1]
    parts = [part for part in text.split("|") if part != "None"]
    return parts[0] if len(parts) == 1 else text


def _is_mask_name(text: str) -> bool:
    return text.rsplit(".", 1)[-1] == "FieldMask"


def _is_single_mask(hint: Any) -> bool:
    if isinstance(hint, str):
        return _is_mask_name(_unwrap_optional_text(hint))
    return _unwrap_optional(hint) is FieldMask


def _is_mask_list(hint: Any) -> bool:
    if isinstance(hint, str):
        inner = _unwrap_optional_text(hint)
        for prefix in ("list[", "List[", "typing.List["):
            if inner.startswith(prefix) and inner.endswith("]"):
                return _is_mask_name(inner[len(prefix):-1])
        return False
    inner = _unwrap_optional(hint)
    return typing.get_origin(inner) is list and typing.get_args(inner) == (FieldMask,)


def _populate(ctx: CallContext | None, req: Any, override: bool) -> None:
    if req is None or ctx is None:
        return
    paths = header_n(ctx, FIELD_PRESENCE_META_KEY, -1)
    if paths is None:
        return
    if not is_dataclass(req) or isinstance(req, type):
        return

    mask = field_mask_from_paths(paths)
    wanted = _is_mask_list if isinstance(mask, list) else _is_single_mask

    for f in fields(req):
        if wanted(f.type):
            if override or getattr(req, f.name) is None:
                setattr(req, f.name, mask)
            return


def presence_client_interceptor(override_field_mask: bool = False) -> Callable[..., Any]:
    """Return a client interceptor that fills the request's field mask from call metadata.

    The first field typed FieldMask (or list[FieldMask] for bulk requests) is
    set when it is None, or always when ``override_field_mask`` is true. The
    invoker is then called and its result returned.
    """

    def interceptor(
        ctx: CallContext | None,
        method: str,
        req: Any,
        reply: Any,
        invoker: Callable[..., Any],
        *opts: Any,
    ) -> Any:
        try:
            _populate(ctx, req, override_field_mask)
        finally:
            result = invoker(ctx, method, req, reply, *opts)
        return result

    return interceptor