"""Error and success messages carried in trailer metadata and read back for responses."""

from __future__ import annotations

import json
import logging
import re
import threading
import time
from collections.abc import Mapping
from typing import Any

from .metadata import CallContext, Metadata, pairs

_log = logging.getLogger(__name__)

_UINT32 = 1 << 32
_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class MessageWithFields(Exception):
    """An error or success message together with arbitrary extra fields."""

    def __init__(self, message: str, fields: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.fields = fields

    def __str__(self) -> str:
        return self.message


class _Counter:
    """Monotonic-ish key counter that does not reveal how many messages were sent."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = time.time_ns() % 1_000_000_000

    def next(self) -> int:
        with self._lock:
            self._value = (self._value + time.time_ns() % 100 + 1) % _UINT32
            return self._value


_counter = _Counter()


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _unquote(text: str) -> str | None:
    if len(text) >= 2 and text[0] == text[-1] == "`":
        return text[1:-1]
    try:
        value = json.loads(text)
    except ValueError:
        return None
    return value if isinstance(value, str) else None


def _encode_fields(fields: Mapping[str, Any]) -> str:
    try:
        return json.dumps(fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return ""


def _merge_json(target: dict[str, Any], text: str | None) -> None:
    if text is None:
        return
    try:
        value = json.loads(text)
    except ValueError:
        return
    if isinstance(value, dict):
        target.update(value)


def _decode_entry(values: list[str]) -> dict[str, Any]:
    entry: dict[str, Any] = {}
    for value in values:
        kind, sep, rest = value.partition(":")
        if not sep:
            continue
        if kind == "fields":
            _merge_json(entry, _unquote(rest))
        elif kind == "message":
            entry["message"] = rest
    return entry


def _parse_int32(text: str) -> int | None:
    if not _INT_PATTERN.fullmatch(text):
        return None
    number = int(text)
    return number if _INT32_MIN <= number <= _INT32_MAX else None


def new_with_fields(message: str, *kvpairs: Any) -> MessageWithFields:
    """Build a message whose fields come from alternating keys and values.

    A non-string key stops the scan; a trailing key without a value is ignored.
    """
    fields: dict[str, Any] = {}
    for key, value in zip(kvpairs[::2], kvpairs[1::2]):
        if not isinstance(key, str):
            break
        fields[key] = value
    return MessageWithFields(message, fields)


def _fields_metadata(key: str, message: str, fields: Mapping[str, Any] | None) -> Metadata:
    md = pairs(key, f"message:{message}")
    if fields is not None:
        md.append(key, f"fields:{_quote(_encode_fields(fields))}")
    return md


def with_error(ctx: CallContext, err: BaseException) -> None:
    """Save an error (and its fields, if it has any) into the call's trailer metadata."""
    key = f"error-{_counter.next()}"
    fields = err.fields if isinstance(err, MessageWithFields) else None
    ctx.set_trailer(_fields_metadata(key, str(err), fields))


def with_success(ctx: CallContext, msg: MessageWithFields) -> None:
    """Save a success message and its fields into the call's trailer metadata."""
    key = f"success-{_counter.next()}"
    ctx.set_trailer(_fields_metadata(key, str(msg), msg.fields))


def new_response_error(ctx: CallContext, msg: str, *kvpairs: Any) -> Exception:
    """Record the primary response error with extra fields and return an error for it.

    Keys that are not strings are skipped together with their values.
    """
    md = pairs("error", f"message:{msg}")
    if kvpairs:
        fields: dict[str, Any] = {}
        for key, value in zip(kvpairs[::2], kvpairs[1::2]):
            if not isinstance(key, str):
                _log.info("Key value for error details must be a string")
                continue
            fields[key] = value
        md.append("error", f"fields:{_quote(_encode_fields(fields))}")
    ctx.set_trailer(md)
    return RuntimeError(msg)


def errors_and_success_from_context(
    ctx: CallContext | None,
) -> tuple[list[dict[str, Any]], dict[str, Any] | None, bool]:
    """Read errors and the latest success message from the server trailer metadata.

    Returns the list of errors (the primary "error" entry first, if any), the
    success entry or None, and whether a primary error overrides the default one.
    """
    md = ctx.server_metadata if ctx is not None else None
    if md is None:
        return [], None, False

    errors: list[dict[str, Any]] = []
    primary: dict[str, Any] | None = None
    override = False
    success: dict[str, Any] | None = None
    latest = -1

    for key, values in md.trailer_md.items():
        if key == "error":
            primary = _decode_entry(values)
            override = True
        if key.startswith("error-"):
            errors.append(_decode_entry(values))
        if key.startswith("success-"):
            number = _parse_int32(key[len("success-"):])
            if number is not None:
                # later messages win; a small number after a huge one means wraparound
                if number > latest or (number < 1 << 12 and latest > 1 << 28):
                    latest = number
                else:
                    continue
            success = _decode_entry(values)

    if override and primary is not None:
        errors.insert(0, primary)
    return errors, success, override