"""HTTP-side primitives: headers, requests, a recording response writer and a JSON marshaler."""

from __future__ import annotations

import dataclasses
import json
import string
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

_TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")


def canonical_header_key(key: str) -> str:
    """Return the canonical MIME form of a header key ("content-type" -> "Content-Type").

    Keys holding characters that are not valid in a header token are returned unchanged.
    """
    if not key or any(ch not in _TOKEN_CHARS for ch in key):
        return key
    out = []
    upper = True
    for ch in key:
        if upper and "a" <= ch <= "z":
            ch = ch.upper()
        elif not upper and "A" <= ch <= "Z":
            ch = ch.lower()
        out.append(ch)
        upper = ch == "-"
    return "".join(out)


class Headers:
    """A multi-valued, case-insensitive collection of HTTP headers."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, list[str]] = {}
        for key, value in (initial or {}).items():
            values = [value] if isinstance(value, str) else list(value)
            for item in values:
                self.add(key, item)

    def add(self, key: str, value: str) -> None:
        """Append a value to the values of ``key``."""
        self._data.setdefault(canonical_header_key(key), []).append(value)

    def set(self, key: str, value: str) -> None:
        """Replace all values of ``key`` with a single value."""
        self._data[canonical_header_key(key)] = [value]

    def get(self, key: str) -> str:
        """Return the first value of ``key``, or an empty string."""
        values = self._data.get(canonical_header_key(key))
        return values[0] if values else ""

    def values(self, key: str) -> list[str]:
        """Return every value of ``key`` (a copy)."""
        return list(self._data.get(canonical_header_key(key), []))

    def delete(self, key: str) -> None:
        """Remove ``key`` and all its values, if present."""
        self._data.pop(canonical_header_key(key), None)

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for key, values in self._data.items():
            yield key, list(values)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and canonical_header_key(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Headers({self._data!r})"


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str = "GET"
    url: str = ""
    body: bytes = b""
    headers: Headers = field(default_factory=Headers)


class ResponseWriter:
    """Collects the status, headers and body written for an HTTP response."""

    def __init__(self) -> None:
        self.headers = Headers()
        self.status = 200
        self.wrote_header = False
        self.flushed = False
        self._body = bytearray()

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def write_header(self, status: int) -> None:
        """Record the status code; only the first call has any effect."""
        if self.wrote_header:
            return
        self.status = status
        self.wrote_header = True

    def write(self, data: bytes | str) -> int:
        """Append data to the body, sending a 200 status first if none was sent."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not self.wrote_header:
            self.write_header(200)
        self._body.extend(data)
        return len(data)

    def flush(self) -> None:
        if not self.wrote_header:
            self.write_header(200)
        self.flushed = True


def _to_jsonable(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


class JSONMarshaler:
    """Marshals values to compact JSON."""

    def content_type(self) -> str:
        return "application/json"

    def marshal(self, value: Any) -> bytes:
        """Encode ``value`` as JSON; raises TypeError for values that cannot be encoded."""
        return json.dumps(
            value, default=_to_jsonable, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")

    def delimiter(self) -> bytes:
        """Record separator used between streamed messages."""
        return b"\n"