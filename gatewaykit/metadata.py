"""gRPC-style metadata: lower-cased keys mapping to lists of string values."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any


class Metadata(MutableMapping):
    """A mapping of lower-case keys to lists of string values."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, list[str]] = {}
        for key, value in (data or {}).items():
            self[key] = value

    def __getitem__(self, key: str) -> list[str]:
        return self._data[key.lower()]

    def __setitem__(self, key: str, value: Iterable[str] | str | None) -> None:
        if value is None:
            values: list[str] = []
        elif isinstance(value, str):
            values = [value]
        else:
            values = list(value)
        self._data[key.lower()] = values

    def __delitem__(self, key: str) -> None:
        self._data.pop(key.lower())

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Metadata({self._data!r})"

    def append(self, key: str, *values: str) -> None:
        """Add values to ``key``; nothing happens when no values are given."""
        if not values:
            return
        self._data.setdefault(key.lower(), []).extend(values)

    def copy(self) -> Metadata:
        return Metadata({key: list(values) for key, values in self._data.items()})


def pairs(*kv: str) -> Metadata:
    """Build metadata from alternating keys and values."""
    if len(kv) % 2:
        raise ValueError(f"pairs got an odd number of arguments: {len(kv)}")
    md = Metadata()
    for key, value in zip(kv[::2], kv[1::2]):
        md.append(key, value)
    return md


def join(*mds: Mapping[str, Iterable[str]] | None) -> Metadata:
    """Merge several metadata mappings, concatenating the values of shared keys."""
    out = Metadata()
    for md in mds:
        if md is None:
            continue
        for key, values in md.items():
            out[key] = out.get(key, []) + list(values)
    return out


@dataclass
class ServerMetadata:
    """Header and trailer metadata received from a gRPC server."""

    header_md: Metadata = field(default_factory=Metadata)
    trailer_md: Metadata = field(default_factory=Metadata)


@dataclass
class CallContext:
    """Per-call state: incoming/outgoing metadata and what the call has set."""

    incoming: Metadata | None = None
    outgoing: Metadata | None = None
    server_metadata: ServerMetadata | None = None
    header: Metadata = field(default_factory=Metadata)
    trailer: Metadata = field(default_factory=Metadata)

    def set_header(self, md: Mapping[str, Iterable[str]]) -> None:
        """Merge ``md`` into the header metadata to send."""
        self.header = join(self.header, md)

    def set_trailer(self, md: Mapping[str, Iterable[str]]) -> None:
        """Merge ``md`` into the trailer metadata to send."""
        self.trailer = join(self.trailer, md)