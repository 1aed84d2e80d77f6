"""Collection operator query keys, the metadata annotator and the gateway query filter."""

from __future__ import annotations

from collections.abc import Iterable

from .metadata import CallContext, Metadata
from .wire import Request

FILTER_QUERY_KEY = "_filter"
SORT_QUERY_KEY = "_order_by"
FIELDS_QUERY_KEY = "_fields"
LIMIT_QUERY_KEY = "_limit"
OFFSET_QUERY_KEY = "_offset"
PAGE_TOKEN_QUERY_KEY = "_page_token"
PAGE_INFO_SIZE_META_KEY = "status-page-info-size"
PAGE_INFO_OFFSET_META_KEY = "status-page-info-offset"
PAGE_INFO_PAGE_TOKEN_META_KEY = "status-page-info-page_token"
QUERY_URL_KEY = "query_url"

_DEFAULT_FILTER_FIELDS = (
    "paging",
    LIMIT_QUERY_KEY,
    OFFSET_QUERY_KEY,
    PAGE_TOKEN_QUERY_KEY,
    "order_by",
    SORT_QUERY_KEY,
    "fields",
    FIELDS_QUERY_KEY,
    "filter",
    FILTER_QUERY_KEY,
)

# Query parameter paths the gateway should not try to parse into request fields.
DEFAULT_QUERY_FILTER: frozenset[tuple[str, ...]] = frozenset(
    (name,) for name in _DEFAULT_FILTER_FIELDS
)


def metadata_annotator(ctx: CallContext | None, req: Request) -> Metadata:
    """Return metadata holding the URL of the incoming HTTP request."""
    return Metadata({QUERY_URL_KEY: req.url})


def query_filter_with(extra_fields: Iterable[str]) -> frozenset[tuple[str, ...]]:
    """Return the default query filter extended with ``extra_fields``."""
    return DEFAULT_QUERY_FILTER | {(name,) for name in extra_fields}