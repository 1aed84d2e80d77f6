from gatewaykit.operator import (
    DEFAULT_QUERY_FILTER,
    QUERY_URL_KEY,
    metadata_annotator,
    query_filter_with,
)
from gatewaykit.wire import Request


def test_metadata_annotator_stores_url():
    url = "http://app.com?_limit=20&_offset=10"
    md = metadata_annotator(None, Request(url=url))
    assert md[QUERY_URL_KEY] == [url]
    assert list(md) == ["query_url"]


def test_extended_filter_holds_collection_keys():
    extended = query_filter_with(["custom"])
    for key in ("_limit", "_offset", "_page_token", "_order_by", "_fields", "_filter"):
        assert (key,) in extended
    assert ("paging",) in extended
    assert ("custom",) in extended


def test_query_filter_with_extends_default():
    extended = query_filter_with(["custom", "other"])
    assert DEFAULT_QUERY_FILTER < extended
    assert extended - DEFAULT_QUERY_FILTER == {("custom",), ("other",)}


def test_query_filter_with_nothing_is_default():
    assert query_filter_with([]) == DEFAULT_QUERY_FILTER