import pytest

from gatewaykit.metadata import CallContext, Metadata, ServerMetadata, join, pairs


def test_pairs_lowercases_keys():
    md = pairs("Key1", "val1")
    assert md["key1"] == ["val1"]
    assert md["KEY1"] == ["val1"]
    assert list(md) == ["key1"]


def test_pairs_accumulates_repeated_keys():
    md = pairs("error", "message:err message", "error", "fields:x")
    assert md["error"] == ["message:err message", "fields:x"]


def test_pairs_odd_arguments():
    with pytest.raises(ValueError):
        pairs("key1")


def test_join_concatenates_and_skips_none():
    a = pairs("key2", "val2")
    b = pairs("key2", "other", "key1", "val1")
    joined = join(a, None, b)
    assert joined["key2"] == ["val2", "other"]
    assert joined["key1"] == ["val1"]
    assert a["key2"] == ["val2"]


def test_join_keeps_empty_keys():
    md = Metadata({"field-paths": None})
    joined = join(md)
    assert "field-paths" in joined
    assert joined["field-paths"] == []


def test_append_without_values_is_noop():
    md = Metadata()
    md.append("k")
    assert "k" not in md
    md.append("K", "a", "b")
    assert md["k"] == ["a", "b"]


def test_copy_is_independent():
    md = pairs("k", "v")
    dup = md.copy()
    dup.append("k", "w")
    assert md["k"] == ["v"]
    assert dup["k"] == ["v", "w"]


def test_string_value_becomes_list_and_equality():
    md = Metadata({"Query_URL": "http://app.com"})
    assert md == {"query_url": ["http://app.com"]}


def test_delete():
    md = pairs("a", "1", "b", "2")
    del md["A"]
    assert dict(md) == {"b": ["2"]}


def test_call_context_set_header_merges():
    ctx = CallContext()
    ctx.set_header(pairs("grpcgateway-status-code", "CREATED"))
    ctx.set_header(pairs("Location", "/r/1", "grpcgateway-status-code", "UPDATED"))
    assert ctx.header["grpcgateway-status-code"] == ["CREATED", "UPDATED"]
    assert ctx.header["location"] == ["/r/1"]


def test_call_context_set_trailer_merges():
    ctx = CallContext()
    ctx.set_trailer(pairs("success-1", "message:deleted 1 item"))
    ctx.set_trailer(pairs("success-5", "message:created 1 item"))
    assert dict(ctx.trailer) == {
        "success-1": ["message:deleted 1 item"],
        "success-5": ["message:created 1 item"],
    }
    assert len(ctx.header) == 0


def test_server_metadata_defaults_are_separate():
    first, second = ServerMetadata(), ServerMetadata()
    first.header_md.append("x", "1")
    assert len(second.header_md) == 0
    assert first.header_md["x"] == ["1"]