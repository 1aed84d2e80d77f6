import json
from dataclasses import dataclass

import pytest

from gatewaykit.wire import (
    Headers,
    JSONMarshaler,
    Request,
    ResponseWriter,
    canonical_header_key,
)


def test_canonical_header_key_pins():
    assert canonical_header_key("content-type") == "Content-Type"
    assert (
        canonical_header_key("grpc-metadata-grpcgateway-status-code")
        == "Grpc-Metadata-Grpcgateway-Status-Code"
    )


def test_canonical_header_key_invalid_unchanged():
    assert canonical_header_key("bad key") == "bad key"
    assert canonical_header_key("") == ""


@pytest.mark.parametrize("key", ["x-b3-traceid", "X-GEO-ORG", "Request-Id", "a"])
def test_canonical_header_key_idempotent(key):
    once = canonical_header_key(key)
    assert canonical_header_key(once) == once
    assert once.lower() == key.lower()


def test_headers_add_is_case_insensitive():
    h = Headers()
    h.add("x-a", "1")
    h.add("X-A", "2")
    assert h.values("x-A") == ["1", "2"]
    assert h.get("X-a") == "1"
    assert list(h) == [canonical_header_key("x-a")]


def test_headers_set_replaces():
    h = Headers()
    h.add("Trailer", "one")
    h.add("Trailer", "two")
    h.set("trailer", "three")
    assert h.values("Trailer") == ["three"]


def test_headers_delete_and_missing():
    h = Headers({"Content-Type": "text/plain"})
    assert "content-type" in h
    h.delete("CONTENT-TYPE")
    assert "content-type" not in h
    assert h.get("content-type") == ""
    assert h.values("content-type") == []
    assert len(h) == 0


def test_headers_values_returns_copy():
    h = Headers()
    h.add("k", "v")
    h.values("k").append("other")
    assert h.values("k") == ["v"]


def test_request_defaults_hold_body():
    req = Request(method="POST", body=b"{}")
    assert req.method == "POST"
    assert req.body == b"{}"
    assert len(req.headers) == 0


def test_response_writer_write_sets_default_status():
    rw = ResponseWriter()
    assert rw.write("abc") == 3
    rw.write(b"def")
    assert rw.status == 200
    assert rw.wrote_header
    assert rw.body == b"abcdef"


def test_response_writer_first_status_wins():
    rw = ResponseWriter()
    rw.write_header(201)
    rw.write_header(500)
    rw.write(b"x")
    assert rw.status == 201


def test_response_writer_flush():
    rw = ResponseWriter()
    rw.write_header(206)
    rw.flush()
    assert rw.flushed
    assert rw.status == 206


def test_marshaler_content_type_and_delimiter():
    m = JSONMarshaler()
    assert m.content_type() == "application/json"
    assert m.delimiter() == b"\n"


def test_marshaler_round_trip():
    value = {"error": [{"message": "simple text error", "code": 500}], "ok": True}
    assert json.loads(JSONMarshaler().marshal(value)) == value


@dataclass
class _User:
    name: str
    age: int


def test_marshaler_encodes_dataclasses():
    data = JSONMarshaler().marshal({"users": [_User("Poe", 209)]})
    assert json.loads(data) == {"users": [{"name": "Poe", "age": 209}]}


def test_marshaler_rejects_unknown_objects():
    with pytest.raises(TypeError):
        JSONMarshaler().marshal({"x": object()})