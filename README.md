# gatewaykit

Building blocks for a REST gateway that sits in front of RPC services. It
models RPC call metadata, looks up and matches headers, carries error and
success messages in trailer metadata, fills collection operator fields of
request objects, and records which JSON fields a request actually sent.

The package has no dependencies outside the standard library.

## Installation

```
pip install gatewaykit
```

To run the tests as well:

```
pip install "gatewaykit[test]"
pytest
```

## Modules

- `gatewaykit.wire` holds small HTTP building blocks:
  - `Headers` is a case-insensitive, multi-valued header collection with `add`, `set`, `get`, `values` and `delete`.
  - `Request` has a method, URL, body and headers.
  - `ResponseWriter` records the status, headers and body. It has `write_header`, `write` and `flush`.
  - `JSONMarshaler` writes compact JSON. Its `content_type()` is `application/json` and its `delimiter()` is a newline.
  - `canonical_header_key` turns `content-type` into `Content-Type`.
- `gatewaykit.metadata` holds RPC metadata:
  - `Metadata` maps lower-case keys to lists of strings.
  - `pairs` builds metadata from alternating keys and values, and raises `ValueError` on an odd count.
  - `join` merges several metadata mappings.
  - `ServerMetadata` holds `header_md` and `trailer_md`.
  - `CallContext` holds the incoming and outgoing metadata and the server metadata. It also collects what a handler sets with `set_header` and `set_trailer`.
- `gatewaykit.header` does metadata lookup and header matching:
  - `header` and `header_n` look a key up in the incoming and outgoing metadata. They try the plain key and the `grpcgateway-`-prefixed key, and return `None` when nothing suitable is found.
  - The header matchers are `default_header_matcher`, `extended_default_header_matcher`, `chain_header_matcher`, `atlas_default_header_matcher`, `geo_ip_header_matcher`, `request_id_header_matcher`, `tracing_header_matcher` and `prefix_outgoing_header_matcher`. A matcher returns the key to use, or `None` to drop the header.
  - `get_geo_headers` and `get_xb3_headers` list the header names involved.
  - `forward_response_server_metadata`, `forward_response_trailer_header` and `forward_response_trailer` copy server metadata into a `ResponseWriter`.
- `gatewaykit.messages` carries error and success messages in trailer metadata:
  - `MessageWithFields` is an exception with a `message` and `fields`.
  - `new_with_fields` builds one from alternating keys and values.
  - `with_error`, `with_success` and `new_response_error` store messages in a `CallContext`'s trailer.
  - `errors_and_success_from_context` reads them back from the server trailer metadata. It returns the list of errors (the primary error first), the latest success message, and whether a primary error was set.
- `gatewaykit.operator` holds the collection operator query keys:
  - The keys are `_filter`, `_order_by`, `_fields`, `_limit`, `_offset` and `_page_token`.
  - `metadata_annotator` stores the request URL under `query_url`.
  - `DEFAULT_QUERY_FILTER` is the set of query parameters the gateway skips, and `query_filter_with` extends it.
- `gatewaykit.middleware` works on dataclass requests and responses:
  - `set_collection_ops` stores an operator object in every field declared with its type.
  - `get_collection_op`, `unset_op` and `get_and_unset_op` read such a field and optionally clear it.
  - Objects that are not dataclass instances raise `TypeError`.
- `gatewaykit.field_presence` tracks which fields a request sent:
  - `new_presence_annotator` turns a JSON request body into `field-paths` metadata. There is one entry per object, or one per element of an `objects` list.
  - `field_mask_from_paths` builds a `FieldMask` from one entry, or a list of masks from several.
  - `presence_client_interceptor` fills a request's `FieldMask` (or `list[FieldMask]`) field from that metadata, then calls the invoker.

## Examples

Header matching:

```python
from gatewaykit.header import atlas_default_header_matcher

match = atlas_default_header_matcher()
assert match("X-Geo-Org") == "X-Geo-Org"
assert match("Failed-Header") is None
```

Field presence:

```python
from gatewaykit.field_presence import FieldMask, field_mask_from_paths, new_presence_annotator
from gatewaykit.wire import Request

annotate = new_presence_annotator("POST")
md = annotate(None, Request(method="POST", body=b'{"one": {"two": "a"}, "four": 5}'))
assert md["field-paths"] == ["Four$One.Two"]
assert field_mask_from_paths(md["field-paths"]) == FieldMask(["Four", "One.Two"])
```

Success messages in trailers:

```python
from gatewaykit.messages import errors_and_success_from_context
from gatewaykit.metadata import CallContext, ServerMetadata, pairs

ctx = CallContext(server_metadata=ServerMetadata(
    trailer_md=pairs("success-1", "message:deleted 1 item",
                     "success-5", "message:created 1 item")))
errors, success, override = errors_and_success_from_context(ctx)
assert errors == [] and success == {"message": "created 1 item"} and not override
```

## What it does not do

- It does not map RPC status codes to HTTP statuses.
- It does not write REST error bodies.
- It does not wrap or stream response messages into JSON envelopes.
- It does not serve HTTP or connect to RPC servers. The `Request`, `ResponseWriter` and `CallContext` objects are supplied and inspected by the caller.