"""Header lookup in call metadata, header matchers and response header forwarding."""

from __future__ import annotations

from collections.abc import Callable

from .metadata import CallContext, ServerMetadata, join
from .wire import ResponseWriter, canonical_header_key

HeaderMatcher = Callable[[str], "str | None"]

X_FORWARDED_FOR = "X-Forwarded-For"
METADATA_PREFIX = "grpcgateway-"
METADATA_HEADER_PREFIX = "Grpc-Metadata-"
METADATA_TRAILER_PREFIX = "Grpc-Trailer-"

# Outgoing header metadata keys forwarded by the prefix matcher: none.
_FORWARDED_OUTGOING: frozenset[str] = frozenset()

_PERMANENT_HTTP_HEADERS = frozenset(
    {
        "Accept",
        "Accept-Charset",
        "Accept-Language",
        "Accept-Ranges",
        "Authorization",
        "Cache-Control",
        "Content-Type",
        "Cookie",
        "Date",
        "Expect",
        "From",
        "Host",
        "If-Match",
        "If-Modified-Since",
        "If-None-Match",
        "If-Schedule-Tag-Match",
        "If-Unmodified-Since",
        "Max-Forwards",
        "Origin",
        "Pragma",
        "Referer",
        "User-Agent",
        "Via",
        "Warning",
    }
)


def get_geo_headers() -> list[str]:
    """Return the x-geo- header names."""
    return [
        "x-geo-org",
        "x-geo-country-code",
        "x-geo-country-name",
        "x-geo-region-code",
        "x-geo-region-name",
        "x-geo-city-name",
        "x-geo-postal-code",
        "x-geo-latitude",
        "x-geo-longitude",
    ]


def get_xb3_headers() -> list[str]:
    """Return the x-b3- tracing header names."""
    return [
        "x-b3-traceid",
        "x-b3-parentspanid",
        "x-b3-spanid",
        "x-b3-sampled",
    ]


def header(ctx: CallContext, key: str) -> str | None:
    """Return the first value of ``key`` in the call metadata, or None."""
    values = header_n(ctx, key, 1)
    return values[0] if values is not None else None


def header_n(ctx: CallContext, key: str, n: int) -> list[str] | None:
    """Return the first ``n`` values of ``key`` from incoming and outgoing metadata.

    With ``n < 0`` all values are returned; with ``n == 0``, or when fewer than
    ``n`` values exist, or the key is absent, the result is None. The key is
    looked up lower-cased, and also with the gateway metadata prefix.
    """
    if n == 0:
        return None

    incoming = ctx.incoming
    if ctx.server_metadata is not None:
        incoming = ctx.server_metadata.header_md
    if incoming is None and ctx.outgoing is None:
        return None

    md = join(incoming, ctx.outgoing)
    key = key.lower()
    found = False
    values: list[str] = []
    for candidate in (key, METADATA_PREFIX + key):
        if candidate in md:
            values.extend(md[candidate])
            found = True

    if not found:
        return None
    if n < 0 or len(values) == n:
        return values
    if len(values) < n:
        return None
    return values[:n]


def prefix_outgoing_header_matcher(key: str) -> str | None:
    """Discard every header metadata key."""
    return key if key.lower() in _FORWARDED_OUTGOING else None


def default_header_matcher(key: str) -> str | None:
    """Pass permanent HTTP headers with the gateway prefix, and strip the metadata prefix."""
    key = canonical_header_key(key)
    if key in _PERMANENT_HTTP_HEADERS:
        return METADATA_PREFIX + key
    if key.startswith(METADATA_HEADER_PREFIX):
        return key[len(METADATA_HEADER_PREFIX):]
    return None


def extended_default_header_matcher(*header_names: str) -> HeaderMatcher:
    """Match the default headers plus the given names (case-insensitively)."""
    custom = {name.lower() for name in header_names}

    def matcher(header_name: str) -> str | None:
        key = default_header_matcher(header_name)
        if key is not None:
            return key
        return header_name if header_name.lower() in custom else None

    return matcher


def chain_header_matcher(*matchers: HeaderMatcher) -> HeaderMatcher:
    """Return a matcher that uses the first of ``matchers`` that accepts a header."""

    def matcher(header_name: str) -> str | None:
        return next(
            (key for key in (m(header_name) for m in matchers) if key is not None),
            None,
        )

    return matcher


def geo_ip_header_matcher() -> HeaderMatcher:
    """Match the X-Geo-* headers set by the ingress."""
    return extended_default_header_matcher(*get_geo_headers())


def request_id_header_matcher() -> HeaderMatcher:
    """Match the request id header."""
    return extended_default_header_matcher("request-id")


def tracing_header_matcher() -> HeaderMatcher:
    """Match the tracing headers."""
    return extended_default_header_matcher(*get_xb3_headers())


def atlas_default_header_matcher() -> HeaderMatcher:
    """Match geo, request id and tracing headers, plus the default ones."""
    return chain_header_matcher(
        geo_ip_header_matcher(),
        request_id_header_matcher(),
        tracing_header_matcher(),
    )


def forward_response_server_metadata(
    matcher: HeaderMatcher, rw: ResponseWriter, md: ServerMetadata | None
) -> None:
    """Copy header metadata accepted by ``matcher`` into the response headers."""
    if md is None:
        return
    for key, values in md.header_md.items():
        name = matcher(key)
        if name is None:
            continue
        for value in values:
            rw.headers.add(name, value)


def forward_response_trailer_header(rw: ResponseWriter, md: ServerMetadata | None) -> None:
    """Announce trailer metadata keys in the Trailer header, skipping error-/success- keys."""
    if md is None:
        return
    for key in md.trailer_md:
        if key.startswith(("error-", "success-")):
            continue
        rw.headers.add("Trailer", canonical_header_key(METADATA_TRAILER_PREFIX + key))


def forward_response_trailer(rw: ResponseWriter, md: ServerMetadata | None) -> None:
    """Write trailer metadata as prefixed response headers."""
    if md is None:
        return
    for key, values in md.trailer_md.items():
        for value in values:
            rw.headers.add(METADATA_TRAILER_PREFIX + key, value)