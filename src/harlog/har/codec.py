"""Conversion between live HTTP messages and HAR records.

The capture direction turns WSGI environs, ``requests`` prepared requests and
responses into :mod:`harlog.har.models` records. The reverse direction turns
HAR records back into :class:`~harlog.messages.HTTPRequest` objects and
``requests.Response`` objects whose bodies can be read normally.

Bodies are never read here: callers pass in bytes they have already drained
and are responsible for leaving the original stream readable.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Iterator, Mapping
from email.message import Message
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from wsgiref.util import request_uri

import requests
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers
from urllib3 import HTTPHeaderDict, HTTPResponse

from harlog.exceptions import HARParseError
from harlog.har.models import (
    UNKNOWN_SIZE,
    HARContent,
    HARNameValue,
    HARPostData,
    HARRequest,
    HARResponse,
)
from harlog.logging import get_logger
from harlog.messages import HTTPRequest, HTTPVersion

LOG = get_logger(__name__)

_HTTP_PREFIX = "HTTP/"

# requests always speaks HTTP/1.1 on the wire
_REQUESTS_HTTP_VERSION = "HTTP/1.1"

# WSGI keeps these two headers outside the HTTP_ namespace
_WSGI_UNPREFIXED_HEADERS = {"CONTENT_TYPE": "Content-Type", "CONTENT_LENGTH": "Content-Length"}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _to_int(part: str) -> int:
    part = part.strip()
    # ASCII digits only; str.isdigit() also accepts superscripts int() rejects
    return int(part) if part.isascii() and part.isdigit() else 0


def parse_http_version(proto: str) -> HTTPVersion:
    """Split an ``HTTP/major.minor`` string into numeric parts.

    Never raises: a missing ``HTTP/`` prefix or a non-numeric part leaves the
    corresponding component at zero. ``HTTP/2`` parses as ``(2, 0)``.

    Args:
        proto: Protocol string as recorded (e.g. ``"HTTP/1.1"``).

    Returns:
        HTTPVersion carrying the original string and its components.
    """
    if not proto.startswith(_HTTP_PREFIX):
        if proto:
            LOG.debug("http_version_unparseable", proto=proto)
        return HTTPVersion(proto)

    parts = proto[len(_HTTP_PREFIX) :].split(".")
    major = _to_int(parts[0])
    minor = _to_int(parts[1]) if len(parts) >= 2 else 0
    return HTTPVersion(proto, major, minor)


def format_http_version(version: int) -> str:
    """Render urllib3's integer protocol version (11, 20, ...) as ``HTTP/x.y``."""
    if version <= 0:
        return _REQUESTS_HTTP_VERSION
    return f"{_HTTP_PREFIX}{version // 10}.{version % 10}"


def charset_of(content_type: str, default: str = "utf-8") -> str:
    """Return the charset declared in a Content-Type value, or *default*."""
    if not content_type:
        return default
    msg = Message()
    msg["content-type"] = content_type
    charset = msg.get_content_charset()
    if not charset:
        return default
    try:
        "".encode(charset)
    except LookupError:
        return default
    return charset


def decode_body(body: bytes, content_type: str) -> str:
    """Decode captured body bytes as text using the declared charset."""
    return body.decode(charset_of(content_type), errors="replace")


def encode_body(text: str, content_type: str) -> bytes:
    """Encode recorded body text back to bytes using the declared charset."""
    return text.encode(charset_of(content_type), errors="replace")


def flatten_headers(headers: Any) -> tuple[HARNameValue, ...]:
    """Flatten a header collection into one pair per value.

    Accepts a WSGI-style sequence of ``(name, value)`` tuples, a urllib3
    ``HTTPHeaderDict`` (every value of a repeated header is kept) or any
    other mapping.
    """
    pairs: Iterable[tuple[str, str]]
    if isinstance(headers, HTTPHeaderDict):
        pairs = headers.iteritems()
    elif isinstance(headers, Mapping):
        pairs = headers.items()
    else:
        pairs = headers
    return tuple(HARNameValue(str(name), str(value)) for name, value in pairs)


def flatten_query(url: str) -> tuple[HARNameValue, ...]:
    """Parse the query component of *url* into ordered pairs.

    Repeated parameters yield one pair each; blank values are kept.
    """
    query = urlsplit(url).query
    return tuple(HARNameValue(k, v) for k, v in parse_qsl(query, keep_blank_values=True))


def _first_header(pairs: Iterable[HARNameValue], name: str) -> str:
    lowered = name.lower()
    for pair in pairs:
        if pair.name.lower() == lowered:
            return pair.value
    return ""


# ---------------------------------------------------------------------------
# Capture: live message -> HAR
# ---------------------------------------------------------------------------


def _wsgi_headers(environ: Mapping[str, Any]) -> Iterator[tuple[str, str]]:
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            name = key[5:].replace("_", "-").title()
        elif key in _WSGI_UNPREFIXED_HEADERS:
            if not value:
                continue
            name = _WSGI_UNPREFIXED_HEADERS[key]
        else:
            continue
        yield name, str(value)


def capture_wsgi_request(environ: Mapping[str, Any]) -> HARRequest:
    """Capture request metadata from a WSGI environ.

    The request body (``wsgi.input``) is left untouched so the wrapped
    application can read it; sizes stay at the unknown sentinel.

    WSGI servers fold repeated request headers into one comma-joined
    ``HTTP_*`` value before the application runs, so such a header is
    recorded as a single pair carrying the joined value.
    """
    url = request_uri(dict(environ), include_query=True)
    return HARRequest(
        method=environ.get("REQUEST_METHOD", "GET"),
        url=url,
        http_version=environ.get("SERVER_PROTOCOL", _REQUESTS_HTTP_VERSION),
        headers=flatten_headers(list(_wsgi_headers(environ))),
        query_string=flatten_query(url),
    )


def capture_prepared_request(request: requests.PreparedRequest) -> HARRequest:
    """Capture a fully prepared outgoing request, including its body.

    Only materialized bodies (``bytes`` or ``str``) are recorded. Streamed
    bodies such as files or generators are left unread, since reading them
    here would leave nothing for the transport to send.
    """
    url = request.url or ""
    headers = flatten_headers(request.headers or {})
    body = request.body
    if isinstance(body, str):
        body = body.encode("utf-8")

    post_data = None
    body_size = UNKNOWN_SIZE
    if isinstance(body, bytes):
        mime_type = _first_header(headers, "Content-Type")
        post_data = HARPostData(mime_type=mime_type, text=decode_body(body, mime_type))
        body_size = len(body)
    elif body is not None:
        LOG.debug("request_body_not_captured", url=url, body_type=type(body).__name__)

    return HARRequest(
        method=request.method or "GET",
        url=url,
        http_version=_REQUESTS_HTTP_VERSION,
        headers=headers,
        query_string=flatten_query(url),
        post_data=post_data,
        body_size=body_size,
    )


def capture_response(
    status: int,
    status_text: str,
    http_version: str,
    headers: Any,
    body: bytes,
) -> HARResponse:
    """Build a HAR response from a drained body.

    Args:
        status: Numeric status code.
        status_text: Reason phrase.
        http_version: Protocol string (``HTTP/1.1``).
        headers: Header collection accepted by :func:`flatten_headers`.
        body: The complete response body, already read from its stream.

    Returns:
        HARResponse with ``content.size`` and ``bodySize`` set to ``len(body)``.
    """
    flat = flatten_headers(headers)
    mime_type = _first_header(flat, "Content-Type")
    return HARResponse(
        status=status,
        status_text=status_text,
        http_version=http_version,
        headers=flat,
        content=HARContent(size=len(body), mime_type=mime_type, text=decode_body(body, mime_type)),
        body_size=len(body),
    )


def capture_requests_response(response: requests.Response, body: bytes) -> HARResponse:
    """Build a HAR response from a ``requests.Response`` and its drained body.

    Headers come from the urllib3 raw response when available so repeated
    headers are recorded once per value instead of comma-joined.
    """
    raw = response.raw
    headers = getattr(raw, "headers", None)
    if not isinstance(headers, HTTPHeaderDict):
        headers = response.headers
    version = getattr(raw, "version", 0)
    return capture_response(
        status=response.status_code,
        status_text=response.reason or "",
        http_version=format_http_version(version if isinstance(version, int) else 0),
        headers=headers,
        body=body,
    )


# ---------------------------------------------------------------------------
# Reverse: HAR -> live message
# ---------------------------------------------------------------------------


def _replay_headers(pairs: Iterable[HARNameValue]) -> HTTPHeaderDict:
    headers = HTTPHeaderDict()
    for pair in pairs:
        headers.add(pair.name, pair.value)
    return headers


def to_live_request(har_request: HARRequest) -> HTTPRequest:
    """Rebuild a replayable request from its HAR record.

    Query-string pairs are appended to the URL only when the URL has no query
    of its own; when both are present the URL wins.

    Raises:
        HARParseError: If the URL cannot be parsed or is not absolute.
    """
    try:
        parts = urlsplit(har_request.url)
        # Accessing port validates it
        parts.port  # noqa: B018
    except ValueError as exc:
        raise HARParseError(f"failed to parse request URL {har_request.url!r}: {exc}") from exc
    if not parts.scheme or not parts.netloc:
        raise HARParseError(f"request URL is not absolute: {har_request.url!r}")

    url = har_request.url
    if har_request.query_string and not parts.query:
        query = urlencode([(q.name, q.value) for q in har_request.query_string])
        url = urlunsplit(parts._replace(query=query))

    body = None
    if har_request.post_data is not None:
        body = encode_body(har_request.post_data.text, har_request.post_data.mime_type)

    return HTTPRequest(
        method=har_request.method,
        url=url,
        headers=_replay_headers(har_request.headers),
        body=body,
        http_version=parse_http_version(har_request.http_version),
    )


def to_live_response(har_response: HARResponse, url: str | None = None) -> requests.Response:
    """Rebuild a ``requests.Response`` from its HAR record.

    The body is the exact encoding of ``content.text`` and is readable both
    through ``response.content`` and through ``response.raw``. Headers are
    replayed one value at a time onto the raw response; ``response.headers``
    is requests' usual case-insensitive view of them.
    """
    version = parse_http_version(har_response.http_version)
    headers = _replay_headers(har_response.headers)
    mime_type = har_response.content.mime_type or _first_header(har_response.headers, "Content-Type")
    body = encode_body(har_response.content.text, mime_type)

    response = requests.Response()
    response.status_code = har_response.status
    response.reason = har_response.status_text
    response.headers = CaseInsensitiveDict(headers)
    response.raw = rewrap_body(
        body,
        headers=headers,
        status=har_response.status,
        version=version.as_int,
        reason=har_response.status_text,
    )
    response.encoding = get_encoding_from_headers(response.headers)
    if url is not None:
        response.url = url
    # Body is already decoded text; mark it consumed so requests never
    # re-decodes it according to a recorded Content-Encoding
    response._content = body
    response._content_consumed = True
    return response


def rewrap_body(
    body: bytes,
    *,
    headers: HTTPHeaderDict,
    status: int,
    version: int,
    reason: str | None,
    original_response: Any = None,
) -> HTTPResponse:
    """Wrap drained bytes in a fresh, unread urllib3 response.

    The returned object reads back exactly *body*: it never decodes content
    and does not enforce the Content-Length header, which may describe the
    compressed size.
    """
    return HTTPResponse(
        body=io.BytesIO(body),
        headers=headers,
        status=status,
        version=version,
        reason=reason,
        preload_content=False,
        decode_content=False,
        enforce_content_length=False,
        original_response=original_response,
    )
