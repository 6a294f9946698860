"""Shared test helpers: fake transports and WSGI plumbing."""

from __future__ import annotations

import io
from typing import Any
from wsgiref.util import setup_testing_defaults

import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from urllib3 import HTTPHeaderDict, HTTPResponse


def make_raw_response(
    body: bytes,
    headers: list[tuple[str, str]] | None = None,
    status: int = 200,
    reason: str = "OK",
) -> HTTPResponse:
    """Build an unread urllib3 response over *body*."""
    header_dict = HTTPHeaderDict()
    for name, value in headers or []:
        header_dict.add(name, value)
    return HTTPResponse(
        body=io.BytesIO(body),
        headers=header_dict,
        status=status,
        version=11,
        reason=reason,
        preload_content=False,
    )


class FakeAdapter(BaseAdapter):
    """Transport adapter answering every request with a canned response.

    Builds the response the way requests' HTTPAdapter does, so the body is an
    unread stream until someone accesses ``response.content``.
    """

    def __init__(
        self,
        body: bytes = b"",
        headers: list[tuple[str, str]] | None = None,
        status: int = 200,
        reason: str = "OK",
        error: Exception | None = None,
        raw_factory: Any = None,
    ) -> None:
        super().__init__()
        self.body = body
        self.headers = headers
        self.status = status
        self.reason = reason
        self.error = error
        self.raw_factory = raw_factory
        self.sent: list[requests.PreparedRequest] = []
        self.closed = False

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        self.sent.append(request)
        if self.error is not None:
            raise self.error
        if self.raw_factory is not None:
            raw = self.raw_factory()
        else:
            raw = make_raw_response(self.body, self.headers, self.status, self.reason)
        response = requests.Response()
        response.status_code = self.status
        response.reason = self.reason
        response.headers = CaseInsensitiveDict(raw.headers)
        response.raw = raw
        response.url = request.url or ""
        response.request = request
        return response

    def close(self) -> None:
        self.closed = True


def make_environ(
    method: str = "GET",
    path: str = "/",
    query: str = "",
    body: bytes = b"",
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a WSGI environ for ``http://example.com<path>?<query>``."""
    environ: dict[str, Any] = {
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "QUERY_STRING": query,
        "SERVER_NAME": "example.com",
        "SERVER_PORT": "80",
        "HTTP_HOST": "example.com",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "wsgi.input": io.BytesIO(body),
    }
    if body:
        environ["CONTENT_LENGTH"] = str(len(body))
    for name, value in (headers or {}).items():
        key = name.upper().replace("-", "_")
        if key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            environ[key] = value
        else:
            environ[f"HTTP_{key}"] = value
    setup_testing_defaults(environ)
    return environ


class StartResponseSpy:
    """Server-side start_response that records what the middleware forwards."""

    def __init__(self) -> None:
        self.status: str | None = None
        self.headers: list[tuple[str, str]] = []
        self.written = bytearray()

    def __call__(self, status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> Any:
        self.status = status
        self.headers = list(headers)
        return self.written.extend


def run_wsgi(app: Any, environ: dict[str, Any], start_response: StartResponseSpy) -> bytes:
    """Drive a WSGI app like a server: iterate fully, then close."""
    result = app(environ, start_response)
    try:
        chunks = b"".join(result)
    finally:
        close = getattr(result, "close", None)
        if close is not None:
            close()
    return bytes(start_response.written) + chunks


def make_har_entry(
    method: str = "GET",
    url: str = "https://example.com/api",
    status: int = 200,
    body: str = "",
) -> Any:
    """Build a minimal captured entry."""
    from harlog.har.models import HARContent, HAREntry, HARRequest, HARResponse

    return HAREntry(
        started_date_time="2024-01-15T10:00:00.000Z",
        time=12.5,
        request=HARRequest(method=method, url=url, http_version="HTTP/1.1"),
        response=HARResponse(
            status=status,
            status_text="OK",
            http_version="HTTP/1.1",
            content=HARContent(size=len(body.encode()), mime_type="text/plain", text=body),
            body_size=len(body.encode()),
        ),
    )
