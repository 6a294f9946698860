"""Inbound capture: WSGI middleware that records every exchange it serves."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

from harlog.capture.entry import ExchangeClock, build_entry
from harlog.har.codec import capture_response, capture_wsgi_request
from harlog.har.models import HARRequest
from harlog.logging import get_logger

if TYPE_CHECKING:
    from wsgiref.types import StartResponse, WSGIApplication, WSGIEnvironment

    from harlog.recorder import HARRecorder

    WSGIApp = WSGIApplication

LOG = get_logger(__name__)

_DEFAULT_STATUS = 200
_DEFAULT_REASON = "OK"


class ResponseRecorder:
    """Stands in for the server's ``start_response`` and records what passes through.

    Status, headers and every body byte written through the legacy ``write``
    callable are recorded, then forwarded unchanged to the real server.
    """

    def __init__(self, start_response: StartResponse) -> None:
        self._start_response = start_response
        self.status = _DEFAULT_STATUS
        self.reason = _DEFAULT_REASON
        self.headers: list[tuple[str, str]] = []
        self.body = bytearray()

    def start_response(self, status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> Any:
        code, _, reason = status.partition(" ")
        try:
            self.status = int(code)
        except ValueError:
            LOG.debug("wsgi_status_unparseable", status=status)
        self.reason = reason
        self.headers = list(headers)

        if exc_info is None:
            write = self._start_response(status, headers)
        else:
            write = self._start_response(status, headers, exc_info)

        def recording_write(data: bytes) -> Any:
            self.body += data
            return write(data)

        return recording_write


class _RecordingIterable:
    """Forwards the application's body chunks and finishes the entry on close."""

    def __init__(self, app_iter: Iterable[bytes], sink: ResponseRecorder, finish: Any) -> None:
        self._app_iter = app_iter
        self._sink = sink
        self._finish = finish
        self._exhausted = False
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._app_iter:
            self._sink.body += chunk
            yield chunk
        self._exhausted = True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            close = getattr(self._app_iter, "close", None)
            if close is not None:
                close()
        finally:
            # An interrupted or failed body is never recorded
            if self._exhausted:
                self._finish()


class HARMiddleware:
    """WSGI middleware recording each request/response exchange as HAR.

    The request body is left for the application to read. The response body
    is recorded as it streams to the server; the entry is written once the
    server closes the response iterable after consuming it fully. If the
    application raises, the exception propagates and nothing is written.

    Args:
        app: The WSGI application to wrap.
        recorder: Recorder that persists finished entries.
    """

    def __init__(self, app: WSGIApp, recorder: HARRecorder) -> None:
        self.app = app
        self.recorder = recorder

    def __call__(self, environ: WSGIEnvironment, start_response: StartResponse) -> Iterable[bytes]:
        clock = ExchangeClock()
        har_request = capture_wsgi_request(environ)
        proto = environ.get("SERVER_PROTOCOL", "HTTP/1.1")
        sink = ResponseRecorder(start_response)

        app_iter = self.app(environ, sink.start_response)

        def finish() -> None:
            self._finish(clock, har_request, proto, sink)

        return _RecordingIterable(app_iter, sink, finish)

    def _finish(self, clock: ExchangeClock, har_request: HARRequest, proto: str, sink: ResponseRecorder) -> None:
        har_response = capture_response(
            status=sink.status,
            status_text=sink.reason,
            http_version=proto,
            headers=sink.headers,
            body=bytes(sink.body),
        )
        self.recorder.record(build_entry(clock, har_request, har_response))
