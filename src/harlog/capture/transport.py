"""Outbound capture: a requests transport adapter that records every send."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import requests
from requests.adapters import BaseAdapter, HTTPAdapter
from urllib3 import HTTPHeaderDict

from harlog.capture.entry import ExchangeClock, build_entry
from harlog.har.codec import capture_prepared_request, capture_requests_response, rewrap_body
from harlog.logging import get_logger

if TYPE_CHECKING:
    from harlog.recorder import HARRecorder

LOG = get_logger(__name__)


def _restore_body(response: requests.Response, body: bytes) -> None:
    """Give *response* a fresh, unread raw stream over its drained *body*.

    ``response.content`` already caches the bytes; this keeps ``response.raw``
    readable too, and keeps the original headers and underlying
    ``http.client`` response so cookie extraction still works.
    """
    raw = response.raw
    headers = getattr(raw, "headers", None)
    if not isinstance(headers, HTTPHeaderDict):
        headers = HTTPHeaderDict(response.headers)
    version = getattr(raw, "version", 0)
    response.raw = rewrap_body(
        body,
        headers=headers,
        status=response.status_code,
        version=version if isinstance(version, int) else 0,
        reason=response.reason,
        original_response=getattr(raw, "_original_response", None),
    )


class HARTransportAdapter(BaseAdapter):
    """Records each request sent through a wrapped requests adapter.

    Transport errors from the wrapped adapter propagate unchanged and nothing
    is written. The response body is drained before returning (even when the
    caller asked for ``stream=True``); errors while draining propagate and
    nothing is written. The caller receives the same response object with its
    body still fully readable.

    Args:
        recorder: Recorder that persists finished entries.
        adapter: The adapter that actually sends requests. Defaults to a new
            ``HTTPAdapter``.
    """

    def __init__(self, recorder: HARRecorder, adapter: BaseAdapter | None = None) -> None:
        super().__init__()
        self.recorder = recorder
        self.adapter = adapter if adapter is not None else HTTPAdapter()

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        clock = ExchangeClock()
        har_request = capture_prepared_request(request)

        response = self.adapter.send(request, **kwargs)

        body = response.content or b""
        _restore_body(response, body)

        har_response = capture_requests_response(response, body)
        self.recorder.record(build_entry(clock, har_request, har_response))
        return response

    def close(self) -> None:
        self.adapter.close()
