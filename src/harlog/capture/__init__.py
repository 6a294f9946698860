"""Capture adapters for inbound (WSGI) and outbound (requests) traffic."""

from harlog.capture.transport import HARTransportAdapter
from harlog.capture.wsgi import HARMiddleware, ResponseRecorder

__all__ = [
    "HARMiddleware",
    "HARTransportAdapter",
    "ResponseRecorder",
]
