"""HAR recorder: wires capture adapters to the archive writer.

Example::

    from harlog import HARRecorder

    recorder = HARRecorder(output_dir="captures")

    # Inbound: wrap a WSGI application
    app = recorder.middleware(app)

    # Outbound: record everything a requests session sends
    session = recorder.session()
    session.get("https://example.com/api")
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import requests

from harlog.config import get_settings
from harlog.exceptions import HarlogError
from harlog.har.models import HARCreator, HAREntry, HARRequest
from harlog.har.writer import ArchiveWriter, FilenameFn, request_host
from harlog.logging import get_logger

if TYPE_CHECKING:
    from requests.adapters import BaseAdapter

    from harlog.capture.transport import HARTransportAdapter
    from harlog.capture.wsgi import HARMiddleware, WSGIApp

LOG = get_logger(__name__)

ErrorSink = Callable[[Exception, HARRequest], None]


def log_persist_failure(error: Exception, request: HARRequest) -> None:
    """Default error sink: log the failure and carry on."""
    LOG.error(
        "har_persist_failed",
        error=str(error),
        path=urlsplit(request.url).path,
        method=request.method,
        host=request_host(request),
    )


class HARRecorder:
    """Records HTTP exchanges as one HAR file per exchange.

    Args:
        output_dir: Directory for HAR files. Defaults to the configured
            ``HARLOG_OUTPUT_DIR``.
        filename_fn: Custom filename generator; see :class:`ArchiveWriter`.
        on_error: Called with the exception and the captured request when an
            entry cannot be persisted. Persistence failures never reach the
            traffic being recorded.
        creator: Identity written into each document. Defaults to the
            configured creator name and version.
    """

    def __init__(
        self,
        output_dir: str | os.PathLike[str] | None = None,
        filename_fn: FilenameFn | None = None,
        on_error: ErrorSink | None = None,
        creator: HARCreator | None = None,
    ) -> None:
        settings = get_settings()
        if creator is None:
            creator = HARCreator(name=settings.creator_name, version=settings.creator_version)
        self.writer = ArchiveWriter(
            output_dir if output_dir is not None else settings.output_dir,
            filename_fn=filename_fn,
            creator=creator,
        )
        self.on_error = on_error or log_persist_failure

    @property
    def output_dir(self) -> Path:
        """Return the directory HAR files are written to."""
        return self.writer.output_dir

    def record(self, entry: HAREntry) -> Path | None:
        """Persist *entry*, reporting rather than raising on failure.

        Returns:
            The written path, or None if persistence failed.
        """
        try:
            return self.writer.persist(entry)
        except HarlogError as exc:
            self.on_error(exc, entry.request)
            return None

    def middleware(self, app: WSGIApp) -> HARMiddleware:
        """Wrap a WSGI application so every request it serves is recorded."""
        from harlog.capture.wsgi import HARMiddleware

        return HARMiddleware(app, self)

    def adapter(self, inner: BaseAdapter | None = None) -> HARTransportAdapter:
        """Return a requests transport adapter that records what *inner* sends."""
        from harlog.capture.transport import HARTransportAdapter

        return HARTransportAdapter(self, inner)

    def session(self, inner: BaseAdapter | None = None) -> requests.Session:
        """Return a ``requests.Session`` recording all HTTP and HTTPS traffic."""
        session = requests.Session()
        adapter = self.adapter(inner)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session
