"""Single-entry HAR file writer."""

from __future__ import annotations

import json
import os
import re
import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import urlsplit

from harlog.exceptions import ArchiveWriteError
from harlog.har.models import HARCreator, HAREntry, HARLog, HARRequest
from harlog.har.paths import validate_output_path
from harlog.logging import get_logger

LOG = get_logger(__name__)

FilenameFn = Callable[[HARRequest], "str | os.PathLike[str]"]

DIR_MODE = 0o750
FILE_MODE = 0o600

_UNSAFE_CHARS_RE = re.compile(r'[/\\:*?"<>|\s\x00-\x1f]')
_REPEATED_SUBSTITUTE_RE = re.compile(r"_{2,}")


def sanitize_filename(value: str) -> str:
    """Make *value* safe to use as part of a filename.

    Path separators, characters reserved on common filesystems, whitespace
    and control characters become ``_``; runs of ``_`` collapse to one and
    are trimmed from both ends. Applying it twice gives the same result.
    """
    value = _UNSAFE_CHARS_RE.sub("_", value)
    value = _REPEATED_SUBSTITUTE_RE.sub("_", value)
    return value.strip("_")


def request_host(request: HARRequest) -> str:
    """Return the host a request was addressed to, preferring the Host header."""
    return request.header("Host") or urlsplit(request.url).netloc


def default_filename(request: HARRequest) -> str:
    """Generate a collision-resistant HAR filename for *request*.

    Format: ``YYYYMMDD-HHMMSS.mmm-<id>-<METHOD>-<host>-<path>.har`` with a UTC
    timestamp and an 8 character random id.
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d-%H%M%S.") + f"{now.microsecond // 1000:03d}"
    host = sanitize_filename(request_host(request)) or "unknown"
    path = sanitize_filename(urlsplit(request.url).path) or "root"
    method = sanitize_filename(request.method) or "UNKNOWN"
    return f"{timestamp}-{uuid.uuid4().hex[:8]}-{method}-{host}-{path}.har"


class ArchiveWriter:
    """Writes each exchange to its own HAR file under an output directory.

    All writes share one lock, held from directory creation through file
    close, so concurrent exchanges never interleave.

    Args:
        output_dir: Directory HAR files are written to. Created on first write.
        filename_fn: Maps a captured request to a file path, either absolute
            or relative to *output_dir*. Its output is validated on every call.
            Defaults to :func:`default_filename`.
        creator: Identity recorded in each document.
    """

    def __init__(
        self,
        output_dir: str | os.PathLike[str],
        filename_fn: FilenameFn | None = None,
        creator: HARCreator | None = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.filename_fn = filename_fn or default_filename
        self.creator = creator or HARCreator()
        self._lock = threading.Lock()

    def persist(self, entry: HAREntry) -> Path:
        """Write *entry* as a single-entry HAR document.

        An existing file at the target path is overwritten.

        Returns:
            The path written.

        Raises:
            PathEscapeError: If the filename resolves outside the output
                directory. Nothing is written.
            ArchiveWriteError: If the filename function fails or returns an
                unusable path, or if the directory or file cannot be written.
        """
        document = HARLog(entries=(entry,), creator=self.creator)
        with self._lock:
            try:
                self.output_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            except OSError as exc:
                raise ArchiveWriteError(f"failed to create output directory: {exc}") from exc

            try:
                candidate = self.filename_fn(entry.request)
            except Exception as exc:
                raise ArchiveWriteError(f"filename function failed: {exc}") from exc
            try:
                target = validate_output_path(candidate, self.output_dir)
            except (TypeError, ValueError, OSError, RuntimeError) as exc:
                # None, embedded NUL bytes or symlink loops
                raise ArchiveWriteError(f"invalid HAR file path {candidate!r}: {exc}") from exc

            try:
                payload = json.dumps(document.to_dict(), ensure_ascii=False)
            except (TypeError, ValueError) as exc:
                raise ArchiveWriteError(f"failed to encode HAR: {exc}") from exc

            try:
                fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
                with open(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.write("\n")
            except (OSError, ValueError) as exc:
                raise ArchiveWriteError(f"failed to write HAR file {target}: {exc}") from exc

        LOG.debug("har_entry_written", path=str(target), url=entry.request.url)
        return target
