"""harlog - record HTTP traffic as HAR files and replay it.

This package provides:
- WSGI middleware recording every exchange an application serves
- A requests transport adapter recording every request a session sends
- Path-guarded, one-file-per-exchange HAR 1.2 persistence
- A parser turning HAR documents back into replayable requests and responses

Example:
    >>> from harlog import HARRecorder, parse_har_file
    >>> recorder = HARRecorder(output_dir="captures")
    >>> session = recorder.session()
    >>> session.get("https://example.com/")
    >>> # Later:
    >>> messages = parse_har_file(path_to_har)
"""

from harlog.capture import HARMiddleware, HARTransportAdapter
from harlog.config import HarlogSettings, get_settings
from harlog.exceptions import ArchiveWriteError, HarlogError, HARParseError, PathEscapeError
from harlog.har import (
    ArchiveWriter,
    HAREntry,
    HARLog,
    HARRequest,
    HARResponse,
    load_har,
    parse_har_data,
    parse_har_file,
)
from harlog.messages import HTTPMessage, HTTPRequest, HTTPVersion
from harlog.recorder import HARRecorder

__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",
    # Recording
    "HARRecorder",
    "HARMiddleware",
    "HARTransportAdapter",
    "ArchiveWriter",
    # Parsing
    "load_har",
    "parse_har_data",
    "parse_har_file",
    # Types
    "HAREntry",
    "HARLog",
    "HARRequest",
    "HARResponse",
    "HTTPMessage",
    "HTTPRequest",
    "HTTPVersion",
    # Configuration
    "HarlogSettings",
    "get_settings",
    # Exceptions
    "HarlogError",
    "HARParseError",
    "PathEscapeError",
    "ArchiveWriteError",
]
