"""HAR (HTTP Archive) records, conversion, writing and parsing.

Example usage:
    from harlog.har import parse_har_file

    for message in parse_har_file(Path("capture.har")):
        print(message.request.method, message.request.url, message.response.status_code)
"""

from harlog.har.codec import (
    capture_prepared_request,
    capture_requests_response,
    capture_response,
    capture_wsgi_request,
    parse_http_version,
    to_live_request,
    to_live_response,
)
from harlog.har.models import (
    HARContent,
    HARCreator,
    HAREntry,
    HARLog,
    HARNameValue,
    HARPostData,
    HARRequest,
    HARResponse,
    HARTimings,
)
from harlog.har.parser import load_har, parse_har_data, parse_har_file, validate_har_schema
from harlog.har.paths import validate_output_path
from harlog.har.writer import ArchiveWriter, default_filename, sanitize_filename

__all__ = [
    # Models
    "HARContent",
    "HARCreator",
    "HAREntry",
    "HARLog",
    "HARNameValue",
    "HARPostData",
    "HARRequest",
    "HARResponse",
    "HARTimings",
    # Codec
    "capture_prepared_request",
    "capture_requests_response",
    "capture_response",
    "capture_wsgi_request",
    "parse_http_version",
    "to_live_request",
    "to_live_response",
    # Parser
    "load_har",
    "parse_har_data",
    "parse_har_file",
    "validate_har_schema",
    # Writer
    "ArchiveWriter",
    "default_filename",
    "sanitize_filename",
    "validate_output_path",
]
