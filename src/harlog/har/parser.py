"""HAR file parser.

Parses HAR (HTTP Archive) documents and rebuilds each entry as a live
request/response pair for replay or inspection.

HAR format specification: http://www.softwareishard.com/blog/har-12-spec/
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from harlog.exceptions import HARParseError
from harlog.har.codec import to_live_request, to_live_response
from harlog.har.models import HAR_VERSION, HARCreator, HAREntry, HARLog
from harlog.logging import get_logger
from harlog.messages import HTTPMessage

LOG = get_logger(__name__)


def validate_har_schema(data: Any) -> None:
    """Validate HAR data has required structure.

    Args:
        data: Parsed JSON data from HAR file.

    Raises:
        HARParseError: If required fields are missing.
    """
    if not isinstance(data, dict):
        raise HARParseError("HAR file must contain a JSON object")

    if "log" not in data:
        raise HARParseError("HAR file must contain 'log' object")

    log = data["log"]
    if not isinstance(log, dict):
        raise HARParseError("'log' must be an object")

    if "entries" not in log:
        raise HARParseError("HAR log must contain 'entries' array")

    entries = log["entries"]
    if not isinstance(entries, list):
        raise HARParseError("'entries' must be an array")


def _decode(content: str | bytes) -> Any:
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HARParseError(f"Invalid JSON in HAR content: {exc}") from exc


def _build_log(data: Any) -> HARLog:
    validate_har_schema(data)
    log = data["log"]

    creator = HARCreator()
    raw_creator = log.get("creator")
    if isinstance(raw_creator, dict):
        creator = HARCreator(
            name=str(raw_creator.get("name", "")),
            version=str(raw_creator.get("version", "")),
        )

    entries = tuple(
        HAREntry.from_dict(entry, f"entries[{idx}]") for idx, entry in enumerate(log["entries"])
    )
    return HARLog(entries=entries, creator=creator, version=str(log.get("version", HAR_VERSION)))


def load_har(source: str | bytes | os.PathLike[str]) -> HARLog:
    """Load a HAR document into the :mod:`harlog.har.models` types.

    Args:
        source: A path to a HAR file, or the document itself as ``str`` or
            ``bytes``. Strings are treated as JSON content, not paths; wrap
            paths in :class:`pathlib.Path`.

    Raises:
        HARParseError: If the content is not valid JSON or not a HAR document.
        FileNotFoundError: If *source* is a path that does not exist.
    """
    if isinstance(source, os.PathLike):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"HAR file not found: {path}")
        return _build_log(_decode(path.read_bytes()))
    return _build_log(_decode(source))


def to_messages(har: HARLog) -> list[HTTPMessage]:
    """Convert every entry of *har* to a live request/response pair.

    Fails on the first entry that cannot be converted; no partial list is
    returned.

    Raises:
        HARParseError: Naming the index of the offending entry.
    """
    messages: list[HTTPMessage] = []
    for idx, entry in enumerate(har.entries):
        try:
            request = to_live_request(entry.request)
            response = to_live_response(entry.response, url=request.url)
        except HARParseError as exc:
            LOG.warning("entry_convert_failed", entry_index=idx, url=entry.request.url, error=str(exc))
            raise HARParseError(f"entry {idx}: {exc}") from exc
        messages.append(HTTPMessage(request=request, response=response))
    return messages


def parse_har_data(content: str | bytes) -> list[HTTPMessage]:
    """Parse HAR content into request/response pairs in document order.

    Raises:
        HARParseError: If the document is malformed or any entry cannot be
            converted.
    """
    return to_messages(load_har(content))


def parse_har_file(filepath: str | os.PathLike[str]) -> list[HTTPMessage]:
    """Parse a HAR file into request/response pairs in document order.

    Args:
        filepath: Path to HAR file.

    Raises:
        HARParseError: If the file is malformed or any entry cannot be
            converted.
        FileNotFoundError: If file does not exist.
    """
    filepath = Path(filepath)
    messages = to_messages(load_har(filepath))
    LOG.info("har_file_parsed", filepath=str(filepath), entries=len(messages))
    return messages
