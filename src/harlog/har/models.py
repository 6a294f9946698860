"""HAR 1.2 data model.

Dataclasses mirroring the subset of the HAR format written and read by
harlog. Each class converts to and from the JSON shape via ``to_dict`` and
``from_dict``; the JSON field names follow the HAR 1.2 convention exactly.

HAR format specification: http://www.softwareishard.com/blog/har-12-spec/
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from harlog.exceptions import HARParseError

HAR_VERSION = "1.2"

# Sentinel for sizes that are not computed
UNKNOWN_SIZE = -1


def _require(data: Any, key: str, kind: type | tuple[type, ...], where: str) -> Any:
    """Fetch a required key from a HAR object and check its JSON type."""
    if not isinstance(data, dict):
        raise HARParseError(f"{where} must be an object")
    if key not in data:
        raise HARParseError(f"{where} must contain '{key}'")
    value = data[key]
    # bool is an int subclass but never a valid HAR number
    if isinstance(value, bool) or not isinstance(value, kind):
        raise HARParseError(f"'{where}.{key}' has invalid type {type(value).__name__}")
    return value


def _optional(data: dict[str, Any], key: str, kind: type | tuple[type, ...], default: Any, where: str) -> Any:
    if key not in data or data[key] is None:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, kind):
        raise HARParseError(f"'{where}.{key}' has invalid type {type(value).__name__}")
    return value


@dataclass(frozen=True)
class HARNameValue:
    """A single header or query-string pair."""

    name: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}

    @classmethod
    def from_dict(cls, data: Any, where: str = "pair") -> HARNameValue:
        return cls(
            name=_require(data, "name", str, where),
            value=_optional(data, "value", str, "", where),
        )


def _pairs_from_list(data: dict[str, Any], key: str, where: str) -> tuple[HARNameValue, ...]:
    items = _optional(data, key, list, [], where)
    return tuple(HARNameValue.from_dict(item, f"{where}.{key}[{i}]") for i, item in enumerate(items))


@dataclass(frozen=True)
class HARPostData:
    """Request body captured as text."""

    mime_type: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"mimeType": self.mime_type, "text": self.text}

    @classmethod
    def from_dict(cls, data: Any, where: str = "postData") -> HARPostData:
        if not isinstance(data, dict):
            raise HARParseError(f"{where} must be an object")
        return cls(
            mime_type=_optional(data, "mimeType", str, "", where),
            text=_optional(data, "text", str, "", where),
        )


@dataclass(frozen=True)
class HARContent:
    """Response body captured as text (never base64)."""

    size: int
    mime_type: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "mimeType": self.mime_type, "text": self.text}

    @classmethod
    def from_dict(cls, data: Any, where: str = "content") -> HARContent:
        if not isinstance(data, dict):
            raise HARParseError(f"{where} must be an object")
        text = _optional(data, "text", str, "", where)
        return cls(
            size=_optional(data, "size", int, len(text.encode("utf-8")), where),
            mime_type=_optional(data, "mimeType", str, "", where),
            text=text,
        )


@dataclass(frozen=True)
class HARTimings:
    """Coarse timing breakdown in milliseconds."""

    send: float = 0.0
    wait: float = 0.0
    receive: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"send": self.send, "wait": self.wait, "receive": self.receive}

    @classmethod
    def from_dict(cls, data: Any, where: str = "timings") -> HARTimings:
        if not isinstance(data, dict):
            raise HARParseError(f"{where} must be an object")
        number = (int, float)
        return cls(
            send=float(_optional(data, "send", number, 0.0, where)),
            wait=float(_optional(data, "wait", number, 0.0, where)),
            receive=float(_optional(data, "receive", number, 0.0, where)),
        )


@dataclass(frozen=True)
class HARRequest:
    """HTTP request as recorded in a HAR entry."""

    method: str
    url: str
    http_version: str
    headers: tuple[HARNameValue, ...] = ()
    query_string: tuple[HARNameValue, ...] = ()
    post_data: HARPostData | None = None
    headers_size: int = UNKNOWN_SIZE
    body_size: int = UNKNOWN_SIZE

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "httpVersion": self.http_version,
            "headers": [h.to_dict() for h in self.headers],
            "queryString": [q.to_dict() for q in self.query_string],
        }
        if self.post_data is not None:
            data["postData"] = self.post_data.to_dict()
        data["headersSize"] = self.headers_size
        data["bodySize"] = self.body_size
        return data

    @classmethod
    def from_dict(cls, data: Any, where: str = "request") -> HARRequest:
        method = _require(data, "method", str, where)
        url = _require(data, "url", str, where)
        post_data = None
        if data.get("postData") is not None:
            post_data = HARPostData.from_dict(data["postData"], f"{where}.postData")
        return cls(
            method=method,
            url=url,
            http_version=_optional(data, "httpVersion", str, "", where),
            headers=_pairs_from_list(data, "headers", where),
            query_string=_pairs_from_list(data, "queryString", where),
            post_data=post_data,
            headers_size=_optional(data, "headersSize", int, UNKNOWN_SIZE, where),
            body_size=_optional(data, "bodySize", int, UNKNOWN_SIZE, where),
        )

    def header(self, name: str) -> str:
        """Return the first value of header *name* (case-insensitive), or ""."""
        lowered = name.lower()
        for h in self.headers:
            if h.name.lower() == lowered:
                return h.value
        return ""


@dataclass(frozen=True)
class HARResponse:
    """HTTP response as recorded in a HAR entry."""

    status: int
    status_text: str
    http_version: str
    headers: tuple[HARNameValue, ...] = ()
    content: HARContent = field(default_factory=lambda: HARContent(0, "", ""))
    headers_size: int = UNKNOWN_SIZE
    body_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "statusText": self.status_text,
            "httpVersion": self.http_version,
            "headers": [h.to_dict() for h in self.headers],
            "content": self.content.to_dict(),
            "headersSize": self.headers_size,
            "bodySize": self.body_size,
        }

    @classmethod
    def from_dict(cls, data: Any, where: str = "response") -> HARResponse:
        status = _require(data, "status", int, where)
        content = HARContent.from_dict(data.get("content", {}), f"{where}.content")
        return cls(
            status=status,
            status_text=_optional(data, "statusText", str, "", where),
            http_version=_optional(data, "httpVersion", str, "", where),
            headers=_pairs_from_list(data, "headers", where),
            content=content,
            headers_size=_optional(data, "headersSize", int, UNKNOWN_SIZE, where),
            body_size=_optional(data, "bodySize", int, content.size, where),
        )


@dataclass(frozen=True)
class HAREntry:
    """Single request/response exchange."""

    started_date_time: str
    time: float
    request: HARRequest
    response: HARResponse
    timings: HARTimings = field(default_factory=HARTimings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "startedDateTime": self.started_date_time,
            "time": self.time,
            "request": self.request.to_dict(),
            "response": self.response.to_dict(),
            "cache": {},
            "timings": self.timings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any, where: str = "entry") -> HAREntry:
        if not isinstance(data, dict):
            raise HARParseError(f"{where} must be an object")
        timings = data.get("timings")
        return cls(
            started_date_time=_optional(data, "startedDateTime", str, "", where),
            time=float(_optional(data, "time", (int, float), 0.0, where)),
            request=HARRequest.from_dict(data.get("request"), f"{where}.request"),
            response=HARResponse.from_dict(data.get("response"), f"{where}.response"),
            timings=HARTimings() if timings is None else HARTimings.from_dict(timings, f"{where}.timings"),
        )


@dataclass(frozen=True)
class HARCreator:
    """Identity of the tool that produced a HAR document."""

    name: str = "harlog"
    version: str = "1.0"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version}


@dataclass(frozen=True)
class HARLog:
    """A complete HAR document; entries are in chronological order."""

    entries: tuple[HAREntry, ...] = ()
    creator: HARCreator = field(default_factory=HARCreator)
    version: str = HAR_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "log": {
                "version": self.version,
                "creator": self.creator.to_dict(),
                "entries": [e.to_dict() for e in self.entries],
            }
        }
