"""Live HTTP message types rebuilt from HAR entries."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import NamedTuple

import requests
from urllib3 import HTTPHeaderDict


class HTTPVersion(NamedTuple):
    """Protocol version decomposed from an ``HTTP/major.minor`` string.

    Malformed strings keep ``proto`` as given with zero components.
    """

    proto: str
    major: int = 0
    minor: int = 0

    @property
    def as_int(self) -> int:
        """Return urllib3's integer form (11 for HTTP/1.1, 0 when unknown)."""
        return self.major * 10 + self.minor


@dataclass(frozen=True)
class HTTPRequest:
    """Replayable HTTP request.

    ``headers`` keeps one value per occurrence, so duplicate headers survive.
    ``body`` is None when the recorded request had no body, which is distinct
    from an empty body (``b""``).
    """

    method: str
    url: str
    headers: HTTPHeaderDict
    body: bytes | None
    http_version: HTTPVersion

    def body_stream(self) -> io.BytesIO | None:
        """Return a fresh reader over the body, or None if there is no body."""
        if self.body is None:
            return None
        return io.BytesIO(self.body)

    def prepare(self) -> requests.PreparedRequest:
        """Build a ``requests.PreparedRequest`` suitable for ``Session.send``.

        The prepared request carries a copy of the duplicate-preserving header
        dict rather than requests' own single-valued mapping; urllib3 sends
        each value as a separate header line.
        """
        prepared = requests.Request(method=self.method, url=self.url).prepare()
        prepared.body = self.body
        prepared.headers = HTTPHeaderDict(self.headers)  # type: ignore[assignment]
        return prepared


@dataclass(frozen=True)
class HTTPMessage:
    """A recorded request paired with its response."""

    request: HTTPRequest
    response: requests.Response
