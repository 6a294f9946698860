"""Tests for the outbound requests transport adapter."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import requests
from requests.adapters import HTTPAdapter
from urllib3 import HTTPHeaderDict

from harlog.capture.transport import HARTransportAdapter
from harlog.exceptions import ArchiveWriteError, PathEscapeError
from harlog.har.models import HARRequest
from harlog.recorder import HARRecorder

from helpers import FakeAdapter

API_URL = "https://api.example.com/users?id=123"
RESPONSE_BODY = b'{"status":"ok"}'


def _session(recorder: HARRecorder, fake: FakeAdapter) -> requests.Session:
    return recorder.session(fake)


def _read_har(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text())


@pytest.fixture
def fake() -> FakeAdapter:
    return FakeAdapter(body=RESPONSE_BODY, headers=[("Content-Type", "application/json")])


class TestHARTransportAdapter:
    def test_records_exchange(self, recorder: HARRecorder, fake: FakeAdapter) -> None:
        session = _session(recorder, fake)

        session.post(API_URL, data=b'{"name":"x"}', headers={"Content-Type": "application/json"})

        har = _read_har(recorder.output_dir / "capture.har")
        entry = har["log"]["entries"][0]
        assert entry["request"]["method"] == "POST"
        assert entry["request"]["url"] == API_URL
        assert entry["request"]["queryString"] == [{"name": "id", "value": "123"}]
        assert entry["request"]["postData"] == {"mimeType": "application/json", "text": '{"name":"x"}'}
        assert entry["request"]["bodySize"] == 12
        assert entry["response"]["status"] == 200
        assert entry["response"]["statusText"] == "OK"
        assert entry["response"]["httpVersion"] == "HTTP/1.1"
        assert entry["response"]["content"] == {
            "size": len(RESPONSE_BODY),
            "mimeType": "application/json",
            "text": '{"status":"ok"}',
        }
        assert entry["time"] >= 0
        assert entry["startedDateTime"].endswith("Z")

    def test_caller_can_still_read_body(self, recorder: HARRecorder, fake: FakeAdapter) -> None:
        response = _session(recorder, fake).get(API_URL)

        assert response.content == RESPONSE_BODY
        assert response.json() == {"status": "ok"}
        assert response.raw.read() == RESPONSE_BODY

    def test_streaming_caller_can_still_read_body(self, recorder: HARRecorder, fake: FakeAdapter) -> None:
        response = _session(recorder, fake).get(API_URL, stream=True)

        assert b"".join(response.iter_content(chunk_size=4)) == RESPONSE_BODY
        assert (recorder.output_dir / "capture.har").exists()

    def test_request_is_forwarded_unchanged(self, recorder: HARRecorder, fake: FakeAdapter) -> None:
        _session(recorder, fake).post(API_URL, data=b"payload")

        assert len(fake.sent) == 1
        assert fake.sent[0].url == API_URL
        assert fake.sent[0].body == b"payload"

    def test_duplicate_response_headers(self, recorder: HARRecorder) -> None:
        fake = FakeAdapter(body=b"", headers=[("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")])

        _session(recorder, fake).get(API_URL)

        headers = _read_har(recorder.output_dir / "capture.har")["log"]["entries"][0]["response"]["headers"]
        assert [h["value"] for h in headers if h["name"] == "Set-Cookie"] == ["a=1", "b=2"]

    def test_transport_error_propagates_without_entry(self, recorder: HARRecorder) -> None:
        fake = FakeAdapter(error=requests.ConnectionError("connection refused"))

        with pytest.raises(requests.ConnectionError, match="connection refused"):
            _session(recorder, fake).get(API_URL)

        assert not recorder.output_dir.exists()

    def test_drain_error_propagates_without_entry(self, recorder: HARRecorder) -> None:
        class BrokenRaw:
            headers = HTTPHeaderDict()

            def read(self, *args: Any, **kwargs: Any) -> bytes:
                raise OSError("connection reset")

        fake = FakeAdapter(raw_factory=BrokenRaw)

        with pytest.raises(OSError, match="connection reset"):
            _session(recorder, fake).get(API_URL)

        assert not recorder.output_dir.exists()

    def test_persist_failure_does_not_break_request(
        self, tmp_path: Path, fake: FakeAdapter, reported: list[tuple[Exception, HARRequest]]
    ) -> None:
        recorder = HARRecorder(
            output_dir=tmp_path / "out",
            filename_fn=lambda req: "../escape.har",
            on_error=lambda exc, req: reported.append((exc, req)),
        )

        response = _session(recorder, fake).get(API_URL)

        assert response.status_code == 200
        assert response.content == RESPONSE_BODY
        assert not (tmp_path / "escape.har").exists()
        assert len(reported) == 1
        assert isinstance(reported[0][0], PathEscapeError)
        assert reported[0][1].url == API_URL

    @pytest.mark.parametrize("name", [None, "a\x00b.har"])
    def test_unusable_filename_is_reported(
        self,
        tmp_path: Path,
        fake: FakeAdapter,
        reported: list[tuple[Exception, HARRequest]],
        name: str | None,
    ) -> None:
        recorder = HARRecorder(
            output_dir=tmp_path / "out",
            filename_fn=lambda req: name,  # type: ignore[arg-type, return-value]
            on_error=lambda exc, req: reported.append((exc, req)),
        )

        response = _session(recorder, fake).get(API_URL)

        assert response.status_code == 200
        assert response.content == RESPONSE_BODY
        assert len(reported) == 1
        assert isinstance(reported[0][0], ArchiveWriteError)

    def test_close_delegates(self, recorder: HARRecorder, fake: FakeAdapter) -> None:
        adapter = HARTransportAdapter(recorder, fake)

        adapter.close()

        assert fake.closed

    def test_defaults_to_http_adapter(self, recorder: HARRecorder) -> None:
        assert isinstance(HARTransportAdapter(recorder).adapter, HTTPAdapter)

    def test_session_mounts_adapter(self, recorder: HARRecorder) -> None:
        session = recorder.session()

        assert isinstance(session.get_adapter("http://example.com/"), HARTransportAdapter)
        assert isinstance(session.get_adapter("https://example.com/"), HARTransportAdapter)
