"""Tests for the HAR recorder wiring."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from harlog.exceptions import ArchiveWriteError
from harlog.har.models import HARNameValue, HARRequest
from harlog.recorder import HARRecorder, log_persist_failure

from helpers import make_har_entry


class TestHARRecorder:
    def test_record_returns_written_path(self, recorder: HARRecorder) -> None:
        path = recorder.record(make_har_entry())

        assert path is not None
        assert path.name == "capture.har"
        assert json.loads(path.read_text())["log"]["entries"][0]["request"]["method"] == "GET"

    def test_record_reports_failures(self, tmp_path: Path) -> None:
        reported: list[tuple[Exception, HARRequest]] = []
        recorder = HARRecorder(
            output_dir=tmp_path,
            filename_fn=lambda req: "/definitely/elsewhere.har",
            on_error=lambda exc, req: reported.append((exc, req)),
        )
        entry = make_har_entry()

        assert recorder.record(entry) is None
        assert len(reported) == 1
        assert reported[0][1] is entry.request

    def test_default_output_dir_from_settings(self, isolated_config: Path) -> None:
        recorder = HARRecorder()

        assert recorder.output_dir == isolated_config

    def test_default_creator_from_settings(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HARLOG_CREATOR_NAME", "my-proxy")
        monkeypatch.setenv("HARLOG_CREATOR_VERSION", "3.2")
        from harlog.config import reset_settings

        reset_settings()
        recorder = HARRecorder(output_dir=tmp_path, filename_fn=lambda req: "x.har")

        path = recorder.record(make_har_entry())

        assert path is not None
        assert json.loads(path.read_text())["log"]["creator"] == {"name": "my-proxy", "version": "3.2"}

    def test_default_error_sink_logs(self, tmp_path: Path) -> None:
        recorder = HARRecorder(output_dir=tmp_path, filename_fn=lambda req: "../x.har")

        with capture_logs() as logs:
            assert recorder.record(make_har_entry(method="PUT", url="https://example.com/items/1")) is None

        failures = [log for log in logs if log["event"] == "har_persist_failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "error"
        assert failures[0]["method"] == "PUT"
        assert failures[0]["path"] == "/items/1"
        assert failures[0]["host"] == "example.com"
        assert "outside of output directory" in failures[0]["error"]


class TestLogPersistFailure:
    def test_prefers_host_header(self) -> None:
        request = HARRequest(
            method="GET",
            url="http://10.0.0.1/",
            http_version="HTTP/1.1",
            headers=(HARNameValue("Host", "app.local"),),
        )

        with capture_logs() as logs:
            log_persist_failure(ArchiveWriteError("disk full"), request)

        assert logs[0]["host"] == "app.local"
        assert logs[0]["error"] == "disk full"
