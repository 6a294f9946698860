"""Fixtures shared by unit tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from harlog.har.models import HARRequest
from harlog.recorder import HARRecorder


@pytest.fixture
def reported() -> list[tuple[Exception, HARRequest]]:
    """Collects persistence failures passed to the recorder's error sink."""
    return []


@pytest.fixture
def recorder(tmp_path: Path, reported: list[tuple[Exception, HARRequest]]) -> HARRecorder:
    """Recorder writing fixed-name files into a temporary directory."""
    return HARRecorder(
        output_dir=tmp_path / "out",
        filename_fn=lambda req: "capture.har",
        on_error=lambda exc, req: reported.append((exc, req)),
    )
