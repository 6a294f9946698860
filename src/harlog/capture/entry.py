"""Entry assembly shared by the capture adapters."""

from __future__ import annotations

import time
from datetime import UTC, datetime

from harlog.har.models import HAREntry, HARRequest, HARResponse, HARTimings


class ExchangeClock:
    """Wall-clock start time and monotonic duration of one exchange."""

    def __init__(self) -> None:
        self.started = datetime.now(UTC)
        self._start = time.perf_counter()

    @property
    def started_iso(self) -> str:
        """Return the start time in ISO 8601 with millisecond precision."""
        return self.started.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def elapsed_ms(self) -> float:
        """Return milliseconds since the exchange started."""
        return max((time.perf_counter() - self._start) * 1000.0, 0.0)


def build_entry(clock: ExchangeClock, request: HARRequest, response: HARResponse) -> HAREntry:
    """Assemble a finished entry; the whole duration is attributed to wait."""
    elapsed = clock.elapsed_ms()
    return HAREntry(
        started_date_time=clock.started_iso,
        time=elapsed,
        request=request,
        response=response,
        timings=HARTimings(send=0.0, wait=elapsed, receive=0.0),
    )
