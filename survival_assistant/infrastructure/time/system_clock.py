"""System clock adapter providing real UTC time.

This is the production implementation of ClockPort.
For tests, inject FakeClock or similar test doubles.
"""

from __future__ import annotations

from datetime import UTC, datetime

from ...application.ports.clock_port import ClockPort


class SystemClock(ClockPort):
    """Production clock used by the document store and the rate limiter."""

    def now(self) -> datetime:  # pragma: no cover - trivial
        return datetime.now(UTC)
