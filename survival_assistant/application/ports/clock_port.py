from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Port for time-related operations.

    Why (SAM): Sliding-window admission and document load stamps need a
    controllable clock. Infrastructure provides SystemClock; tests step a fake.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return current timezone-aware UTC datetime."""
        ...
