"""
Injectable "now" for the timesheet kernel.

Services stamp ``updated_at``, ``submitted_at`` and ``approved_at`` from a
``Clock`` they receive at construction; nothing in the kernel calls
``datetime.now()`` directly.  Engines never need the time at all: every
calendar computation works on ``date`` values passed in.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current instant.  ``now()`` is always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen clock for tests.

    Returns ``instant`` until moved with ``advance``, so two timestamps
    taken in one service call are equal.
    """

    def __init__(self, instant: datetime | None = None):
        if instant is None:
            instant = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        if instant.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, **delta: float) -> datetime:
        """Move forward by ``timedelta(**delta)`` and return the new instant."""
        self._instant += timedelta(**delta)
        return self._instant
