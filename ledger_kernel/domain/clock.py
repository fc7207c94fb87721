"""
Clock -- injectable time source.

Responsibility:
    Services and engines never call ``datetime.now()`` directly; they receive
    a Clock.  Movement dates, entry dates, posting timestamps, reconciliation
    timestamps, the date inside generated numbers and the "as of" instant
    used for aging all come from it.

Architecture position:
    Kernel > Domain -- pure, no I/O except SystemClock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

# 2024-01-01 12:00 UTC; midday so local-date conversions stay on the same day
DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """
    Source of "now".

    Guarantees:
        - ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock that only moves when told to.

    Guarantees:
        - ``now()`` returns the same instant on repeated calls until
          ``advance()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = (fixed_time or DEFAULT_TEST_TIME).astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time.astimezone(timezone.utc)

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
