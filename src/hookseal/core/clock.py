"""Clock sources for freshness checks.

Validators and signers never read the wall clock directly; they ask a
``Clock``. Production code uses ``SystemClock``, tests use ``FrozenClock``
so time can be moved without sleeping.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """Clock that returns a fixed instant until advanced.

    Example:
        clock = FrozenClock(datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc))
        clock.advance(600)
    """

    def __init__(self, instant: datetime | None = None) -> None:
        if instant is None:
            instant = datetime.now(timezone.utc)
        self._instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def advance(self, seconds: float) -> None:
        """Move the clock forward (or backward, for negative values)."""
        self._instant += timedelta(seconds=seconds)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
