from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol

from permitflow.domain.deadlines import as_utc


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Synthetic time source; only moves when told to."""

    def __init__(self, current: datetime) -> None:
        self._current = as_utc(current)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = as_utc(current)

    def advance(self, **kwargs: float) -> datetime:
        self._current = self._current + timedelta(**kwargs)
        return self._current
