"""Injectable time source used for TTL bookkeeping and file timestamps."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ManualClock:
    """Callable clock that only moves when told to (deterministic TTL tests)."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or utc_now()

    def __call__(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now

    def set(self, when: datetime) -> None:
        self._now = when
