"""Time sources.

Anything that compares against "now" (invoice closed or not, installment status)
takes a clock instead of reading the system time, so tests can pin it.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from .config import settings


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    def __init__(self, timezone: str | None = None) -> None:
        self._zone = ZoneInfo(timezone or settings.TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(self._zone).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    def __init__(self, moment: datetime) -> None:
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def today(self) -> date:
        return self._moment.date()

    def set(self, moment: datetime) -> None:
        self._moment = moment
