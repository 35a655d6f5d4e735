from datetime import date, datetime, timedelta, timezone
from typing import Protocol, runtime_checkable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from photovocab.config import get_settings


def _load_zone():
    tz_name = get_settings().tz
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        return timezone.utc


LOCAL_TZ = _load_zone()


def now_local() -> datetime:
    return datetime.now(LOCAL_TZ)


def today_local() -> date:
    return now_local().date()


def parse_day(value: date | datetime | str | None) -> date | None:
    """Coerce a stored review date (ISO string, date or datetime) to a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    def now(self) -> datetime:
        return now_local()

    def today(self) -> date:
        return today_local()


class FixedClock:
    """Clock pinned to a single instant, for tests and replays."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, **kwargs) -> None:
        self._now = self._now + timedelta(**kwargs)
