from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, TypeVar
from zoneinfo import ZoneInfo

from .config import get_settings

T = TypeVar("T", time, datetime)


def overlaps(a_start: T, a_end: T, b_start: T, b_end: T) -> bool:
    """Half-open overlap test; intervals that only touch do not overlap."""
    return a_start < b_end and a_end > b_start


def duration_hours(start: datetime, end: datetime) -> float:
    hours = (end - start).total_seconds() / 3600.0
    return round(max(0.0, hours), 2)


def sunday_based_weekday(value: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def minutes_between(earlier: datetime, later: datetime) -> int:
    return int((later - earlier).total_seconds() // 60)


def lead_window_end(now: datetime, minutes: int) -> time:
    """Latest start time today within ``minutes`` of ``now``; the rest of the day once that crosses midnight."""
    threshold = now + timedelta(minutes=minutes)
    return threshold.time() if threshold.date() == now.date() else time.max


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_now() -> datetime:
    """Wall-clock time in the operating timezone, without tzinfo."""
    tz = ZoneInfo(get_settings().default_timezone)
    return datetime.now(tz).replace(tzinfo=None)
