"""Module: local_dates.

Date-only arithmetic for medication courses.

Every timestamp the dose core stores or compares is a naive wall-clock value
in the configured local zone, and every calendar comparison goes through the
helpers below so that "YYYY-MM-DD" strings are never shifted through UTC.
"""

from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from dosetrack.core.config import settings

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def local_zone(tz: str | None = None) -> ZoneInfo:
    return ZoneInfo(tz or settings.local_timezone)


def local_now(tz: str | None = None) -> datetime:
    """Current wall-clock time in the local zone, without tzinfo."""
    return datetime.now(local_zone(tz)).replace(tzinfo=None, microsecond=0)


def to_local_naive(value: datetime, tz: str | None = None) -> datetime:
    """Convert an aware timestamp to local wall-clock; naive ones are already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(local_zone(tz)).replace(tzinfo=None)


def local_today(tz: str | None = None) -> date:
    return local_now(tz).date()


def parse_local_date(value: date | datetime | str) -> date:
    """Return the calendar date a value names, ignoring time-of-day and offsets.

    "2026-01-06", "2026-01-06T23:58:00Z" and datetime(2026, 1, 6, 23, 58) all
    name 2026-01-06.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")

    cleaned = value.strip()
    if len(cleaned) < 10:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}")
    return date.fromisoformat(cleaned[:10])


def parse_clock(value: str | time) -> time:
    """Parse a reminder time such as "08:00" or "8:05"."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time (expected HH:MM): {value!r}")
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Invalid time (expected HH:MM): {value!r}")
    return time(hour, minute)


def days_between(start: date | datetime | str, end: date | datetime | str) -> int:
    """Whole calendar days from start to end (negative when end precedes start)."""
    return (parse_local_date(end) - parse_local_date(start)).days


def inclusive_day_span(start: date | datetime | str, end: date | datetime | str) -> int:
    return days_between(start, end) + 1


def format_clock(value: time | datetime) -> str:
    hour = value.hour % 12 or 12
    suffix = "PM" if value.hour >= 12 else "AM"
    return f"{hour}:{value.minute:02d} {suffix}"


def format_weekday(value: date) -> str:
    return _WEEKDAYS[value.weekday()]


def format_month_day(value: date) -> str:
    return f"{_MONTHS[value.month - 1]} {value.day}"
