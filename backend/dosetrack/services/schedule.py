"""Module: schedule.

Expected dose counts for a medication course.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from dosetrack.core.local_dates import days_between, parse_clock, parse_local_date
from dosetrack.db.models.medication import Medication

_FREQUENCY_PATTERN = re.compile(r"^\s*(\d+)\s*x\s*daily\s*$", re.IGNORECASE)


def expected_total_doses(
    start_date: date | datetime | str,
    end_date: date | datetime | str | None,
    doses_per_day: int,
) -> int | None:
    """Doses a course should produce over its full inclusive date range.

    Both ends are truncated to calendar days first, so a start captured at
    23:58 and an end at 00:02 the next day span two days. Returns None for an
    open-ended course; callers then count ledger rows and treat the result as
    a lower bound.
    """
    if end_date is None:
        return None
    span = days_between(start_date, end_date)
    if span < 0:
        return 0
    return (span + 1) * max(0, doses_per_day)


def doses_per_day(medication: Medication) -> int:
    times = [t for t in (medication.reminder_times or []) if t]
    if times:
        return len(times)

    # Courses saved without reminder times fall back to the descriptive frequency, then one a day.
    match = _FREQUENCY_PATTERN.match(medication.frequency or "")
    if match and int(match.group(1)) > 0:
        return int(match.group(1))
    return 1


def expected_total_for(medication: Medication) -> int | None:
    return expected_total_doses(medication.start_date, medication.end_date, doses_per_day(medication))


def is_active_on(medication: Medication, day: date) -> bool:
    day = parse_local_date(day)
    if day < parse_local_date(medication.start_date):
        return False
    if medication.end_date is not None and day > parse_local_date(medication.end_date):
        return False
    return True


def scheduled_times_on(medication: Medication, day: date) -> list[datetime]:
    """Due times for one calendar day, in clock order; empty outside the course."""
    if not is_active_on(medication, day):
        return []
    day = parse_local_date(day)
    clocks = sorted(parse_clock(t) for t in (medication.reminder_times or []) if t)
    return [datetime.combine(day, clock) for clock in clocks]
