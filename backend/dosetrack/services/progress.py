"""Module: progress.

Live course statistics for dose pages and confirmation screens.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Iterable

from dosetrack.core.local_dates import (
    days_between,
    format_clock,
    format_month_day,
    format_weekday,
)
from dosetrack.db.models.medication import Medication
from dosetrack.db.models.medication_dose import DOSE_GIVEN, DOSE_PENDING, MedicationDose
from dosetrack.services.schedule import expected_total_for

NEXT_OVERDUE = "overdue"
NEXT_TODAY = "today"
NEXT_TOMORROW = "tomorrow"
NEXT_LATER = "later"


@dataclass(frozen=True)
class NextDose:
    kind: str
    scheduled_time: datetime
    label: str


@dataclass(frozen=True)
class Progress:
    given_count: int
    total_count: int
    remaining_count: int
    percentage: int
    is_complete: bool
    next_dose: NextDose | None = None
    days_remaining: int | None = None
    # Open-ended courses count existing rows, which can only undercount.
    total_is_lower_bound: bool = False
    last_given_label: str | None = None
    degraded: bool = False

    @classmethod
    def minimal(cls, target_status: str) -> "Progress":
        """Stand-in view when the ledger read times out after a successful transition."""
        given = 1 if target_status == DOSE_GIVEN else 0
        return cls(
            given_count=given,
            total_count=1,
            remaining_count=1 - given,
            percentage=percentage(given, 1),
            is_complete=is_complete(given, 1),
            degraded=True,
        )

    def as_dict(self) -> dict:
        return asdict(self)


def percentage(given_count: int, total_count: int) -> int:
    if total_count <= 0:
        return 0
    # Half-up rounding, so 1 of 8 shows 13%.
    value = math.floor(100 * given_count / total_count + 0.5)
    return max(0, min(100, value))


def is_complete(given_count: int, total_count: int) -> bool:
    return total_count > 0 and given_count >= total_count


def describe_next_dose(scheduled_time: datetime, now: datetime) -> NextDose:
    clock = format_clock(scheduled_time)

    if scheduled_time < now:
        if days_between(scheduled_time, now) == 0:
            return NextDose(NEXT_OVERDUE, scheduled_time, f"Overdue, was {clock}")
        return NextDose(NEXT_OVERDUE, scheduled_time, "Overdue")

    day_offset = days_between(now, scheduled_time)
    if day_offset == 0:
        return NextDose(NEXT_TODAY, scheduled_time, f"Today {clock}")
    if day_offset == 1:
        return NextDose(NEXT_TOMORROW, scheduled_time, f"Tomorrow {clock}")
    day = scheduled_time.date()
    return NextDose(NEXT_LATER, scheduled_time, f"{format_weekday(day)} {format_month_day(day)}, {clock}")


def describe_last_given(given_time: datetime, now: datetime) -> str:
    offset = days_between(given_time, now)
    if offset == 0:
        day_label = "Today"
    elif offset == 1:
        day_label = "Yesterday"
    else:
        day_label = format_month_day(given_time.date())
    return f"{day_label} {format_clock(given_time)}"


def compute_progress(medication: Medication, doses: Iterable[MedicationDose], now: datetime) -> Progress:
    doses = list(doses)
    given = [d for d in doses if d.status == DOSE_GIVEN]
    pending = sorted(
        (d for d in doses if d.status == DOSE_PENDING),
        key=lambda d: d.scheduled_time,
    )

    expected = expected_total_for(medication)
    total = expected if expected is not None else len(doses)
    given_count = len(given)
    complete = is_complete(given_count, total)

    next_dose = describe_next_dose(pending[0].scheduled_time, now) if pending else None

    days_remaining = None
    if not complete and medication.end_date is not None:
        days_remaining = max(0, days_between(now, medication.end_date) + 1)

    given_times = [d.given_time for d in given if d.given_time is not None]
    last_given_label = describe_last_given(max(given_times), now) if given_times else None

    return Progress(
        given_count=given_count,
        total_count=total,
        remaining_count=max(0, total - given_count),
        percentage=percentage(given_count, total),
        is_complete=complete,
        next_dose=next_dose,
        days_remaining=days_remaining,
        total_is_lower_bound=expected is None,
        last_given_label=last_given_label,
    )


def confirmation_view(
    pet: str | None = None,
    med: str | None = None,
    count: int | None = None,
    total: int | None = None,
    next_label: str | None = None,
    skipped: bool = False,
) -> dict:
    """Render the post-action page purely from its URL parameters."""
    pet_name = pet or "Your pet"
    medication_name = med or "medication"
    has_counts = count is not None and total is not None

    view = {
        "pet_name": pet_name,
        "medication_name": medication_name,
        "skipped": skipped,
        "has_progress": has_counts,
        "given_count": count,
        "total_count": total,
        "percentage": None,
        "remaining_count": None,
        "is_complete": False,
        "next_dose": None,
    }

    if has_counts:
        view["percentage"] = percentage(count, total)
        view["remaining_count"] = max(0, total - count)
        view["is_complete"] = is_complete(count, total)

    if skipped:
        view["headline"] = "Dose skipped"
    elif view["is_complete"]:
        view["headline"] = "All doses recorded!"
    elif has_counts:
        view["headline"] = f"Dose {count} of {total} recorded"
    else:
        view["headline"] = "Dose recorded"

    if view["is_complete"]:
        view["message"] = "Treatment complete!"
    elif view["remaining_count"] == 1:
        view["message"] = "Just 1 more dose!"
    elif view["remaining_count"]:
        view["message"] = f"{view['remaining_count']} doses to go"
    else:
        view["message"] = "You can close this tab now."

    if next_label and not view["is_complete"]:
        view["next_dose"] = next_label
    return view
