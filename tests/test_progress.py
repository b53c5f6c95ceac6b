"""Progress statistics and the confirmation view."""

from datetime import date, datetime

import pytest

from dosetrack.db.models.medication_dose import DOSE_GIVEN, DOSE_SKIPPED
from dosetrack.services.progress import (
    NEXT_LATER,
    NEXT_OVERDUE,
    NEXT_TODAY,
    NEXT_TOMORROW,
    Progress,
    compute_progress,
    confirmation_view,
    describe_last_given,
    describe_next_dose,
    is_complete,
    percentage,
)

from .conftest import NOW


@pytest.mark.parametrize(
    "given, total, expected",
    [(0, 4, 0), (1, 8, 13), (2, 4, 50), (1, 3, 33), (2, 3, 67), (4, 4, 100), (5, 4, 100), (3, 0, 0)],
)
def test_percentage(given, total, expected):
    assert percentage(given, total) == expected


def test_completion_boundary():
    assert not is_complete(3, 4)
    assert is_complete(4, 4)
    assert is_complete(5, 4)
    assert not is_complete(0, 0)


@pytest.mark.parametrize(
    "scheduled, kind, label",
    [
        (datetime(2026, 1, 6, 8, 0), NEXT_OVERDUE, "Overdue, was 8:00 AM"),
        (datetime(2026, 1, 5, 20, 0), NEXT_OVERDUE, "Overdue"),
        (datetime(2026, 1, 6, 20, 0), NEXT_TODAY, "Today 8:00 PM"),
        (datetime(2026, 1, 7, 8, 0), NEXT_TOMORROW, "Tomorrow 8:00 AM"),
        (datetime(2026, 1, 9, 8, 30), NEXT_LATER, "Fri Jan 9, 8:30 AM"),
    ],
)
def test_describe_next_dose(scheduled, kind, label):
    next_dose = describe_next_dose(scheduled, NOW)
    assert next_dose.kind == kind
    assert next_dose.label == label
    assert next_dose.scheduled_time == scheduled


@pytest.mark.parametrize(
    "given_time, label",
    [
        (datetime(2026, 1, 6, 8, 5), "Today 8:05 AM"),
        (datetime(2026, 1, 5, 20, 0), "Yesterday 8:00 PM"),
        (datetime(2026, 1, 2, 9, 0), "Jan 2 9:00 AM"),
    ],
)
def test_describe_last_given(given_time, label):
    assert describe_last_given(given_time, NOW) == label


def test_fresh_course(course, ledger):
    medication, _ = course
    progress = compute_progress(medication, ledger.for_medication(medication.medication_id), NOW)

    assert progress.given_count == 0
    assert progress.total_count == 4
    assert progress.remaining_count == 4
    assert progress.percentage == 0
    assert not progress.is_complete
    assert progress.next_dose.label == "Overdue, was 8:00 AM"
    assert progress.days_remaining == 2
    assert progress.last_given_label is None
    assert not progress.total_is_lower_bound
    assert not progress.degraded


def test_half_way_and_complete(course, ledger):
    medication, doses = course
    ledger.conditional_update(doses[0].dose_id, DOSE_GIVEN, datetime(2026, 1, 6, 8, 5))
    ledger.conditional_update(doses[1].dose_id, DOSE_GIVEN, datetime(2026, 1, 6, 20, 1))

    half = compute_progress(medication, ledger.for_medication(medication.medication_id), datetime(2026, 1, 6, 21, 0))
    assert (half.given_count, half.total_count, half.percentage) == (2, 4, 50)
    assert half.next_dose.label == "Tomorrow 8:00 AM"
    assert half.last_given_label == "Today 8:01 PM"

    ledger.conditional_update(doses[2].dose_id, DOSE_GIVEN, datetime(2026, 1, 7, 8, 0))
    ledger.conditional_update(doses[3].dose_id, DOSE_GIVEN, datetime(2026, 1, 7, 20, 0))
    done = compute_progress(medication, ledger.for_medication(medication.medication_id), datetime(2026, 1, 7, 20, 5))
    assert done.percentage == 100
    assert done.is_complete
    assert done.remaining_count == 0
    assert done.next_dose is None
    assert done.days_remaining is None


def test_skipped_doses_do_not_count_as_given(course, ledger):
    medication, doses = course
    ledger.conditional_update(doses[0].dose_id, DOSE_SKIPPED, NOW)
    progress = compute_progress(medication, ledger.for_medication(medication.medication_id), NOW)

    assert progress.given_count == 0
    assert progress.next_dose.scheduled_time == doses[1].scheduled_time


def test_open_ended_course_counts_existing_rows(make_medication, ledger):
    medication = make_medication(end_date=None)
    dose = ledger.mint_pending_dose(medication, datetime(2026, 1, 6, 8, 0), NOW)
    ledger.mint_pending_dose(medication, datetime(2026, 1, 6, 20, 0), NOW)
    ledger.conditional_update(dose.dose_id, DOSE_GIVEN, NOW)

    progress = compute_progress(medication, ledger.for_medication(medication.medication_id), NOW)
    assert progress.total_count == 2
    assert progress.total_is_lower_bound
    assert progress.days_remaining is None


def test_days_remaining_never_negative(make_medication):
    medication = make_medication(start_date=date(2025, 12, 1), end_date=date(2025, 12, 3))
    assert compute_progress(medication, [], NOW).days_remaining == 0


def test_minimal_progress():
    given = Progress.minimal(DOSE_GIVEN)
    assert (given.given_count, given.total_count, given.percentage, given.is_complete) == (1, 1, 100, True)
    assert given.degraded

    skipped = Progress.minimal(DOSE_SKIPPED)
    assert (skipped.given_count, skipped.percentage, skipped.is_complete) == (0, 0, False)


def test_confirmation_view_mid_course():
    view = confirmation_view(pet="Biscuit", med="Amoxicillin", count=2, total=4, next_label="Tomorrow 8:00 AM")
    assert view["headline"] == "Dose 2 of 4 recorded"
    assert view["message"] == "2 doses to go"
    assert view["percentage"] == 50
    assert view["next_dose"] == "Tomorrow 8:00 AM"


def test_confirmation_view_one_left():
    assert confirmation_view(count=3, total=4)["message"] == "Just 1 more dose!"


def test_confirmation_view_complete_hides_next_dose():
    view = confirmation_view(pet="Biscuit", med="Amoxicillin", count=4, total=4, next_label="Tomorrow 8:00 AM")
    assert view["headline"] == "All doses recorded!"
    assert view["message"] == "Treatment complete!"
    assert view["next_dose"] is None


def test_confirmation_view_without_counts():
    view = confirmation_view()
    assert view["pet_name"] == "Your pet"
    assert view["headline"] == "Dose recorded"
    assert view["message"] == "You can close this tab now."
    assert not view["has_progress"]


def test_confirmation_view_skipped():
    assert confirmation_view(pet="Biscuit", count=1, total=4, skipped=True)["headline"] == "Dose skipped"
