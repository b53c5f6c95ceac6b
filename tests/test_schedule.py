"""Expected dose counts for medication courses."""

from datetime import date, datetime

import pytest

from dosetrack.db.models.medication import Medication
from dosetrack.services.schedule import (
    doses_per_day,
    expected_total_doses,
    expected_total_for,
    is_active_on,
    scheduled_times_on,
)


def _course(reminder_times=("08:00", "20:00"), frequency=None, start=date(2026, 1, 6), end=date(2026, 1, 7)):
    return Medication(
        medication_name="Carprofen",
        frequency=frequency,
        reminder_times=list(reminder_times),
        start_date=start,
        end_date=end,
    )


def test_single_day_single_dose():
    assert expected_total_doses(date(2026, 1, 6), date(2026, 1, 6), 1) == 1


def test_two_days_twice_daily():
    assert expected_total_doses(date(2026, 1, 6), date(2026, 1, 7), 2) == 4


def test_partial_day_timestamps_are_truncated():
    # 23:58 -> 00:02 next day is a two-calendar-day course, not zero days.
    assert expected_total_doses(datetime(2026, 1, 6, 23, 58), datetime(2026, 1, 7, 0, 2), 1) == 2


def test_string_dates_do_not_drift():
    assert expected_total_doses("2026-01-06", "2026-01-06T23:00:00Z", 3) == 3


def test_formula_holds_across_ranges():
    start = date(2026, 1, 28)
    for span in range(0, 40, 7):
        end = date.fromordinal(start.toordinal() + span)
        for per_day in (0, 1, 2, 3):
            assert expected_total_doses(start, end, per_day) == (span + 1) * per_day


def test_open_ended_course_has_no_expected_total():
    assert expected_total_doses(date(2026, 1, 6), None, 2) is None
    assert expected_total_for(_course(end=None)) is None


def test_end_before_start_is_zero():
    assert expected_total_doses(date(2026, 1, 7), date(2026, 1, 6), 2) == 0


def test_doses_per_day_from_reminder_times():
    assert doses_per_day(_course(reminder_times=("08:00", "14:00", "20:00"))) == 3


@pytest.mark.parametrize(
    "frequency, expected",
    [("1x daily", 1), ("2x daily", 2), ("3X Daily", 3), ("as needed", 1), (None, 1)],
)
def test_doses_per_day_without_reminder_times(frequency, expected):
    assert doses_per_day(_course(reminder_times=(), frequency=frequency)) == expected


def test_expected_total_for_course():
    assert expected_total_for(_course()) == 4


def test_scheduled_times_on_sorts_and_respects_window():
    course = _course(reminder_times=("20:00", "08:00"))
    assert scheduled_times_on(course, date(2026, 1, 6)) == [
        datetime(2026, 1, 6, 8, 0),
        datetime(2026, 1, 6, 20, 0),
    ]
    assert scheduled_times_on(course, date(2026, 1, 8)) == []
    assert not is_active_on(course, date(2026, 1, 5))
    assert is_active_on(_course(end=None), date(2027, 1, 1))
