from datetime import date, time, timedelta

import models
from services.availability import TimeWindow, day_of_week, get_availability, overlaps, working_windows
from factories import DOCTOR_ID, MONDAY


def schedule_row(**overrides):
    values = dict(day_of_week=1, start_time=time(9, 0), end_time=time(17, 0), break_start=None, break_end=None, is_available=True)
    values.update(overrides)
    return models.DoctorSchedule(**values)


def test_day_of_week_starts_on_sunday():
    assert day_of_week(MONDAY) == 1
    assert day_of_week(MONDAY - timedelta(days=1)) == 0
    assert day_of_week(MONDAY + timedelta(days=5)) == 6


def test_overlap_is_half_open():
    assert overlaps(540, 570, 555, 585)
    assert not overlaps(540, 570, 570, 600)
    assert not overlaps(570, 600, 540, 570)


def test_window_without_break():
    assert working_windows(schedule_row()) == [TimeWindow(time(9, 0), time(17, 0))]


def test_break_splits_the_window():
    windows = working_windows(schedule_row(break_start=time(12, 0), break_end=time(13, 0)))
    assert windows == [TimeWindow(time(9, 0), time(12, 0)), TimeWindow(time(13, 0), time(17, 0))]


def test_break_at_start_of_day_leaves_one_window():
    windows = working_windows(schedule_row(break_start=time(9, 0), break_end=time(10, 0)))
    assert windows == [TimeWindow(time(10, 0), time(17, 0))]


def test_inactive_or_missing_day_has_no_windows():
    assert working_windows(schedule_row(is_available=False)) == []
    assert working_windows(None) == []


def test_availability_for_scheduled_day(db, monday_schedule):
    assert get_availability(db, DOCTOR_ID, MONDAY) == [
        TimeWindow(time(9, 0), time(12, 0)),
        TimeWindow(time(13, 0), time(17, 0)),
    ]


def test_no_availability_on_unscheduled_weekday(db, monday_schedule):
    assert get_availability(db, DOCTOR_ID, MONDAY + timedelta(days=1)) == []


def test_approved_leave_removes_availability(db, monday_schedule):
    db.add(models.DoctorLeave(doctor_id=DOCTOR_ID, start_date=date(2025, 3, 9), end_date=date(2025, 3, 11), status="approved"))
    db.commit()
    assert get_availability(db, DOCTOR_ID, MONDAY) == []
    assert get_availability(db, DOCTOR_ID, MONDAY + timedelta(days=7)) != []


def test_pending_leave_does_not_remove_availability(db, monday_schedule):
    db.add(models.DoctorLeave(doctor_id=DOCTOR_ID, start_date=MONDAY, end_date=MONDAY, status="pending"))
    db.commit()
    assert len(get_availability(db, DOCTOR_ID, MONDAY)) == 2
