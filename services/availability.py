"""Working windows of a doctor on a given date.

A window is a half-open ``[start, end)`` range of wall-clock times. The weekly
pattern gives one window per working day, split in two around the break;
an approved leave covering the date removes every window.
"""
from collections import namedtuple
from datetime import time

from sqlalchemy.orm import Session

import models
from exceptions import NotFound

TimeWindow = namedtuple("TimeWindow", ["start", "end"])


def to_seconds(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def from_seconds(seconds: int) -> time:
    return time(seconds // 3600, seconds % 3600 // 60, seconds % 60)


def overlaps(a_start, a_end, b_start, b_end):
    # touching endpoints do not overlap
    return a_start < b_end and b_start < a_end


def day_of_week(on_date):
    """0 = Sunday ... 6 = Saturday."""
    return on_date.isoweekday() % 7


def working_windows(entry):
    if entry is None or not entry.is_available:
        return []
    if entry.break_start is None or entry.break_end is None:
        return [TimeWindow(entry.start_time, entry.end_time)]
    windows = [TimeWindow(entry.start_time, entry.break_start), TimeWindow(entry.break_end, entry.end_time)]
    return [window for window in windows if window.start < window.end]


def approved_leave_on(db: Session, doctor_id: int, on_date):
    return (db.query(models.DoctorLeave)
            .filter(models.DoctorLeave.doctor_id == doctor_id)
            .filter(models.DoctorLeave.status == "approved")
            .filter(models.DoctorLeave.start_date <= on_date, models.DoctorLeave.end_date >= on_date)
            .first())


def schedule_entry_for(db: Session, doctor_id: int, on_date):
    return (db.query(models.DoctorSchedule)
            .filter(models.DoctorSchedule.doctor_id == doctor_id)
            .filter(models.DoctorSchedule.day_of_week == day_of_week(on_date))
            .one_or_none())


def get_availability(db: Session, doctor_id: int, on_date) -> list:
    if approved_leave_on(db, doctor_id, on_date):
        return []
    return working_windows(schedule_entry_for(db, doctor_id, on_date))


def get_doctor(db: Session, doctor_id: int, for_update=False):
    """Fetch a doctor's user row; ``for_update`` makes it the per-doctor write lock."""
    query = db.query(models.User).filter(models.User.user_id == doctor_id, models.User.role == "doctor")
    if for_update:
        query = query.with_for_update()
    doctor = query.one_or_none()
    if not doctor:
        raise NotFound(f"Doctor {doctor_id} not found")
    return doctor
