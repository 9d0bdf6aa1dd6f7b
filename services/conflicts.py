from typing import Optional

from sqlalchemy.orm import Session

import models
from services.availability import approved_leave_on, schedule_entry_for, working_windows, to_seconds, overlaps


def active_appointments(db: Session, doctor_id: int, on_date, exclude_appointment_id=None):
    query = (db.query(models.Appointment)
             .filter(models.Appointment.doctor_id == doctor_id)
             .filter(models.Appointment.date == on_date)
             .filter(models.Appointment.status.in_(models.ACTIVE_STATUSES)))
    if exclude_appointment_id is not None:
        query = query.filter(models.Appointment.appointment_id != exclude_appointment_id)
    return query.order_by(models.Appointment.time).all()


class ConflictChecker:
    """Decides whether ``[start, start + duration)`` is bookable for a doctor.

    Callers on the write path must hold the doctor's lock row so that the
    answer stays true until their own insert or update is committed.
    """

    def __init__(self, db: Session):
        self.db = db

    def check(self, doctor_id: int, on_date, start, duration: int, exclude_appointment_id: Optional[int] = None) -> Optional[str]:
        """Return why the interval cannot be booked, or None when it can."""
        if duration <= 0:
            return "Duration must be a positive number of minutes"
        if approved_leave_on(self.db, doctor_id, on_date):
            return f"Doctor is on leave on {on_date.isoformat()}"
        windows = working_windows(schedule_entry_for(self.db, doctor_id, on_date))
        if not windows:
            return f"Doctor does not work on {on_date.isoformat()}"

        begin = to_seconds(start)
        end = begin + duration * 60
        if not any(to_seconds(window.start) <= begin and end <= to_seconds(window.end) for window in windows):
            return f"{start.strftime('%H:%M')} for {duration} minutes is outside the doctor's working hours"

        for appointment in active_appointments(self.db, doctor_id, on_date, exclude_appointment_id):
            taken = to_seconds(appointment.time)
            if overlaps(begin, end, taken, taken + appointment.duration_minutes * 60):
                return f"Overlaps an existing appointment at {appointment.time.strftime('%H:%M')}"
        return None

    def is_available(self, doctor_id: int, on_date, start, duration: int, exclude_appointment_id: Optional[int] = None) -> bool:
        return self.check(doctor_id, on_date, start, duration, exclude_appointment_id) is None
