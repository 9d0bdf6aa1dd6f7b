import logging

from sqlalchemy.orm import Session

import models
from exceptions import InvalidRequest
from services.availability import get_availability, get_doctor, schedule_entry_for

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = ("day_of_week", "start_time", "end_time", "break_start", "break_end", "max_patients", "is_available")


def validate_entry(entry: dict):
    start, end = entry["start_time"], entry["end_time"]
    if not 0 <= entry["day_of_week"] <= 6:
        raise InvalidRequest("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    if start >= end:
        raise InvalidRequest("end_time must be after start_time")
    break_start, break_end = entry.get("break_start"), entry.get("break_end")
    if (break_start is None) != (break_end is None):
        raise InvalidRequest("break_start and break_end must be given together")
    if break_start is not None and not (start <= break_start < break_end <= end):
        raise InvalidRequest("break must lie within working hours and end after it starts")


class ScheduleService:

    def __init__(self, db: Session):
        self.db = db

    def set_weekly_schedule(self, doctor_id: int, entries):
        """Replace the doctor's whole week with ``entries`` in one transaction."""
        entries = [{key: entry.get(key) for key in SCHEDULE_FIELDS if key in entry} for entry in entries]
        days = [entry["day_of_week"] for entry in entries]
        if len(days) != len(set(days)):
            raise InvalidRequest("Each day_of_week may appear only once")
        for entry in entries:
            validate_entry(entry)

        get_doctor(self.db, doctor_id, for_update=True)
        try:
            self.db.query(models.DoctorSchedule).filter(models.DoctorSchedule.doctor_id == doctor_id).delete(synchronize_session=False)
            for entry in entries:
                self.db.add(models.DoctorSchedule(doctor_id=doctor_id, **entry))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Weekly schedule for doctor {doctor_id} replaced with {len(entries)} days")
        return self.get_weekly_schedule(doctor_id)

    def get_weekly_schedule(self, doctor_id: int):
        get_doctor(self.db, doctor_id)
        return (self.db.query(models.DoctorSchedule)
                .filter(models.DoctorSchedule.doctor_id == doctor_id)
                .order_by(models.DoctorSchedule.day_of_week)
                .all())

    def daily_schedule(self, doctor_id: int, on_date):
        get_doctor(self.db, doctor_id)
        rows = (self.db.query(models.Appointment, models.User.user_name)
                .join(models.User, models.User.user_id == models.Appointment.patient_id)
                .filter(models.Appointment.doctor_id == doctor_id)
                .filter(models.Appointment.date == on_date)
                .order_by(models.Appointment.time, models.Appointment.appointment_id)
                .all())
        appointments = []
        for appt, patient_name in rows:
            appointments.append({
                "appointment_id": appt.appointment_id,
                "patient_id": appt.patient_id,
                "patient_name": patient_name,
                "time": appt.time,
                "duration_minutes": appt.duration_minutes,
                "appointment_type": appt.appointment_type,
                "status": appt.status,
            })
        entry = schedule_entry_for(self.db, doctor_id, on_date)
        return {
            "doctor_id": doctor_id,
            "date": on_date,
            "windows": [{"start_time": window.start, "end_time": window.end} for window in get_availability(self.db, doctor_id, on_date)],
            "max_patients": entry.max_patients if entry else None,
            "booked": sum(1 for appt in appointments if appt["status"] in models.ACTIVE_STATUSES),
            "appointments": appointments,
        }
