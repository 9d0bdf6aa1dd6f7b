import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

import models
from exceptions import ConflictingAppointments, InvalidRequest
from services.availability import get_doctor

logger = logging.getLogger(__name__)


class LeaveService:

    def __init__(self, db: Session):
        self.db = db

    def request_leave(self, doctor_id: int, start_date, end_date, leave_type=None, reason=None):
        if start_date > end_date:
            raise InvalidRequest("start_date must not be after end_date")
        get_doctor(self.db, doctor_id, for_update=True)

        # only 'scheduled' blocks a leave request, rescheduled bookings do not
        conflicting = (self.db.query(func.count(models.Appointment.appointment_id))
                       .filter(models.Appointment.doctor_id == doctor_id)
                       .filter(models.Appointment.date.between(start_date, end_date))
                       .filter(models.Appointment.status == "scheduled")
                       .scalar())
        if conflicting > 0:
            self.db.rollback()
            logger.info(f"Leave request for doctor {doctor_id} ({start_date} to {end_date}) blocked by {conflicting} appointments")
            raise ConflictingAppointments(f"Cannot request leave: {conflicting} scheduled appointments fall in this period", count=conflicting)

        leave = models.DoctorLeave(doctor_id=doctor_id, start_date=start_date, end_date=end_date,
                                   leave_type=leave_type, reason=reason, status="pending")
        self.db.add(leave)
        self.db.commit()
        self.db.refresh(leave)
        logger.info(f"Leave {leave.leave_id} requested by doctor {doctor_id}")
        return leave

    def list_leaves(self, doctor_id: int):
        get_doctor(self.db, doctor_id)
        return (self.db.query(models.DoctorLeave)
                .filter(models.DoctorLeave.doctor_id == doctor_id)
                .order_by(models.DoctorLeave.start_date, models.DoctorLeave.leave_id)
                .all())
