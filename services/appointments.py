"""
Appointment lifecycle: create, reschedule, cancel, complete.

Every transition is written to the appointment row and appended to
``appointment_events`` in the same transaction. create and reschedule take
the doctor's lock row before running the conflict check so that no other
booking for that doctor can commit between the check and the write.
"""

import logging
from collections import namedtuple
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import models
from exceptions import (
    ConcurrentWriteConflict,
    InternalFailure,
    InvalidTransition,
    NotFound,
    SchedulingError,
    SlotUnavailable,
)
from services.availability import get_doctor
from services.conflicts import ConflictChecker
from services.notifications import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_CREATED,
    APPOINTMENT_RESCHEDULED,
    LifecycleEvent,
)

logger = logging.getLogger(__name__)

# a lost race is retried once, then reported to the caller
WRITE_ATTEMPTS = 2

AppointmentState = namedtuple("AppointmentState", ["status", "date", "time", "duration_minutes", "reschedule_count"])

VISIT_FIELDS = ("symptoms", "diagnosis", "prescription", "notes", "follow_up_date")


def replay_events(events) -> Optional[AppointmentState]:
    """Fold an appointment's event log, oldest first, into its current state."""
    state = None
    for event in events:
        if event.event_type == "created":
            state = AppointmentState("scheduled", event.date, event.time, event.duration_minutes, 0)
        elif state is None:
            raise ValueError(f"Event log for appointment {event.appointment_id} does not start with a creation")
        elif event.event_type == "rescheduled":
            state = state._replace(status="rescheduled", date=event.date, time=event.time,
                                   reschedule_count=state.reschedule_count + 1)
        else:
            state = state._replace(status=event.status)
    return state


class AppointmentService:

    def __init__(self, db: Session, notifier=None):
        self.db = db
        self.notifier = notifier
        self.checker = ConflictChecker(db)

    def get(self, appointment_id: int) -> models.Appointment:
        appointment = self.db.query(models.Appointment).filter(models.Appointment.appointment_id == appointment_id).one_or_none()
        if not appointment:
            raise NotFound(f"Appointment {appointment_id} not found")
        return appointment

    def list_appointments(self, role: Optional[str] = None, user_id: Optional[int] = None, start_date=None, end_date=None, status: Optional[str] = None):
        query = self.db.query(models.Appointment)
        if role == "patient":
            query = query.filter(models.Appointment.patient_id == user_id)
        elif role == "doctor":
            query = query.filter(models.Appointment.doctor_id == user_id)
        if start_date is not None:
            query = query.filter(models.Appointment.date >= start_date)
        if end_date is not None:
            query = query.filter(models.Appointment.date <= end_date)
        if status is not None:
            query = query.filter(models.Appointment.status == status)
        return query.order_by(models.Appointment.date, models.Appointment.time, models.Appointment.appointment_id).all()

    def history(self, appointment_id: int):
        self.get(appointment_id)
        return (self.db.query(models.AppointmentEvent)
                .filter(models.AppointmentEvent.appointment_id == appointment_id)
                .order_by(models.AppointmentEvent.event_id)
                .all())

    def visits_for_patient(self, patient_id: int):
        self._get_user(patient_id, "patient")
        return (self.db.query(models.PatientVisit)
                .filter(models.PatientVisit.patient_id == patient_id)
                .order_by(models.PatientVisit.visit_date.desc(), models.PatientVisit.visit_time.desc())
                .all())

    def create(self, patient_id: int, doctor_id: int, on_date, start, duration_minutes: int,
               appointment_type: Optional[str] = None, notes: Optional[str] = None, changed_by: str = "patient"):
        def write():
            get_doctor(self.db, doctor_id, for_update=True)
            self._get_user(patient_id, "patient")
            reason = self.checker.check(doctor_id, on_date, start, duration_minutes)
            if reason:
                logger.info(f"Rejected booking with doctor {doctor_id} on {on_date} at {start}: {reason}")
                raise SlotUnavailable(reason)
            appointment = models.Appointment(patient_id=patient_id, doctor_id=doctor_id, date=on_date, time=start,
                                             duration_minutes=duration_minutes, appointment_type=appointment_type,
                                             notes=notes, status="scheduled")
            self.db.add(appointment)
            self.db.flush()
            self._record(appointment, "created", changed_by)
            return appointment

        appointment = self._run_write(write)
        logger.info(f"Appointment {appointment.appointment_id} booked with doctor {doctor_id} on {on_date} at {start}")
        self._publish(APPOINTMENT_CREATED, appointment.appointment_id)
        return appointment

    def reschedule(self, appointment_id: int, new_date, new_time, doctor_id: Optional[int] = None, changed_by: str = "patient"):
        def write():
            appointment = self.get(appointment_id)
            if doctor_id is not None and appointment.doctor_id != doctor_id:
                raise NotFound(f"Appointment {appointment_id} not found for doctor {doctor_id}")
            get_doctor(self.db, appointment.doctor_id, for_update=True)
            self.db.refresh(appointment, with_for_update=True)
            if appointment.status not in models.ACTIVE_STATUSES:
                raise InvalidTransition(f"Cannot reschedule a {appointment.status} appointment")
            reason = self.checker.check(appointment.doctor_id, new_date, new_time, appointment.duration_minutes,
                                        exclude_appointment_id=appointment.appointment_id)
            if reason:
                logger.info(f"Rejected reschedule of appointment {appointment_id} to {new_date} at {new_time}: {reason}")
                raise SlotUnavailable(reason)
            appointment.date = new_date
            appointment.time = new_time
            appointment.status = "rescheduled"
            self.db.flush()
            self._record(appointment, "rescheduled", changed_by)
            return appointment

        appointment = self._run_write(write)
        logger.info(f"Appointment {appointment_id} rescheduled to {new_date} at {new_time}")
        self._publish(APPOINTMENT_RESCHEDULED, appointment_id)
        return appointment

    def cancel(self, appointment_id: int, changed_by: str = "patient"):
        def write():
            appointment = self._get_for_update(appointment_id)
            if appointment.status == "cancelled":
                return appointment, False
            appointment.status = "cancelled"
            self._record(appointment, "cancelled", changed_by)
            return appointment, True

        appointment, changed = self._run_write(write)
        if changed:
            logger.info(f"Appointment {appointment_id} cancelled by {changed_by}")
            self._publish(APPOINTMENT_CANCELLED, appointment_id)
        return appointment

    def complete(self, appointment_id: int, visit_details: Optional[dict] = None, changed_by: str = "doctor"):
        details = {key: value for key, value in (visit_details or {}).items() if key in VISIT_FIELDS}

        def write():
            appointment = self._get_for_update(appointment_id)
            if appointment.status not in models.ACTIVE_STATUSES:
                raise InvalidTransition(f"Cannot complete a {appointment.status} appointment")
            appointment.status = "completed"
            now = datetime.now()
            visit = models.PatientVisit(appointment_id=appointment.appointment_id, patient_id=appointment.patient_id,
                                        doctor_id=appointment.doctor_id, visit_date=now.date(),
                                        visit_time=now.time().replace(microsecond=0), **details)
            self.db.add(visit)
            self._record(appointment, "completed", changed_by)
            return visit

        visit = self._run_write(write)
        logger.info(f"Appointment {appointment_id} completed, visit {visit.visit_id} recorded")
        return visit

    def _run_write(self, write):
        for attempt in range(1, WRITE_ATTEMPTS + 1):
            try:
                result = write()
                self.db.commit()
                return result
            except IntegrityError:
                self.db.rollback()
                if attempt < WRITE_ATTEMPTS:
                    logger.warning("Lost a concurrent booking race, re-checking availability")
                    continue
                raise ConcurrentWriteConflict("The slot was taken by a concurrent request, please retry")
            except SchedulingError:
                self.db.rollback()
                raise
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Appointment store failure")
                raise InternalFailure() from exc

    def _get_user(self, user_id: int, role: str):
        user = self.db.query(models.User).filter(models.User.user_id == user_id, models.User.role == role).one_or_none()
        if not user:
            raise NotFound(f"{role.capitalize()} {user_id} not found")
        return user

    def _get_for_update(self, appointment_id: int):
        appointment = (self.db.query(models.Appointment)
                       .filter(models.Appointment.appointment_id == appointment_id)
                       .with_for_update()
                       .populate_existing()
                       .one_or_none())
        if not appointment:
            raise NotFound(f"Appointment {appointment_id} not found")
        return appointment

    def _record(self, appointment, event_type: str, changed_by: str):
        self.db.add(models.AppointmentEvent(appointment_id=appointment.appointment_id, event_type=event_type,
                                            status=appointment.status, date=appointment.date, time=appointment.time,
                                            duration_minutes=appointment.duration_minutes, changed_by=changed_by))

    def _publish(self, event_type: str, appointment_id: int):
        if self.notifier is None:
            return
        try:
            self.notifier.publish(LifecycleEvent(event_type, appointment_id))
        except Exception:
            logger.exception(f"Could not publish {event_type} for appointment {appointment_id}")
