"""
Notification sink for appointment lifecycle events.

Services publish events after their transaction commits. In the API each
event becomes a FastAPI background task that runs once the response has been
sent, so nothing the handler does can reach back into the request that
published the event.
"""

import logging
from collections import namedtuple

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

import models
from exceptions import NotFound

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = "APPOINTMENT_CREATED"
APPOINTMENT_RESCHEDULED = "APPOINTMENT_RESCHEDULED"
APPOINTMENT_CANCELLED = "APPOINTMENT_CANCELLED"

LifecycleEvent = namedtuple("LifecycleEvent", ["type", "appointment_id"])

MESSAGES = {
    APPOINTMENT_CREATED: "Appointment booked for {date} at {time}.",
    APPOINTMENT_RESCHEDULED: "Appointment moved to {date} at {time}.",
    APPOINTMENT_CANCELLED: "Appointment on {date} at {time} was cancelled.",
}


class NotificationRecorder:
    """Default handler: one notification row for the patient and one for the doctor.

    Failures are logged and swallowed, the appointment change stands either way.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def __call__(self, event):
        db = self.session_factory()
        try:
            appointment = db.query(models.Appointment).filter(models.Appointment.appointment_id == event.appointment_id).one_or_none()
            if not appointment:
                logger.warning(f"Skipping {event.type}: appointment {event.appointment_id} not found")
                return
            message = MESSAGES[event.type].format(date=appointment.date.isoformat(), time=appointment.time.strftime("%H:%M"))
            for user_id in (appointment.patient_id, appointment.doctor_id):
                db.add(models.Notification(user_id=user_id, type=event.type, message=message))
            db.commit()
            logger.info(f"Recorded {event.type} notifications for appointment {event.appointment_id}")
        except Exception:
            db.rollback()
            logger.exception(f"Failed to record {event.type} for appointment {event.appointment_id}")
        finally:
            db.close()


class BackgroundNotifier:

    def __init__(self, background_tasks: BackgroundTasks, handler):
        self.background_tasks = background_tasks
        self.handler = handler

    def publish(self, event):
        self.background_tasks.add_task(self.handler, event)


class NotificationService:

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: int):
        return (self.db.query(models.Notification)
                .filter(models.Notification.user_id == user_id)
                .order_by(models.Notification.created_at.desc(), models.Notification.notification_id.desc())
                .all())

    def mark_read(self, notification_id: int, user_id: int):
        notification = (self.db.query(models.Notification)
                        .filter(models.Notification.notification_id == notification_id)
                        .filter(models.Notification.user_id == user_id)
                        .one_or_none())
        if not notification:
            raise NotFound(f"Notification {notification_id} not found")
        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification
