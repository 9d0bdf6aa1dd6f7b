import asyncio
import logging
from datetime import time

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError

import database
import models
from services.notifications import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_CREATED,
    BackgroundNotifier,
    LifecycleEvent,
    NotificationRecorder,
    NotificationService,
)
from factories import DOCTOR_ID, MONDAY, PATIENT_ID


def test_events_run_after_publish_in_order():
    handled = []
    tasks = BackgroundTasks()
    notifier = BackgroundNotifier(tasks, handled.append)
    notifier.publish(LifecycleEvent(APPOINTMENT_CREATED, 1))
    notifier.publish(LifecycleEvent(APPOINTMENT_CANCELLED, 1))
    assert handled == []

    asyncio.run(tasks())
    assert handled == [LifecycleEvent(APPOINTMENT_CREATED, 1), LifecycleEvent(APPOINTMENT_CANCELLED, 1)]


class UnavailableSession:
    closed = False

    def query(self, *args):
        raise SQLAlchemyError("database is locked")

    def rollback(self):
        pass

    def close(self):
        self.closed = True


def test_recorder_failure_is_logged_not_raised(caplog):
    session = UnavailableSession()
    with caplog.at_level(logging.ERROR, logger="services.notifications"):
        NotificationRecorder(lambda: session)(LifecycleEvent(APPOINTMENT_CREATED, 1))
    assert session.closed
    assert "Failed to record APPOINTMENT_CREATED for appointment 1" in caplog.text


def test_recorder_writes_patient_and_doctor_notifications(db, service, monday_schedule):
    appointment = service.create(PATIENT_ID, DOCTOR_ID, MONDAY, time(10, 0), 30)
    NotificationRecorder(database.SessionLocal)(LifecycleEvent(APPOINTMENT_CREATED, appointment.appointment_id))

    rows = db.query(models.Notification).order_by(models.Notification.user_id).all()
    assert [(row.user_id, row.type) for row in rows] == [(DOCTOR_ID, APPOINTMENT_CREATED), (PATIENT_ID, APPOINTMENT_CREATED)]
    assert rows[0].message == "Appointment booked for 2025-03-10 at 10:00."


def test_recorder_skips_unknown_appointment(db):
    NotificationRecorder(database.SessionLocal)(LifecycleEvent(APPOINTMENT_CREATED, 404))
    assert db.query(models.Notification).count() == 0


def test_mark_read_is_scoped_to_owner(db):
    notification = models.Notification(user_id=PATIENT_ID, type=APPOINTMENT_CREATED, message="hello")
    db.add(notification)
    db.commit()
    notifications = NotificationService(db)

    assert notifications.mark_read(notification.notification_id, PATIENT_ID).is_read
    assert [row.notification_id for row in notifications.list_for_user(PATIENT_ID)] == [notification.notification_id]
    assert notifications.list_for_user(DOCTOR_ID) == []
