from database import Base
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DATE, TIME, Enum, Boolean, UniqueConstraint, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.sql.sqltypes import TIMESTAMP
from sqlalchemy.sql.expression import text

APPOINTMENT_STATUSES = ("scheduled", "rescheduled", "cancelled", "completed")
ACTIVE_STATUSES = ("scheduled", "rescheduled")
LEAVE_STATUSES = ("pending", "approved", "rejected")


class User(Base):
    __tablename__ = 'users'
    user_id = Column(Integer, primary_key= True)
    user_name = Column(String, nullable= False)
    email = Column(String, nullable= False, unique= True)
    role = Column(Enum("doctor", "patient", name="user_role", create_constraint=True),nullable=False)
    created_at = Column(TIMESTAMP(timezone = True), server_default= func.now())


class DoctorSchedule(Base):
    __tablename__ = 'doctor_schedules'
    schedule_id = Column(Integer, primary_key= True)
    doctor_id = Column(Integer, ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(TIME, nullable=False)
    end_time = Column(TIME, nullable=False)
    break_start = Column(TIME, nullable=True)
    break_end = Column(TIME, nullable=True)
    max_patients = Column(Integer, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP(timezone = True), server_default= func.now())
    __table_args__ = (
        UniqueConstraint("doctor_id", "day_of_week", name="uq_doctor_schedule_day"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_schedule_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_schedule_hours"),
    )


class DoctorLeave(Base):
    __tablename__ = 'doctor_leaves'
    leave_id = Column(Integer, primary_key= True)
    doctor_id = Column(Integer, ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False)
    start_date = Column(DATE, nullable=False)
    end_date = Column(DATE, nullable=False)
    leave_type = Column(String(50), nullable=True)
    reason = Column(Text, nullable=True)
    status = Column(Enum(*LEAVE_STATUSES, name="leave_status", create_constraint=True), nullable=False, default="pending")
    created_at = Column(TIMESTAMP(timezone = True), server_default= func.now())
    __table_args__ = (CheckConstraint("start_date <= end_date", name="ck_leave_range"),)


class Appointment(Base):
    __tablename__ = "appointments"
    appointment_id = Column(Integer, primary_key= True)
    patient_id = Column(Integer, ForeignKey('users.user_id', ondelete= 'CASCADE'), nullable=False)
    doctor_id = Column(Integer, ForeignKey('users.user_id', ondelete= 'CASCADE'), nullable=False)
    date = Column(DATE, nullable=False)
    time = Column(TIME, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    appointment_type = Column(String(50), nullable=True)
    status = Column(Enum(*APPOINTMENT_STATUSES, name="appointment_status", create_constraint=True),nullable=False, default="scheduled")
    notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone = True), server_default= func.now())
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_appointment_duration"),
        # a doctor holds at most one active booking per start instant
        Index("uq_active_appointment_slot", "doctor_id", "date", "time", unique=True,
              postgresql_where=text("status IN ('scheduled', 'rescheduled')"),
              sqlite_where=text("status IN ('scheduled', 'rescheduled')")),
        Index("ix_appointments_doctor_date", "doctor_id", "date"),
    )
    # created_at comes back with the INSERT
    __mapper_args__ = {"eager_defaults": True}


class AppointmentEvent(Base):
    __tablename__ = "appointment_events"
    event_id = Column(Integer, primary_key= True)
    appointment_id = Column(Integer, ForeignKey("appointments.appointment_id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(Enum("created", "rescheduled", "cancelled", "completed", name="appointment_event_type", create_constraint=True),nullable=False)
    status = Column(Enum(*APPOINTMENT_STATUSES, name="appointment_event_status", create_constraint=True),nullable=False)
    date = Column(DATE, nullable=False)
    time = Column(TIME, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    changed_by = Column(Enum("doctor", "patient", "system", name="event_changed_by", create_constraint=True),nullable=False, default="system")
    created_at = Column(TIMESTAMP(timezone = True), server_default= func.now())


class PatientVisit(Base):
    __tablename__ = "patient_visits"
    visit_id = Column(Integer, primary_key= True)
    # weak reference, the visit is never re-validated against the appointment
    appointment_id = Column(Integer, nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey('users.user_id', ondelete= 'CASCADE'), nullable=False)
    doctor_id = Column(Integer, ForeignKey('users.user_id', ondelete= 'CASCADE'), nullable=False)
    visit_date = Column(DATE, nullable=False)
    visit_time = Column(TIME, nullable=False)
    symptoms = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    prescription = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    follow_up_date = Column(DATE, nullable=True)
    created_at = Column(TIMESTAMP(timezone = True), server_default= func.now())
    __mapper_args__ = {"eager_defaults": True}


class Notification(Base):
    __tablename__ = "notifications"
    notification_id = Column(Integer, primary_key= True)
    user_id = Column(Integer, ForeignKey('users.user_id', ondelete= 'CASCADE'), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone = True), server_default= func.now())
