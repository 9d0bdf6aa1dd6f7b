from pydantic import BaseModel, Field, model_validator
from enum import Enum
from typing import Optional, List
from datetime import date, time, datetime


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    rescheduled = "rescheduled"
    cancelled = "cancelled"
    completed = "completed"

class ParticipantRole(str, Enum):
    patient = "patient"
    doctor = "doctor"

class TokenData(BaseModel):
    id: int
    role: str

class AppointmentInput(BaseModel):
    patient_id: int
    doctor_id: int
    date: date
    time: time
    duration_minutes: int = Field(30, gt=0)
    appointment_type: Optional[str] = None
    notes: Optional[str] = None

class RescheduleInput(BaseModel):
    date: date
    time: time
    doctor_id: Optional[int] = None

class AppointmentOutput(BaseModel):
    appointment_id: int
    patient_id: int
    doctor_id: int
    date: date
    time: time
    duration_minutes: int
    appointment_type: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime

class AppointmentEventOutput(BaseModel):
    event_id: int
    event_type: str
    status: str
    date: date
    time: time
    duration_minutes: int
    changed_by: str
    created_at: datetime

class ScheduleEntryInput(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    max_patients: Optional[int] = Field(None, gt=0)
    is_available: bool = True

    @model_validator(mode="after")
    def check_hours(self):
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be after start_time")
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("break_start and break_end must be given together")
        if self.break_start is not None and not (self.start_time <= self.break_start < self.break_end <= self.end_time):
            raise ValueError("break must lie within working hours and end after it starts")
        return self

class WeeklyScheduleInput(BaseModel):
    entries: List[ScheduleEntryInput]

    @model_validator(mode="after")
    def check_days(self):
        days = [entry.day_of_week for entry in self.entries]
        if len(days) != len(set(days)):
            raise ValueError("Each day_of_week may appear only once")
        return self

class ScheduleEntryOutput(BaseModel):
    schedule_id: int
    doctor_id: int
    day_of_week: int
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    max_patients: Optional[int] = None
    is_available: bool

class LeaveInput(BaseModel):
    start_date: date
    end_date: date
    leave_type: Optional[str] = None
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

class LeaveOutput(BaseModel):
    leave_id: int
    doctor_id: int
    start_date: date
    end_date: date
    leave_type: Optional[str] = None
    reason: Optional[str] = None
    status: str
    created_at: datetime

class VisitInput(BaseModel):
    appointment_id: int
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None

class VisitOutput(BaseModel):
    visit_id: int
    appointment_id: int
    patient_id: int
    doctor_id: int
    visit_date: date
    visit_time: time
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    created_at: datetime

class TimeWindowOutput(BaseModel):
    start_time: time
    end_time: time

class DailyAppointment(BaseModel):
    appointment_id: int
    patient_id: int
    patient_name: str
    time: time
    duration_minutes: int
    appointment_type: Optional[str] = None
    status: str

class DailyScheduleOutput(BaseModel):
    doctor_id: int
    date: date
    windows: List[TimeWindowOutput]
    max_patients: Optional[int] = None
    booked: int
    appointments: List[DailyAppointment]

class AvailabilityOutput(BaseModel):
    doctor_id: int
    date: date
    time: time
    duration_minutes: int
    available: bool
    reason: Optional[str] = None

class SlotsOutput(BaseModel):
    doctor_id: int
    date: date
    slot_duration: int
    slots: List[TimeWindowOutput]

class NotificationOutput(BaseModel):
    notification_id: int
    user_id: int
    type: str
    message: str
    is_read: bool
    created_at: datetime
