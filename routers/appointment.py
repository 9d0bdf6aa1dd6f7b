from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import database
from database import get_db
import schemas, oauth2
from services.appointments import AppointmentService
from services.notifications import BackgroundNotifier, NotificationRecorder
from datetime import date
from typing import List, Optional

router = APIRouter(prefix= "/appointments", tags=['Appointments'])


def get_appointment_service(background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    notifier = BackgroundNotifier(background_tasks, NotificationRecorder(database.SessionLocal))
    return AppointmentService(db, notifier)


def ensure_participant(appointment, current_user: schemas.TokenData):
    if current_user.id not in (appointment.patient_id, appointment.doctor_id):
        raise HTTPException(status_code=403, detail="Not authorized to access this appointment")


@router.post("", status_code=201, response_model= schemas.AppointmentOutput)
def create_appointment(payload: schemas.AppointmentInput, service: AppointmentService = Depends(get_appointment_service), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    if current_user.role == "patient" and current_user.id != payload.patient_id:
        raise HTTPException(status_code=403, detail="Patients can only book appointments for themselves")
    if current_user.role == "doctor" and current_user.id != payload.doctor_id:
        raise HTTPException(status_code=403, detail="Doctors can only book appointments with themselves")
    return service.create(payload.patient_id, payload.doctor_id, payload.date, payload.time, payload.duration_minutes,
                          appointment_type=payload.appointment_type, notes=payload.notes, changed_by=current_user.role)

@router.get("", response_model= List[schemas.AppointmentOutput])
def list_appointments(role: Optional[schemas.ParticipantRole] = Query(None), user_id: Optional[int] = Query(None), start_date: Optional[date] = Query(None), end_date: Optional[date] = Query(None), status: Optional[schemas.AppointmentStatus] = Query(None), service: AppointmentService = Depends(get_appointment_service), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    if user_id is not None and role is None:
        raise HTTPException(status_code=422, detail="role is required when filtering by user_id")
    if role is not None and user_id is None:
        user_id = current_user.id
    return service.list_appointments(role.value if role else None, user_id, start_date, end_date, status.value if status else None)

@router.get("/{id}", response_model= schemas.AppointmentOutput)
def get_appointment(id: int, service: AppointmentService = Depends(get_appointment_service), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    appointment = service.get(id)
    ensure_participant(appointment, current_user)
    return appointment

@router.get("/{id}/history", response_model= List[schemas.AppointmentEventOutput])
def get_appointment_history(id: int, service: AppointmentService = Depends(get_appointment_service), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    ensure_participant(service.get(id), current_user)
    return service.history(id)

@router.put("/{id}", response_model= schemas.AppointmentOutput)
def reschedule_appointment(id: int, payload: schemas.RescheduleInput, service: AppointmentService = Depends(get_appointment_service), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    ensure_participant(service.get(id), current_user)
    return service.reschedule(id, payload.date, payload.time, doctor_id=payload.doctor_id, changed_by=current_user.role)

@router.patch("/{id}/cancel", response_model= schemas.AppointmentOutput)
def cancel_appointment(id: int, service: AppointmentService = Depends(get_appointment_service), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    ensure_participant(service.get(id), current_user)
    return service.cancel(id, changed_by=current_user.role)
