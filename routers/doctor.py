from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from database import get_db
import schemas, oauth2
from services.availability import get_doctor
from services.conflicts import ConflictChecker
from services.leaves import LeaveService
from services.schedules import ScheduleService
from datetime import date, time
from typing import List

router = APIRouter(prefix= '/doctors',tags=['Doctors'])


def ensure_own_profile(id: int, current_user: schemas.TokenData):
    if current_user.role != "doctor" or current_user.id != id:
        raise HTTPException(status_code=403, detail="Not authorized to update doctor information")


@router.put("/{id}/schedule", response_model= List[schemas.ScheduleEntryOutput])
def set_weekly_schedule(id: int, payload: schemas.WeeklyScheduleInput, db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    ensure_own_profile(id, current_user)
    return ScheduleService(db).set_weekly_schedule(id, [entry.model_dump() for entry in payload.entries])

@router.get("/{id}/schedule", response_model= List[schemas.ScheduleEntryOutput])
def get_weekly_schedule(id: int, db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    return ScheduleService(db).get_weekly_schedule(id)

@router.get("/{id}/daily-schedule", response_model= schemas.DailyScheduleOutput)
def get_daily_schedule(id: int, date: date = Query(...), db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    return ScheduleService(db).daily_schedule(id, date)

@router.post("/{id}/leaves", status_code=201, response_model= schemas.LeaveOutput)
def request_leave(id: int, payload: schemas.LeaveInput, db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    ensure_own_profile(id, current_user)
    return LeaveService(db).request_leave(id, payload.start_date, payload.end_date, payload.leave_type, payload.reason)

@router.get("/{id}/leaves", response_model= List[schemas.LeaveOutput])
def list_leaves(id: int, db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    return LeaveService(db).list_leaves(id)

@router.get("/{id}/availability", response_model= schemas.AvailabilityOutput)
def check_availability(id: int, date: date = Query(...), time: time = Query(...), duration: int = Query(30, gt=0), db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    get_doctor(db, id)
    reason = ConflictChecker(db).check(id, date, time, duration)
    return {"doctor_id": id, "date": date, "time": time, "duration_minutes": duration, "available": reason is None, "reason": reason}
