from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
import schemas, oauth2
from services.availability import get_doctor
from services.slots import available_slots
from datetime import date

router = APIRouter(prefix= '/slots', tags=['Slots'])


@router.get("", response_model= schemas.SlotsOutput)
def get_available_slots(doctor_id: int = Query(...), date: date = Query(...), duration: int = Query(30, gt=0), db : Session = Depends(get_db), current_user : schemas.TokenData = Depends(oauth2.get_current_user)):
    get_doctor(db, doctor_id)
    slots = available_slots(db, doctor_id, date, duration)
    return {
        "doctor_id": doctor_id,
        "date": date,
        "slot_duration": duration,
        "slots": [{"start_time": slot.start, "end_time": slot.end} for slot in slots],
    }
