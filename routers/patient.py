from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from database import get_db
import schemas, oauth2
from services.appointments import AppointmentService
from typing import List

router = APIRouter(prefix= '/patients', tags=['Patients'])


@router.get("/{id}/visits", response_model= List[schemas.VisitOutput])
def get_patient_visits(id: int, db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    if current_user.role == "patient" and current_user.id != id:
        raise HTTPException(status_code=403, detail="Not authorized to view another patient's visits")
    return AppointmentService(db).visits_for_patient(id)
