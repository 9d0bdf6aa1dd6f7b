from fastapi import APIRouter, Depends, HTTPException
import schemas, oauth2
from routers.appointment import get_appointment_service
from services.appointments import AppointmentService

router = APIRouter(prefix= '/visits', tags=['Visits'])


@router.post("", status_code=201, response_model= schemas.VisitOutput)
def record_visit(payload: schemas.VisitInput, service: AppointmentService = Depends(get_appointment_service), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    if current_user.role != "doctor":
        raise HTTPException(status_code=403, detail="Not authorized to complete appointments")
    appointment = service.get(payload.appointment_id)
    if appointment.doctor_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to complete this appointment")
    details = payload.model_dump(exclude={"appointment_id"})
    return service.complete(payload.appointment_id, details, changed_by=current_user.role)
