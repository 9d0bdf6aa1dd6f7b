from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
import schemas, oauth2
from services.notifications import NotificationService
from typing import List

router = APIRouter(prefix= '/notifications', tags=['Notifications'])


@router.get("", response_model= List[schemas.NotificationOutput])
def get_my_notifications(db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    return NotificationService(db).list_for_user(current_user.id)

@router.patch("/{id}/read", response_model= schemas.NotificationOutput)
def mark_notification_read(id: int, db: Session = Depends(get_db), current_user: schemas.TokenData = Depends(oauth2.get_current_user)):
    return NotificationService(db).mark_read(id, current_user.id)
