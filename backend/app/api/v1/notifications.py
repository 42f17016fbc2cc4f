from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from backend.app.database import get_db_session
from backend.app.schemas.notifications import NotificationResponse
from backend.app.services.notification_service import get_user_notifications, mark_as_read

router = APIRouter()

@router.get("/", response_model=List[NotificationResponse])
async def get_notifications(
    user_id: str = Query(..., description="ID of the user"),
    only_unread: bool = Query(False),
    db: Session = Depends(get_db_session)
):
    """
    Get a user's notifications, newest first
    """
    return get_user_notifications(db, user_id, only_unread)

@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    return mark_as_read(db, notification_id, user_id)
