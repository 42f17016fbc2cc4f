import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.models.models import Notification
from backend.app.schemas.notifications import NotificationCreate

logger = logging.getLogger(__name__)

def send_notification(db: Session, data: NotificationCreate) -> Notification:
    """Store a notification for a user"""
    notification = Notification(
        user_id=data.user_id,
        type=data.type,
        message=data.message
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)

    logger.info("Sent %s notification to user %s", data.type, data.user_id)
    return notification

def get_user_notifications(db: Session, user_id: str, only_unread: bool = False) -> List[Notification]:
    """Notifications of a user, newest first"""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if only_unread:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc()).all()

def mark_as_read(db: Session, notification_id: str, user_id: str) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).first()
    if not notification:
        raise HTTPException(status_code=404, detail=f"Notification with id {notification_id} not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)
    return notification
