"""
Smart alert triggers: budget-exceeded and upcoming recurring transaction notices.
"""
import calendar
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from backend.app.models.models import NotificationType
from backend.app.schemas.notifications import NotificationCreate
from backend.app.services.notification_service import send_notification
from backend.app.services.transaction_service import get_category_spending

def month_bounds(year: int, month: int):
    """First and last day of a calendar month"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)

def check_budget_exceeded(db: Session, user_id: str, amount: float, month: int, year: int,
                          category_key: Optional[str] = None) -> bool:
    """
    Send a budget_exceeded notification when the month's expenses are over `amount`.

    Returns True when a notification was sent.
    """
    start, end = month_bounds(year, month)
    total_expenses = get_category_spending(db, user_id, category_key, start, end)
    if total_expenses <= amount:
        return False

    label = f"{category_key} spending" if category_key else "Spending"
    send_notification(db, NotificationCreate(
        user_id=user_id,
        type=NotificationType.BUDGET_EXCEEDED.value,
        message=f"{label} for {year}-{month:02d} ({total_expenses:,.2f}) exceeded the budget of {amount:,.2f}"
    ))
    return True

def notify_upcoming_recurring(db: Session, user_id: str, template_description: str, next_date: date):
    return send_notification(db, NotificationCreate(
        user_id=user_id,
        type=NotificationType.RECURRING_UPCOMING.value,
        message=f"Upcoming recurring transaction: {template_description} ({next_date.isoformat()})"
    ))
