import logging
from datetime import date
from typing import Dict, Optional

from sqlalchemy.orm import Session

from backend.app.models.models import PeriodType
from backend.app.services.alert_service import check_budget_exceeded
from backend.app.services.budget_service import (
    get_all_user_ids_with_active_budgets, find_active_budgets, deactivate_expired_budgets
)

logger = logging.getLogger(__name__)

def check_user_budgets(db: Session, user_id: str, today: date) -> int:
    """Run the exceeded check for a user's monthly budgets; returns notifications sent"""
    sent = 0
    for budget in find_active_budgets(db, user_id):
        # Only monthly budgets are evaluated by this sweep
        if budget.period_type != PeriodType.MONTHLY.value:
            continue
        if check_budget_exceeded(db, user_id, budget.amount, today.month, today.year, budget.category_key):
            sent += 1
    return sent

def run_budget_alert_scheduler(db: Session, today: Optional[date] = None) -> Dict[str, int]:
    """
    Check every user with an active budget against the current calendar month.

    A failure for one user is logged and does not stop the sweep.
    """
    today = today or date.today()
    user_ids = get_all_user_ids_with_active_budgets(db)

    result = {"users_checked": 0, "notifications_sent": 0, "failed": 0}
    for user_id in user_ids:
        try:
            result["notifications_sent"] += check_user_budgets(db, user_id, today)
            result["users_checked"] += 1
        except Exception:
            db.rollback()
            result["failed"] += 1
            logger.exception("Budget alert check failed for user %s", user_id)

    logger.info(
        "Budget alert run for %s: %d users checked, %d notifications, %d failed",
        today, result["users_checked"], result["notifications_sent"], result["failed"]
    )
    return result

def run_expired_budget_sweep(db: Session, today: Optional[date] = None) -> int:
    today = today or date.today()
    deactivated = deactivate_expired_budgets(db, today)
    logger.info("Deactivated %d expired budget(s) as of %s", deactivated, today)
    return deactivated
