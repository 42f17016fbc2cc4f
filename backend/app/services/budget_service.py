import logging
from datetime import date
from typing import List, Dict, Any, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.config import get_settings
from backend.app.models.models import Budget, User, AlertType
from backend.app.schemas.budgets import BudgetCreate, BudgetUpdate, BudgetFilter, BudgetInDB
from backend.app.services.transaction_service import get_category_spending

logger = logging.getLogger(__name__)

# --- CRUD ---

def create_budget(db: Session, budget: BudgetCreate) -> Budget:
    """Create a new budget for a category"""
    user = db.query(User).filter(User.id == budget.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {budget.user_id} not found")

    # Overlaps are reported, not rejected
    overlapping = find_overlapping_budgets(
        db, budget.user_id, budget.category_key, budget.start_date, budget.end_date
    )
    if overlapping:
        logger.warning(
            "Budget for user %s category %s overlaps %d active budget(s): %s",
            budget.user_id, budget.category_key, len(overlapping),
            ", ".join(b.id for b in overlapping)
        )

    db_budget = Budget(
        user_id=budget.user_id,
        category_key=budget.category_key,
        amount=budget.amount,
        period_type=budget.period_type.value,
        start_date=budget.start_date,
        end_date=budget.end_date,
        is_active=budget.is_active
    )
    db.add(db_budget)
    db.commit()
    db.refresh(db_budget)
    return db_budget

def get_budget(db: Session, budget_id: str, user_id: str) -> Budget:
    """Get a single budget owned by the user"""
    budget = db.query(Budget).filter(Budget.id == budget_id, Budget.user_id == user_id).first()
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget

def get_budgets(db: Session, user_id: str, filters: Optional[BudgetFilter] = None) -> List[Budget]:
    """Get all budgets for a user, optionally filtered"""
    query = db.query(Budget).filter(Budget.user_id == user_id)

    if filters:
        if filters.category_key:
            query = query.filter(Budget.category_key == filters.category_key)
        if filters.period_type:
            query = query.filter(Budget.period_type == filters.period_type.value)
        if filters.is_active is not None:
            query = query.filter(Budget.is_active == filters.is_active)
        if filters.amount_min is not None:
            query = query.filter(Budget.amount >= filters.amount_min)
        if filters.amount_max is not None:
            query = query.filter(Budget.amount <= filters.amount_max)
        if filters.start_date_from:
            query = query.filter(Budget.start_date >= filters.start_date_from)
        if filters.start_date_to:
            query = query.filter(Budget.start_date <= filters.start_date_to)

    return query.order_by(Budget.start_date.desc()).all()

def update_budget(db: Session, budget_id: str, user_id: str, budget_update: BudgetUpdate) -> Budget:
    """Update an existing budget"""
    budget = get_budget(db, budget_id, user_id)
    update_data = budget_update.model_dump(exclude_unset=True)

    start_date = update_data.get("start_date") or budget.start_date
    end_date = update_data.get("end_date") or budget.end_date
    if end_date <= start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")

    for key, value in update_data.items():
        if key == "period_type" and value is not None:
            value = value.value
        setattr(budget, key, value)

    db.commit()
    db.refresh(budget)
    return budget

def delete_budget(db: Session, budget_id: str, user_id: str) -> Dict[str, bool]:
    """Delete a budget"""
    budget = get_budget(db, budget_id, user_id)
    db.delete(budget)
    db.commit()
    return {"success": True}

def delete_all_by_user(db: Session, user_id: str, commit: bool = True) -> int:
    """Remove every budget of a user (account deletion)"""
    deleted = db.query(Budget).filter(Budget.user_id == user_id).delete(synchronize_session="fetch")
    if commit:
        db.commit()
    return deleted

def find_active_budgets(db: Session, user_id: str) -> List[Budget]:
    return db.query(Budget).filter(Budget.user_id == user_id, Budget.is_active.is_(True)).all()

def find_active_budget_by_category(db: Session, user_id: str, category_key: str,
                                   today: Optional[date] = None) -> Optional[Budget]:
    """Most recent active budget of the category whose period contains today"""
    today = today or date.today()
    return db.query(Budget).filter(
        Budget.user_id == user_id,
        Budget.category_key == category_key,
        Budget.is_active.is_(True),
        Budget.start_date <= today,
        Budget.end_date >= today
    ).order_by(Budget.start_date.desc()).first()

def set_budget_active(db: Session, budget_id: str, user_id: str, is_active: bool) -> Budget:
    budget = get_budget(db, budget_id, user_id)
    budget.is_active = is_active
    db.commit()
    db.refresh(budget)
    return budget

def activate_budget(db: Session, budget_id: str, user_id: str) -> Budget:
    return set_budget_active(db, budget_id, user_id, True)

def deactivate_budget(db: Session, budget_id: str, user_id: str) -> Budget:
    return set_budget_active(db, budget_id, user_id, False)

def deactivate_expired_budgets(db: Session, today: Optional[date] = None) -> int:
    """
    Flip is_active off for every active budget whose end_date has passed.

    Set-based and idempotent: a second call finds nothing to update.
    """
    today = today or date.today()
    updated = db.query(Budget).filter(
        Budget.is_active.is_(True),
        Budget.end_date < today
    ).update({Budget.is_active: False}, synchronize_session="fetch")
    db.commit()
    return updated

def find_overlapping_budgets(db: Session, user_id: str, category_key: str,
                             start_date: date, end_date: date,
                             exclude_id: Optional[str] = None) -> List[Budget]:
    """Active budgets of the same category whose period intersects [start_date, end_date]"""
    query = db.query(Budget).filter(
        Budget.user_id == user_id,
        Budget.category_key == category_key,
        Budget.is_active.is_(True),
        Budget.start_date <= end_date,
        Budget.end_date >= start_date
    )
    if exclude_id:
        query = query.filter(Budget.id != exclude_id)
    return query.all()

def get_budget_history(db: Session, user_id: str, category_key: str, limit: int = 10) -> List[Budget]:
    return db.query(Budget).filter(
        Budget.user_id == user_id,
        Budget.category_key == category_key
    ).order_by(Budget.start_date.desc()).limit(limit).all()

def get_all_user_ids_with_active_budgets(db: Session) -> List[str]:
    rows = db.query(Budget.user_id).filter(Budget.is_active.is_(True)).distinct().all()
    return [row[0] for row in rows]

# --- PROGRESS ---

def calculate_budget_progress(budget: Budget, spent_amount: float, today: date) -> Dict[str, Any]:
    """
    Derive utilization metrics for a budget from the amount spent so far.

    The period is the inclusive window [start_date, end_date]. days_remaining
    is clamped to zero once the period is over, and elapsed_days never drops
    below one so the daily average is defined on the first day.
    """
    amount = budget.amount
    total_period_days = (budget.end_date - budget.start_date).days + 1
    days_remaining = max(0, (budget.end_date - today).days)
    elapsed_days = max(1, total_period_days - days_remaining)

    percentage_used = (spent_amount * 100) / amount if amount > 0 else 0.0
    daily_average_spending = spent_amount / elapsed_days
    projected_spending = daily_average_spending * total_period_days

    return {
        "budget": BudgetInDB.model_validate(budget),
        "spent_amount": spent_amount,
        "remaining_amount": amount - spent_amount,
        "percentage_used": percentage_used,
        "total_period_days": total_period_days,
        "days_remaining": days_remaining,
        "elapsed_days": elapsed_days,
        "daily_average_spending": daily_average_spending,
        "projected_spending": projected_spending,
        "is_exceeded": spent_amount > amount,
        "is_on_track": projected_spending <= amount
    }

def get_budget_progress(db: Session, budget: Budget, today: Optional[date] = None) -> Dict[str, Any]:
    """Progress of an already fetched budget; read-only"""
    today = today or date.today()
    spent_amount = get_category_spending(
        db, budget.user_id, budget.category_key, budget.start_date, budget.end_date
    )
    return calculate_budget_progress(budget, spent_amount, today)

def get_budget_progress_by_id(db: Session, budget_id: str, user_id: str,
                              today: Optional[date] = None) -> Dict[str, Any]:
    return get_budget_progress(db, get_budget(db, budget_id, user_id), today)

def get_all_budget_progress(db: Session, user_id: str, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Progress for every active budget of a user"""
    today = today or date.today()
    return [get_budget_progress(db, budget, today) for budget in find_active_budgets(db, user_id)]

def get_budget_summary(db: Session, user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
    """Portfolio totals over a user's active budgets"""
    progress_list = get_all_budget_progress(db, user_id, today)

    total_budgets = len(progress_list)
    total_budget_amount = sum(p["budget"].amount for p in progress_list)
    total_spent = sum(p["spent_amount"] for p in progress_list)

    # Simple mean of percentages, not weighted by budget size
    average_utilization = (
        sum(p["percentage_used"] for p in progress_list) / total_budgets if total_budgets else 0.0
    )

    return {
        "total_budgets": total_budgets,
        "active_budgets": total_budgets,
        "total_budget_amount": total_budget_amount,
        "total_spent": total_spent,
        "total_remaining": total_budget_amount - total_spent,
        "exceeded_budgets": sum(1 for p in progress_list if p["is_exceeded"]),
        "on_track_budgets": sum(1 for p in progress_list if p["is_on_track"]),
        "average_utilization": average_utilization
    }

def build_budget_alerts(progress: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Alerts for a single budget's progress.

    The rules are evaluated independently: an exceeded budget also gets a
    warning, and either can come with a near_end alert.
    """
    settings = get_settings()
    budget = progress["budget"]
    percentage_used = progress["percentage_used"]
    days_remaining = progress["days_remaining"]
    alerts = []

    def alert(alert_type: AlertType, message: str) -> Dict[str, Any]:
        return {
            "budget_id": budget.id,
            "category_key": budget.category_key,
            "alert_type": alert_type.value,
            "message": message,
            "percentage_used": percentage_used,
            "days_remaining": days_remaining
        }

    if progress["is_exceeded"]:
        alerts.append(alert(
            AlertType.EXCEEDED,
            f"{budget.category_key} budget exceeded: {percentage_used:.1f}% used"
        ))

    if percentage_used >= settings.budget_warning_threshold:
        alerts.append(alert(
            AlertType.WARNING,
            f"{budget.category_key} budget is {percentage_used:.1f}% used"
        ))

    if 0 < days_remaining <= settings.budget_near_end_days:
        alerts.append(alert(
            AlertType.NEAR_END,
            f"{budget.category_key} budget period ends in {days_remaining} day(s)"
        ))

    return alerts

def get_budget_alerts(db: Session, user_id: str, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Alerts across all of a user's active budgets"""
    alerts = []
    for progress in get_all_budget_progress(db, user_id, today):
        alerts.extend(build_budget_alerts(progress))
    return alerts

def get_budget_performance(db: Session, user_id: str, months: int = 6,
                           today: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Per-category success rate of budgets that started within the last `months` months.

    A budget counts as successful when spending inside its own period stayed
    within the amount.
    """
    today = today or date.today()
    cutoff = today - relativedelta(months=months)

    budgets = db.query(Budget).filter(
        Budget.user_id == user_id,
        Budget.start_date >= cutoff
    ).all()

    by_category: Dict[str, Dict[str, Any]] = {}
    for budget in budgets:
        spent = get_category_spending(db, user_id, budget.category_key, budget.start_date, budget.end_date)
        entry = by_category.setdefault(budget.category_key, {
            "total_budget": 0.0, "total_spent": 0.0, "budget_count": 0, "successful": 0
        })
        entry["total_budget"] += budget.amount
        entry["total_spent"] += spent
        entry["budget_count"] += 1
        if spent <= budget.amount:
            entry["successful"] += 1

    results = []
    for category_key, entry in by_category.items():
        results.append({
            "category_key": category_key,
            "total_budget": entry["total_budget"],
            "total_spent": entry["total_spent"],
            "success_rate": entry["successful"] / entry["budget_count"] * 100,
            "average_utilization": (
                entry["total_spent"] / entry["total_budget"] * 100 if entry["total_budget"] > 0 else 0.0
            ),
            "budget_count": entry["budget_count"]
        })

    return sorted(results, key=lambda r: r["total_budget"], reverse=True)
