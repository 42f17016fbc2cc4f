from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Dict, Optional
from datetime import date

from backend.app.database import get_db_session
from backend.app.models.models import PeriodType
from backend.app.schemas.budgets import (
    BudgetCreate, BudgetInDB, BudgetUpdate, BudgetFilter, BudgetProgress,
    BudgetSummary, BudgetAlertsResponse, BudgetPerformance
)
from backend.app.services.budget_service import (
    create_budget, get_budgets, get_budget, update_budget, delete_budget,
    activate_budget, deactivate_budget, get_budget_progress_by_id, get_all_budget_progress,
    get_budget_summary, get_budget_alerts, get_budget_history, get_budget_performance
)

router = APIRouter()

@router.post("/", response_model=BudgetInDB, status_code=201)
def create_budget_endpoint(
    budget_data: BudgetCreate,
    db: Session = Depends(get_db_session)
):
    """
    Create a new budget for a category
    """
    return create_budget(db, budget_data)

@router.get("/", response_model=List[BudgetInDB])
def get_budgets_endpoint(
    user_id: str = Query(..., description="ID of the user"),
    category_key: Optional[str] = Query(None),
    period_type: Optional[PeriodType] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db_session)
):
    """
    Get all budgets for a user
    """
    filters = BudgetFilter(category_key=category_key, period_type=period_type, is_active=is_active)
    return get_budgets(db, user_id, filters)

@router.get("/progress", response_model=List[BudgetProgress])
def get_all_progress_endpoint(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Utilization metrics for every active budget of a user
    """
    return get_all_budget_progress(db, user_id)

@router.get("/summary", response_model=BudgetSummary)
def get_summary_endpoint(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return get_budget_summary(db, user_id)

@router.get("/alerts", response_model=BudgetAlertsResponse)
def get_alerts_endpoint(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Exceeded, warning and near-end alerts across a user's active budgets
    """
    alerts = get_budget_alerts(db, user_id)
    return {"alerts": alerts, "count": len(alerts)}

@router.get("/history", response_model=List[BudgetInDB])
def get_history_endpoint(
    user_id: str = Query(...),
    category_key: str = Query(...),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db_session)
):
    return get_budget_history(db, user_id, category_key, limit)

@router.get("/performance", response_model=List[BudgetPerformance])
def get_performance_endpoint(
    user_id: str = Query(...),
    months: int = Query(6, ge=1, le=60),
    db: Session = Depends(get_db_session)
):
    return get_budget_performance(db, user_id, months)

@router.get("/{budget_id}", response_model=BudgetInDB)
def get_budget_endpoint(
    budget_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    return get_budget(db, budget_id, user_id)

@router.get("/{budget_id}/progress", response_model=BudgetProgress)
def get_progress_endpoint(
    budget_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    return get_budget_progress_by_id(db, budget_id, user_id)

@router.put("/{budget_id}", response_model=BudgetInDB)
def update_budget_endpoint(
    budget_id: str,
    budget_update: BudgetUpdate,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    return update_budget(db, budget_id, user_id, budget_update)

@router.post("/{budget_id}/activate", response_model=BudgetInDB)
def activate_budget_endpoint(budget_id: str, user_id: str = Query(...), db: Session = Depends(get_db_session)):
    return activate_budget(db, budget_id, user_id)

@router.post("/{budget_id}/deactivate", response_model=BudgetInDB)
def deactivate_budget_endpoint(budget_id: str, user_id: str = Query(...), db: Session = Depends(get_db_session)):
    return deactivate_budget(db, budget_id, user_id)

@router.delete("/{budget_id}", response_model=Dict[str, bool])
def delete_budget_endpoint(
    budget_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    """
    Delete a budget
    """
    return delete_budget(db, budget_id, user_id)
