from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.app.models.models import PeriodType, AlertType

class BudgetBase(BaseModel):
    category_key: str = Field(..., min_length=1, max_length=50)
    amount: float = Field(..., gt=0)
    period_type: PeriodType = PeriodType.MONTHLY
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_period(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self

class BudgetCreate(BudgetBase):
    user_id: str
    is_active: bool = True

class BudgetUpdate(BaseModel):
    category_key: Optional[str] = Field(None, min_length=1, max_length=50)
    amount: Optional[float] = Field(None, gt=0)
    period_type: Optional[PeriodType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None

    @field_validator("category_key", "amount", "period_type", "start_date",
                     "end_date", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value

    @model_validator(mode="after")
    def check_period(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self

class BudgetFilter(BaseModel):
    category_key: Optional[str] = None
    period_type: Optional[PeriodType] = None
    is_active: Optional[bool] = None
    start_date_from: Optional[date] = None
    start_date_to: Optional[date] = None
    amount_min: Optional[float] = None
    amount_max: Optional[float] = None

class BudgetInDB(BaseModel):
    id: str
    user_id: str
    category_key: str
    amount: float
    period_type: str
    start_date: date
    end_date: date
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class BudgetProgress(BaseModel):
    """Derived utilization metrics for one budget; never stored"""
    budget: BudgetInDB
    spent_amount: float
    remaining_amount: float
    percentage_used: float
    total_period_days: int
    days_remaining: int
    elapsed_days: int
    daily_average_spending: float
    projected_spending: float
    is_exceeded: bool
    is_on_track: bool

class BudgetSummary(BaseModel):
    total_budgets: int
    active_budgets: int
    total_budget_amount: float
    total_spent: float
    total_remaining: float
    exceeded_budgets: int
    on_track_budgets: int
    average_utilization: float

class BudgetAlert(BaseModel):
    budget_id: str
    category_key: str
    alert_type: AlertType
    message: str
    percentage_used: float
    days_remaining: int

class BudgetPerformance(BaseModel):
    category_key: str
    total_budget: float
    total_spent: float
    success_rate: float
    average_utilization: float
    budget_count: int

class BudgetAlertsResponse(BaseModel):
    alerts: List[BudgetAlert]
    count: int
