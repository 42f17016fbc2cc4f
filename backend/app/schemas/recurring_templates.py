from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.app.models.models import TransactionType, Frequency

class RecurringTemplateCreate(BaseModel):
    user_id: str
    category_key: str = Field(..., min_length=1, max_length=50)
    transaction_type: TransactionType
    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    merchant: Optional[str] = Field(None, max_length=100)
    start_date: date
    frequency: Frequency
    interval: int = Field(1, ge=1)

class RecurringTemplateUpdate(BaseModel):
    category_key: Optional[str] = Field(None, min_length=1, max_length=50)
    transaction_type: Optional[TransactionType] = None
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    merchant: Optional[str] = Field(None, max_length=100)
    start_date: Optional[date] = None
    frequency: Optional[Frequency] = None
    interval: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    @field_validator("category_key", "transaction_type", "amount", "start_date",
                     "frequency", "interval", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value):
        # Omit a field to leave it unchanged; only the text fields can be cleared
        if value is None:
            raise ValueError("field cannot be null")
        return value

class RecurringTemplateResponse(BaseModel):
    id: str
    user_id: str
    category_key: str
    transaction_type: str
    amount: float
    description: Optional[str] = None
    merchant: Optional[str] = None
    start_date: date
    frequency: str
    interval: int
    next_occurrence: date
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
