from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime, date

from backend.app.models.models import TransactionType

class TransactionCreate(BaseModel):
    user_id: str
    category_key: str = Field(..., min_length=1, max_length=50)
    transaction_type: TransactionType
    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    merchant: Optional[str] = Field(None, max_length=100)
    transaction_date: date

class TransactionUpdate(BaseModel):
    category_key: Optional[str] = Field(None, min_length=1, max_length=50)
    transaction_type: Optional[TransactionType] = None
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    merchant: Optional[str] = Field(None, max_length=100)
    transaction_date: Optional[date] = None

    @field_validator("category_key", "transaction_type", "amount", "transaction_date", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value

class TransactionResponse(BaseModel):
    id: str
    user_id: str
    category_key: str
    transaction_type: str
    amount: float
    description: Optional[str] = None
    merchant: Optional[str] = None
    transaction_date: date
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TransactionStatistics(BaseModel):
    total_income: float
    total_expenses: float
    transaction_count: int
    avg_amount: float
    top_category: Optional[str] = None
    top_category_amount: float = 0.0
