from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional
from datetime import datetime

class UserCreate(BaseModel):
    email: EmailStr
    display_name: Optional[str] = Field(None, min_length=1)  # This enforces non-empty strings

class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1)

class UserResponse(BaseModel):
    id: str
    email: str
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class UserDeleteResponse(BaseModel):
    success: bool
    budgets_deleted: int
    templates_deleted: int
