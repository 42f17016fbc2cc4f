from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class NotificationCreate(BaseModel):
    user_id: str
    type: str = Field(..., max_length=32)
    message: str = Field(..., min_length=1)

class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    message: str
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
