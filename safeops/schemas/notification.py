from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    related_id: Optional[int]
    is_read: bool
    created_at: datetime
