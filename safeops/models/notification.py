from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from .columns import timestamp_column, utcnow


class NotificationType:
    RAW_SUBMITTED = "raw_submitted"
    RAW_APPROVED = "raw_approved"
    RAW_REJECTED = "raw_rejected"
    RAW_CHANGES_REQUESTED = "raw_changes_requested"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str
    message: str
    type: str
    related_id: Optional[int] = None
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
