from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from .columns import timestamp_column, utcnow
from .enums import Role, enum_column


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, sa_column_kwargs={"unique": True})
    full_name: str
    role: Role = Field(default=Role.SAFETY_OFFICER, sa_column=enum_column(Role, Role.SAFETY_OFFICER))
    phone: Optional[str] = None
    profile_picture_url: Optional[str] = None
    hashed_password: str
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
