from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional
from safeops.models.enums import Role


class SignUp(BaseModel):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1)
    role: Role = Role.SAFETY_OFFICER


class UserRead(BaseModel):
    id: int
    email: str
    full_name: str
    role: Role
    phone: Optional[str] = None
    profile_picture_url: Optional[str] = None
    created_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
