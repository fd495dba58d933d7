from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from .columns import timestamp_column, utcnow
from .enums import RAWStatus, RiskLevel, Severity, Likelihood, enum_column


class RAWSubmission(SQLModel, table=True):
    """Risk Assessment Worksheet for one venue, authored by one user."""

    __tablename__ = "raw_submissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    venue_id: int = Field(foreign_key="venues.id", index=True)
    event_title: Optional[str] = None
    status: RAWStatus = Field(default=RAWStatus.DRAFT, sa_column=enum_column(RAWStatus, RAWStatus.DRAFT))
    risk_level: RiskLevel = Field(default=RiskLevel.MEDIUM, sa_column=enum_column(RiskLevel, RiskLevel.MEDIUM))
    approver_id: Optional[int] = Field(default=None, foreign_key="users.id")
    approver_comments: Optional[str] = None
    submitted_at: Optional[datetime] = Field(default=None, sa_column=timestamp_column(nullable=True, auto=False))
    approved_at: Optional[datetime] = Field(default=None, sa_column=timestamp_column(nullable=True, auto=False))
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(onupdate=True))


class RAWHazard(SQLModel, table=True):
    __tablename__ = "raw_hazards"

    id: Optional[int] = Field(default=None, primary_key=True)
    raw_id: int = Field(foreign_key="raw_submissions.id", index=True)
    hazard_description: str
    severity: Severity = Field(sa_column=enum_column(Severity))
    likelihood: Likelihood = Field(sa_column=enum_column(Likelihood))
    rpn: int
    control_measures: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
