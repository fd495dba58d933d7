from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from safeops.models.enums import RAWStatus, RiskLevel, Severity, Likelihood
from safeops.schemas.base import PartialUpdate


class RAWDraft(BaseModel):
    venue_id: int
    event_title: Optional[str] = None
    status: Optional[RAWStatus] = None
    risk_level: Optional[RiskLevel] = None


class RAWCreate(RAWDraft):
    user_id: int


class RAWUpdate(PartialUpdate):
    """Free edits. Lifecycle fields (status, approver, timestamps) change only
    through submit/approve/reject/request-changes."""

    not_null = ("venue_id", "risk_level")

    venue_id: Optional[int] = None
    event_title: Optional[str] = None
    risk_level: Optional[RiskLevel] = None


class RAWHazardIn(BaseModel):
    hazard_description: str = Field(min_length=1)
    severity: Severity
    likelihood: Likelihood
    control_measures: Optional[str] = None


class RAWHazardCreate(RAWHazardIn):
    raw_id: int


class RAWHazardUpdate(PartialUpdate):
    not_null = ("hazard_description", "severity", "likelihood")

    hazard_description: Optional[str] = Field(default=None, min_length=1)
    severity: Optional[Severity] = None
    likelihood: Optional[Likelihood] = None
    control_measures: Optional[str] = None


class RAWHazardRead(BaseModel):
    id: int
    raw_id: int
    hazard_description: str
    severity: Severity
    likelihood: Likelihood
    rpn: int
    control_measures: Optional[str]
    created_at: datetime


class RAWRead(BaseModel):
    id: int
    user_id: int
    venue_id: int
    event_title: Optional[str]
    status: RAWStatus
    risk_level: RiskLevel
    approver_id: Optional[int]
    approver_comments: Optional[str]
    submitted_at: Optional[datetime]
    approved_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    venue_name: Optional[str] = None
    hazards: Optional[List[RAWHazardRead]] = None


class ReviewComments(BaseModel):
    comments: str = Field(min_length=1)
