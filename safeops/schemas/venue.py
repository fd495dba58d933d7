from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from safeops.models.enums import VenueStatus, Severity, Likelihood, HazardStatus
from safeops.schemas.base import PartialUpdate


class VenueCreate(BaseModel):
    name: str = Field(min_length=1)
    address: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    status: Optional[VenueStatus] = None
    created_by: Optional[int] = None


class VenueUpdate(PartialUpdate):
    not_null = ("name", "status")

    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    status: Optional[VenueStatus] = None


class VenueRead(BaseModel):
    id: int
    name: str
    address: Optional[str]
    postal_code: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    status: VenueStatus
    critical_issues_count: int
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime


class VenueHazardIn(BaseModel):
    hazard_category: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    severity: Severity
    likelihood: Likelihood
    status: HazardStatus = HazardStatus.OPEN


class VenueHazardCreate(VenueHazardIn):
    venue_id: int


class VenueHazardUpdate(PartialUpdate):
    not_null = ("severity", "likelihood", "status")

    hazard_category: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    severity: Optional[Severity] = None
    likelihood: Optional[Likelihood] = None
    status: Optional[HazardStatus] = None


class HazardStatusUpdate(BaseModel):
    status: HazardStatus


class VenueHazardRead(BaseModel):
    id: int
    venue_id: int
    hazard_category: Optional[str]
    description: Optional[str]
    severity: Severity
    likelihood: Likelihood
    rpn: int
    status: HazardStatus
    created_at: datetime
    updated_at: datetime
