from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from .columns import timestamp_column, utcnow
from .enums import VenueStatus, Severity, Likelihood, HazardStatus, enum_column


class Venue(SQLModel, table=True):
    __tablename__ = "venues"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    address: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: VenueStatus = Field(default=VenueStatus.SAFE, sa_column=enum_column(VenueStatus, VenueStatus.SAFE))
    critical_issues_count: int = Field(default=0)
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(onupdate=True))


class VenueHazard(SQLModel, table=True):
    __tablename__ = "venue_hazards"

    id: Optional[int] = Field(default=None, primary_key=True)
    venue_id: int = Field(foreign_key="venues.id", index=True)
    hazard_category: Optional[str] = None
    description: Optional[str] = None
    severity: Severity = Field(sa_column=enum_column(Severity))
    likelihood: Likelihood = Field(sa_column=enum_column(Likelihood))
    rpn: int
    status: HazardStatus = Field(default=HazardStatus.OPEN, sa_column=enum_column(HazardStatus, HazardStatus.OPEN))
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(onupdate=True))
