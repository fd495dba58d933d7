from enum import Enum
from sqlalchemy import Column, Enum as SAEnum


class Role(str, Enum):
    SAFETY_OFFICER = "safety_officer"
    FACILITY_MANAGER = "facility_manager"
    APPROVER = "approver"
    ADMIN = "admin"


class VenueStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"
    RESTRICTED = "restricted"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Likelihood(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class HazardStatus(str, Enum):
    OPEN = "open"
    PENDING = "pending"
    RESOLVED = "resolved"


class RAWStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    CHANGES_REQUESTED = "changes_requested"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def enum_column(enum_cls, default=None, nullable: bool = False) -> Column:
    """Store the enum's *value* ("draft", not "DRAFT") in a plain VARCHAR column."""
    return Column(
        SAEnum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=32),
        nullable=nullable,
        default=default.value if default is not None else None,
    )
