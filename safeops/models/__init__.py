# models package for SQLModel models
from .enums import Role, VenueStatus, Severity, Likelihood, HazardStatus, RAWStatus, RiskLevel  # noqa: F401
from .user import User  # noqa: F401  (import for metadata registration)
from .venue import Venue, VenueHazard  # noqa: F401
from .raw import RAWSubmission, RAWHazard  # noqa: F401
from .notification import Notification, NotificationType  # noqa: F401

# relations exposed through the data gateway, keyed by table name
TABLE_MODELS = (User, Venue, VenueHazard, RAWSubmission, RAWHazard, Notification)
