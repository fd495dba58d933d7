from .auth_service import AuthService  # noqa: F401
from .hazard_service import HazardService  # noqa: F401
from .notification_service import NotificationService  # noqa: F401
from .raw_service import RAWService  # noqa: F401
from .risk import RpnScale, rpn  # noqa: F401
from .venue_service import VenueService  # noqa: F401
