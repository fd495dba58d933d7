from .base import EntityStore  # noqa: F401
from .raw_store import RAWStore  # noqa: F401
from .venue_store import VenueStore  # noqa: F401
