from typing import Any, Dict, List, Mapping, Sequence

from .base import EntityStore


class VenueStore(EntityStore):
    """Venues plus the hazard list of the venue being viewed."""

    def __init__(self):
        super().__init__("venues")
        self.venue_hazards: List[Dict[str, Any]] = []

    def set_venue_hazards(self, hazards: Sequence[Mapping[str, Any]]) -> None:
        self.venue_hazards = [dict(h) for h in hazards]
        self._changed()
