import logging
from typing import Any, Dict, List, Optional

from safeops.core.exceptions import NotFoundError, PersistenceError, ValidationError
from safeops.gateway import AnyOf, Filter, Order, eq, escape_like
from safeops.services.common import as_values, first
from safeops.services.hazard_service import HazardService, Payload

logger = logging.getLogger(__name__)

VENUES = "venues"
RECENT_FIRST = [Order("updated_at", descending=True)]

CREATE_FIELDS = ("name", "address", "postal_code", "latitude", "longitude", "status", "created_by")
UPDATE_FIELDS = ("name", "address", "postal_code", "latitude", "longitude", "status")


class VenueService:
    def __init__(self, gateway, hazards: HazardService):
        self.gateway = gateway
        self.hazards = hazards

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self.gateway.select(VENUES, order=RECENT_FIRST)

    async def search(self, query: Optional[str]) -> List[Dict[str, Any]]:
        """Case-insensitive substring match on name, address or postal code."""
        if not query or not query.strip():
            return await self.get_all()
        pattern = f"%{escape_like(query.strip())}%"
        match = AnyOf(
            Filter("name", "ilike", pattern),
            Filter("address", "ilike", pattern),
            Filter("postal_code", "ilike", pattern),
        )
        return await self.gateway.select(VENUES, filters=[match], order=RECENT_FIRST)

    async def get_by_id(self, venue_id: int) -> Optional[Dict[str, Any]]:
        try:
            return first(await self.gateway.select(VENUES, filters=[eq("id", venue_id)]))
        except PersistenceError:
            logger.exception("Error fetching venue %s", venue_id)
            return None

    async def get_hazards(self, venue_id: int) -> List[Dict[str, Any]]:
        return await self.hazards.list_venue_hazards(venue_id)

    async def create(self, data: Payload) -> Dict[str, Any]:
        values = {k: v for k, v in as_values(data, CREATE_FIELDS).items() if v is not None}
        if not values.get("name"):
            raise ValidationError("venue name is required")
        row = (await self.gateway.insert(VENUES, [values]))[0]
        logger.info("venue %s created", row["id"])
        return row

    async def update(self, venue_id: int, data: Payload) -> Dict[str, Any]:
        values = as_values(data, UPDATE_FIELDS)
        if not values:
            raise ValidationError("nothing to update")
        row = first(await self.gateway.update(VENUES, values, [eq("id", venue_id)]))
        if row is None:
            raise NotFoundError(f"venue {venue_id} not found")
        if "status" in values:
            # lifting or imposing a restriction re-derives the status from hazards
            row = await self.refresh_safety(venue_id) or row
        return row

    async def add_hazard(self, data: Payload) -> Dict[str, Any]:
        return await self.hazards.create_venue_hazard(data)

    async def refresh_safety(self, venue_id: int) -> Optional[Dict[str, Any]]:
        return await self.hazards.refresh_venue_safety(venue_id)
