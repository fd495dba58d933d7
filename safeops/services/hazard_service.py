import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from safeops.core.exceptions import NotFoundError, ValidationError
from safeops.gateway import Filter, Order, eq
from safeops.models.enums import HazardStatus, Severity, VenueStatus
from safeops.services.common import as_values, first
from safeops.services.risk import RpnScale, rpn

logger = logging.getLogger(__name__)

VENUE_HAZARDS = "venue_hazards"
RAW_HAZARDS = "raw_hazards"

BY_RPN = [Order("rpn", descending=True)]

VENUE_HAZARD_FIELDS = ("venue_id", "hazard_category", "description", "severity", "likelihood", "status")
VENUE_HAZARD_EDITABLE = ("hazard_category", "description", "severity", "likelihood", "status")
RAW_HAZARD_FIELDS = ("raw_id", "hazard_description", "severity", "likelihood", "control_measures")
RAW_HAZARD_EDITABLE = ("hazard_description", "severity", "likelihood", "control_measures")

ACTIVE = [HazardStatus.OPEN.value, HazardStatus.PENDING.value]

Payload = Union[BaseModel, Mapping[str, Any]]


class HazardService:
    """Venue and RAW hazards. Owns the RPN: computed on insert, recomputed
    whenever severity or likelihood changes."""

    def __init__(self, gateway, scale: Optional[RpnScale]):
        self.gateway = gateway
        self.scale = scale

    def _with_rpn(self, values: Dict[str, Any]) -> Dict[str, Any]:
        if "severity" not in values or "likelihood" not in values:
            raise ValidationError("severity and likelihood are required")
        values["rpn"] = rpn(values["severity"], values["likelihood"], self.scale)
        return values

    async def _edit(self, relation: str, hazard_id: int, values: Dict[str, Any]) -> Dict[str, Any]:
        if not values:
            raise ValidationError("nothing to update")
        if "severity" in values or "likelihood" in values:
            current = first(await self.gateway.select(relation, columns=("severity", "likelihood"), filters=[eq("id", hazard_id)]))
            if current is None:
                raise NotFoundError(f"hazard {hazard_id} not found")
            merged = {**current, **values}
            values["rpn"] = rpn(merged["severity"], merged["likelihood"], self.scale)
        row = first(await self.gateway.update(relation, values, [eq("id", hazard_id)]))
        if row is None:
            raise NotFoundError(f"hazard {hazard_id} not found")
        return row

    # -- venue hazards ---------------------------------------------------

    async def create_venue_hazard(self, data: Payload) -> Dict[str, Any]:
        values = self._with_rpn(as_values(data, VENUE_HAZARD_FIELDS))
        row = (await self.gateway.insert(VENUE_HAZARDS, [values]))[0]
        logger.info("hazard %s added to venue %s (rpn=%s)", row["id"], row["venue_id"], row["rpn"])
        await self.refresh_venue_safety(row["venue_id"])
        return row

    async def get_venue_hazard(self, hazard_id: int) -> Optional[Dict[str, Any]]:
        return first(await self.gateway.select(VENUE_HAZARDS, filters=[eq("id", hazard_id)]))

    async def list_venue_hazards(self, venue_id: int) -> List[Dict[str, Any]]:
        return await self.gateway.select(VENUE_HAZARDS, filters=[eq("venue_id", venue_id)], order=BY_RPN)

    async def update_venue_hazard(self, hazard_id: int, data: Payload) -> Dict[str, Any]:
        values = as_values(data, VENUE_HAZARD_EDITABLE)
        row = await self._edit(VENUE_HAZARDS, hazard_id, values)
        if "status" in values or "severity" in values:
            await self.refresh_venue_safety(row["venue_id"])
        return row

    async def set_venue_hazard_status(self, hazard_id: int, status: HazardStatus) -> Dict[str, Any]:
        return await self.update_venue_hazard(hazard_id, {"status": HazardStatus(status)})

    async def refresh_venue_safety(self, venue_id: int) -> Optional[Dict[str, Any]]:
        """Recompute ``critical_issues_count`` and the derived status of a venue
        from its open/pending hazards. A restricted venue stays restricted."""
        venue = first(await self.gateway.select("venues", filters=[eq("id", venue_id)]))
        if venue is None:
            return None
        active = await self.gateway.select(
            VENUE_HAZARDS, columns=("severity",),
            filters=[eq("venue_id", venue_id), Filter("status", "in", ACTIVE)],
        )
        critical = sum(1 for h in active if h["severity"] == Severity.CRITICAL.value)
        if venue["status"] == VenueStatus.RESTRICTED.value:
            status = VenueStatus.RESTRICTED
        elif critical:
            status = VenueStatus.CRITICAL
        elif active:
            status = VenueStatus.WARNING
        else:
            status = VenueStatus.SAFE

        if venue["status"] == status.value and venue["critical_issues_count"] == critical:
            return venue
        logger.info("venue %s safety: %s -> %s (%d critical)", venue_id, venue["status"], status.value, critical)
        return first(await self.gateway.update(
            "venues", {"status": status, "critical_issues_count": critical}, [eq("id", venue_id)],
        ))

    # -- RAW hazards -----------------------------------------------------

    async def create_raw_hazard(self, data: Payload) -> Dict[str, Any]:
        values = self._with_rpn(as_values(data, RAW_HAZARD_FIELDS))
        return (await self.gateway.insert(RAW_HAZARDS, [values]))[0]

    async def get_raw_hazard(self, hazard_id: int) -> Optional[Dict[str, Any]]:
        return first(await self.gateway.select(RAW_HAZARDS, filters=[eq("id", hazard_id)]))

    async def list_raw_hazards(self, raw_id: int) -> List[Dict[str, Any]]:
        return await self.gateway.select(RAW_HAZARDS, filters=[eq("raw_id", raw_id)], order=BY_RPN)

    async def update_raw_hazard(self, hazard_id: int, data: Payload) -> Dict[str, Any]:
        return await self._edit(RAW_HAZARDS, hazard_id, as_values(data, RAW_HAZARD_EDITABLE))

    async def delete_raw_hazard(self, hazard_id: int) -> None:
        await self.gateway.delete(RAW_HAZARDS, [eq("id", hazard_id)])
