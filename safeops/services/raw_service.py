import logging
from typing import Any, Dict, Iterable, List, Optional

from safeops.core.exceptions import InvalidTransitionError, NotFoundError, PersistenceError, ValidationError
from safeops.gateway import Embed, Filter, Order, eq
from safeops.models.columns import utcnow
from safeops.models.enums import RAWStatus, RiskLevel, Role
from safeops.models.notification import NotificationType
from safeops.services.common import as_values, first
from safeops.services.hazard_service import BY_RPN, HazardService, Payload
from safeops.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

RAWS = "raw_submissions"
RECENT_FIRST = [Order("updated_at", descending=True)]

CREATE_FIELDS = ("user_id", "venue_id", "event_title", "status", "risk_level")
UPDATE_FIELDS = ("venue_id", "event_title", "risk_level")

SUBMITTABLE = (RAWStatus.DRAFT, RAWStatus.CHANGES_REQUESTED)
REVIEWABLE = (RAWStatus.SUBMITTED,)


def _flatten(row: Dict[str, Any]) -> Dict[str, Any]:
    """Nested join results -> flat view model."""
    venue = row.pop("venues", None)
    row["venue_name"] = venue["name"] if venue else None
    if "raw_hazards" in row:
        row["hazards"] = row.pop("raw_hazards") or []
    return row


class RAWService:
    """Risk Assessment Worksheets and their approval lifecycle.

    draft -> submitted -> approved | rejected | changes_requested -> submitted ...
    Each transition is one guarded UPDATE: the row only changes if its current
    status allows the move, otherwise ``InvalidTransitionError`` is raised.
    """

    def __init__(self, gateway, hazards: HazardService, notifications: NotificationService):
        self.gateway = gateway
        self.hazards = hazards
        self.notifications = notifications

    async def get_all(self, user_id: Optional[int] = None) -> List[Dict[str, Any]]:
        filters = [eq("user_id", user_id)] if user_id is not None else []
        rows = await self.gateway.select(RAWS, filters=filters, order=RECENT_FIRST, embed={"venues": ("name",)})
        return [_flatten(r) for r in rows]

    async def get_by_id(self, raw_id: int) -> Optional[Dict[str, Any]]:
        try:
            rows = await self.gateway.select(
                RAWS,
                filters=[eq("id", raw_id)],
                embed={"venues": ("name",), "raw_hazards": Embed("*", order=tuple(BY_RPN))},
            )
        except PersistenceError:
            logger.exception("Error fetching RAW %s", raw_id)
            return None
        return _flatten(rows[0]) if rows else None

    async def create(self, data: Payload) -> Dict[str, Any]:
        values = as_values(data, CREATE_FIELDS)
        values["status"] = values.get("status") or RAWStatus.DRAFT
        values["risk_level"] = values.get("risk_level") or RiskLevel.MEDIUM
        if values["status"] != RAWStatus.DRAFT:
            raise ValidationError("a RAW starts as a draft; use submit() to move it on")
        if values.get("event_title") is None:
            values.pop("event_title", None)
        row = (await self.gateway.insert(RAWS, [values]))[0]
        logger.info("RAW %s created for venue %s by user %s", row["id"], row["venue_id"], row["user_id"])
        return row

    async def update(self, raw_id: int, data: Payload) -> Dict[str, Any]:
        values = as_values(data, UPDATE_FIELDS)
        if not values:
            raise ValidationError("nothing to update")
        row = first(await self.gateway.update(RAWS, values, [eq("id", raw_id)]))
        if row is None:
            raise NotFoundError(f"RAW {raw_id} not found")
        return row

    async def delete(self, raw_id: int) -> None:
        removed = await self.gateway.delete(RAWS, [eq("id", raw_id)])
        if not removed:
            logger.debug("delete of RAW %s matched nothing", raw_id)

    # -- lifecycle -------------------------------------------------------

    async def _transition(self, raw_id: int, target: RAWStatus, allowed: Iterable[RAWStatus],
                          values: Dict[str, Any], extra: Iterable[Filter] = ()) -> Optional[Dict[str, Any]]:
        filters = [eq("id", raw_id), Filter("status", "in", [s.value for s in allowed]), *extra]
        return first(await self.gateway.update(RAWS, {"status": target, **values}, filters))

    async def _refuse(self, raw_id: int, target: RAWStatus):
        current = first(await self.gateway.select(RAWS, columns=("status",), filters=[eq("id", raw_id)]))
        if current is None:
            raise NotFoundError(f"RAW {raw_id} not found")
        raise InvalidTransitionError(raw_id, current["status"], target.value)

    async def submit(self, raw_id: int, user_id: int) -> Dict[str, Any]:
        # submitted_at is written once: a resubmission keeps the first timestamp
        row = await self._transition(
            raw_id, RAWStatus.SUBMITTED, SUBMITTABLE,
            {"submitted_at": utcnow()}, [Filter("submitted_at", "is_null")],
        )
        if row is None:
            row = await self._transition(raw_id, RAWStatus.SUBMITTED, SUBMITTABLE, {})
        if row is None:
            await self._refuse(raw_id, RAWStatus.SUBMITTED)
        logger.info("RAW %s submitted by user %s", raw_id, user_id)

        await self._best_effort(self.notifications.notify(
            user_id, "RAW Submitted",
            "Your Risk Assessment Worksheet has been submitted for approval",
            NotificationType.RAW_SUBMITTED, raw_id,
        ), raw_id)
        await self._best_effort(self.notifications.notify_role(
            Role.APPROVER, "RAW awaiting approval",
            "A Risk Assessment Worksheet is waiting for your review",
            NotificationType.RAW_SUBMITTED, raw_id, exclude=[user_id],
        ), raw_id)
        return row

    async def approve(self, raw_id: int, approver_id: int) -> Dict[str, Any]:
        row = await self._transition(
            raw_id, RAWStatus.APPROVED, REVIEWABLE,
            {"approver_id": approver_id, "approved_at": utcnow()},
        )
        if row is None:
            await self._refuse(raw_id, RAWStatus.APPROVED)
        logger.info("RAW %s approved by %s", raw_id, approver_id)
        await self._notify_author(row, "RAW Approved", "Your Risk Assessment Worksheet was approved",
                                  NotificationType.RAW_APPROVED)
        return row

    async def reject(self, raw_id: int, approver_id: int, comments: str) -> Dict[str, Any]:
        return await self._review(raw_id, approver_id, comments, RAWStatus.REJECTED)

    async def request_changes(self, raw_id: int, approver_id: int, comments: str) -> Dict[str, Any]:
        return await self._review(raw_id, approver_id, comments, RAWStatus.CHANGES_REQUESTED)

    async def _review(self, raw_id: int, approver_id: int, comments: str, target: RAWStatus) -> Dict[str, Any]:
        if not comments or not comments.strip():
            raise ValidationError("comments are required")
        row = await self._transition(
            raw_id, target, REVIEWABLE,
            {"approver_id": approver_id, "approver_comments": comments},
        )
        if row is None:
            await self._refuse(raw_id, target)
        logger.info("RAW %s -> %s by %s", raw_id, target.value, approver_id)
        if target is RAWStatus.REJECTED:
            await self._notify_author(row, "RAW Rejected", comments, NotificationType.RAW_REJECTED)
        else:
            await self._notify_author(row, "RAW Changes Requested", comments, NotificationType.RAW_CHANGES_REQUESTED)
        return row

    async def _notify_author(self, row: Dict[str, Any], title: str, message: str, type: str) -> None:
        await self._best_effort(
            self.notifications.notify(row["user_id"], title, message, type, row["id"]), row["id"],
        )

    async def _best_effort(self, write, raw_id: int):
        # the transition is already committed; a failed notification is logged, not rolled back
        try:
            return await write
        except PersistenceError:
            logger.exception("notification for RAW %s failed", raw_id)
            return None

    # -- hazards ---------------------------------------------------------

    async def add_hazard(self, data: Payload) -> Dict[str, Any]:
        return await self.hazards.create_raw_hazard(data)

    async def get_hazards(self, raw_id: int) -> List[Dict[str, Any]]:
        return await self.hazards.list_raw_hazards(raw_id)

    async def update_hazard(self, hazard_id: int, data: Payload) -> Dict[str, Any]:
        return await self.hazards.update_raw_hazard(hazard_id, data)

    async def delete_hazard(self, hazard_id: int) -> None:
        await self.hazards.delete_raw_hazard(hazard_id)
