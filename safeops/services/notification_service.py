import logging
from typing import Any, Dict, Iterable, List, Optional

from safeops.core.exceptions import NotFoundError
from safeops.gateway import Filter, Order, eq
from safeops.models.enums import Role

logger = logging.getLogger(__name__)

NOTIFICATIONS = "notifications"


class NotificationService:
    def __init__(self, gateway):
        self.gateway = gateway

    async def notify(self, user_id: int, title: str, message: str, type: str, related_id: Optional[int] = None) -> Dict[str, Any]:
        rows = await self.gateway.insert(NOTIFICATIONS, [
            {"user_id": user_id, "title": title, "message": message, "type": type, "related_id": related_id},
        ])
        return rows[0]

    async def notify_role(self, role: Role, title: str, message: str, type: str,
                          related_id: Optional[int] = None, exclude: Iterable[int] = ()) -> List[Dict[str, Any]]:
        """One notification per user holding ``role``."""
        skip = set(exclude)
        users = await self.gateway.select("users", columns=("id",), filters=[eq("role", role)])
        rows = [
            {"user_id": u["id"], "title": title, "message": message, "type": type, "related_id": related_id}
            for u in users if u["id"] not in skip
        ]
        if not rows:
            logger.info("no %s users to notify about %s %s", role.value, type, related_id)
            return []
        return await self.gateway.insert(NOTIFICATIONS, rows)

    async def list_for_user(self, user_id: int, unread_only: bool = False) -> List[Dict[str, Any]]:
        filters = [eq("user_id", user_id)]
        if unread_only:
            filters.append(Filter("is_read", "eq", False))
        return await self.gateway.select(NOTIFICATIONS, filters=filters, order=[Order("created_at", descending=True)])

    async def mark_read(self, notification_id: int, user_id: Optional[int] = None) -> Dict[str, Any]:
        filters = [eq("id", notification_id)]
        if user_id is not None:
            filters.append(eq("user_id", user_id))
        rows = await self.gateway.update(NOTIFICATIONS, {"is_read": True}, filters)
        if not rows:
            raise NotFoundError(f"notification {notification_id} not found")
        return rows[0]
