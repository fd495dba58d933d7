from typing import List
from fastapi import APIRouter, Depends

from safeops.core.security import get_container, get_current_user
from safeops.schemas.notification import NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRead])
async def my_notifications(unread: bool = False, container=Depends(get_container), user=Depends(get_current_user)):
    return await container.notifications.list_for_user(user["id"], unread_only=unread)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(notification_id: int, container=Depends(get_container), user=Depends(get_current_user)):
    # scoped to the caller: someone else's notification is a 404
    return await container.notifications.mark_read(notification_id, user_id=user["id"])
