"""
Notification feed endpoints.
"""

from typing import Dict, Any

from fastapi import APIRouter, Depends

from date_market.api.dependencies import get_notification_service
from date_market.api.schemas.serializers import notification_to_dict
from date_market.services.notification_service import NotificationService


router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/{user_id}")
async def list_notifications(
    user_id: str,
    unread_only: bool = False,
    notification_service: NotificationService = Depends(get_notification_service)
) -> Dict[str, Any]:
    notifications = notification_service.get_notifications(user_id, unread_only=unread_only)
    return {"notifications": [notification_to_dict(n) for n in notifications]}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    notification_service: NotificationService = Depends(get_notification_service)
) -> Dict[str, Any]:
    notification = notification_service.mark_read(notification_id)
    return {"notification": notification_to_dict(notification)}


@router.post("/{user_id}/read-all")
async def mark_all_read(
    user_id: str,
    notification_service: NotificationService = Depends(get_notification_service)
) -> Dict[str, Any]:
    updated = notification_service.mark_all_read(user_id)
    return {"updated": updated}
