"""
S-Network Backend — Notification Routes
=========================================

What:  The caller's notifications. GET /api/notifications also lists pending
       follow requests as synthetic `follow_request` items (id = null).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import get_db_session
from snetwork.dependencies import Pagination, get_current_user
from snetwork.models.notification import NOTIFICATION_TYPES
from snetwork.models.user import User
from snetwork.exceptions import ValidationError
from snetwork.schemas.common import ActionResponse
from snetwork.schemas.notification import NotificationListResponse, UnreadCountResponse
from snetwork.services.notification_service import notification_service

router = APIRouter(prefix="/api", tags=["Notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    type: Optional[str] = Query(default=None, description="Only this notification type"),
    mark_as_read: bool = Query(default=False, description="Mark everything read after building the page"),
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationListResponse:
    if type and type not in NOTIFICATION_TYPES:
        raise ValidationError(message=f"Unknown notification type: {type}", field="type")
    return await notification_service.list_notifications(
        db,
        user.id,
        type_filter=type,
        limit=pagination.limit,
        offset=pagination.offset,
        mark_as_read=mark_as_read,
    )


@router.get("/notifications/unread", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await notification_service.unread_count(db, user.id))


@router.post("/notifications/read-all", response_model=ActionResponse)
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    updated = await notification_service.mark_all_read(db, user.id)
    return ActionResponse(message=f"{updated} notifications marked as read")


@router.post("/notifications/{notification_id}/read", response_model=ActionResponse)
async def mark_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await notification_service.mark_read(db, user.id, notification_id)
    return ActionResponse(message="Notification marked as read")


@router.delete("/notifications/{notification_id}", response_model=ActionResponse)
async def delete_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await notification_service.delete(db, user.id, notification_id)
    return ActionResponse(message="Notification deleted")


@router.delete("/notifications", response_model=ActionResponse)
async def delete_all_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    deleted = await notification_service.delete_all(db, user.id)
    return ActionResponse(message=f"{deleted} notifications deleted")
