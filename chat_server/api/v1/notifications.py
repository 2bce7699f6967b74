"""
Notification API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.core.database import get_db
from chat_server.dependencies import get_current_user, get_current_user_optional
from chat_server.models.user import User
from chat_server.schemas.notification import (
    NotificationResponse,
    NotificationsMarkRead,
    NotificationsMarkReadResponse,
    UnreadCountResponse
)
from chat_server.services.notification_service import NotificationService

router = APIRouter()


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Number of unread notifications"
)
async def get_unread_count(
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    if current_user is None:
        return UnreadCountResponse(count=0)
    count = await NotificationService(db).get_unread_count(current_user)
    return UnreadCountResponse(count=count)


@router.get(
    "/",
    response_model=List[NotificationResponse],
    summary="The caller's notifications, newest first"
)
async def list_notifications(
    limit: Optional[int] = Query(None, ge=1, le=200),
    unread_only: bool = Query(False),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    if current_user is None:
        return []
    return await NotificationService(db).list_notifications(current_user, limit, unread_only)


@router.post(
    "/read",
    response_model=NotificationsMarkReadResponse,
    summary="Mark notifications as read",
    description="Marks the given ids, or every unread notification when notification_ids is omitted."
)
async def mark_notifications_read(
    payload: NotificationsMarkRead,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    updated = await NotificationService(db).mark_notifications_read(current_user, payload.notification_ids)
    return NotificationsMarkReadResponse(updated=updated)
