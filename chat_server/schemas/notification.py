"""
Pydantic schemas for notifications.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

from chat_server.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    content: str
    is_read: bool
    related_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    count: int = Field(..., ge=0, description="Unread notifications")


class NotificationsMarkRead(BaseModel):
    """Omit notification_ids to mark every unread notification as read."""

    notification_ids: Optional[List[str]] = Field(None, max_length=500)


class NotificationsMarkReadResponse(BaseModel):
    updated: int = Field(..., ge=0, description="Notifications changed to read")
