"""
Notification service.

Creates per-recipient notifications as a side effect of friend and message
events, and serves the caller's notification inbox.

Creation only flushes; the service that owns the triggering mutation commits
and then calls `publish` so pushes never announce uncommitted rows.
"""
import logging
from typing import List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.config import settings
from chat_server.core.cache import (
    cache_unread_notification_count,
    get_cached_unread_notification_count,
    invalidate_unread_notification_count
)
from chat_server.core.websocket import connection_manager
from chat_server.models.conversation import Conversation
from chat_server.models.friendship import FriendRequest
from chat_server.models.message import Message
from chat_server.models.notification import Notification, NotificationType
from chat_server.models.user import User
from chat_server.repositories.notification_repo import NotificationRepository
from chat_server.schemas.notification import NotificationResponse
from chat_server.services.composer import DEFAULT_GROUP_NAME

logger = logging.getLogger(__name__)

ATTACHMENT_LABEL = "Sent an attachment"


class NotificationService:
    """Service for notification fan-out and the notification inbox."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notification_repo = NotificationRepository(db)
        self.ws_manager = connection_manager

    async def _create(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        content: str,
        related_id: Optional[str] = None
    ) -> Notification:
        return await self.notification_repo.create(
            user_id=user_id,
            type=type,
            title=title,
            content=content,
            related_id=related_id
        )

    async def notify_friend_request(self, request: FriendRequest, sender: User) -> Notification:
        """Tell the receiver someone wants to be friends."""
        return await self._create(
            user_id=request.receiver_id,
            type=NotificationType.FRIEND_REQUEST,
            title="New Friend Request",
            content=f"{sender.username} sent you a friend request",
            related_id=request.id
        )

    async def notify_friend_accepted(self, request: FriendRequest, accepter: User) -> Notification:
        """Tell the original sender their request was accepted."""
        return await self._create(
            user_id=request.sender_id,
            type=NotificationType.FRIEND_ACCEPTED,
            title="Friend Request Accepted",
            content=f"{accepter.username} accepted your friend request",
            related_id=request.id
        )

    async def notify_new_message(
        self,
        message: Message,
        conversation: Conversation,
        sender: User,
        recipient_ids: List[str]
    ) -> List[Notification]:
        """
        One `message` notification per recipient.

        Title is the group name for groups and the sender's username for DMs.
        """
        if conversation.is_group:
            title = conversation.name or DEFAULT_GROUP_NAME
        else:
            title = sender.username
        content = message.content or ATTACHMENT_LABEL

        notifications = []
        for recipient_id in recipient_ids:
            notifications.append(await self._create(
                user_id=recipient_id,
                type=NotificationType.MESSAGE,
                title=title,
                content=content,
                related_id=conversation.id
            ))
        return notifications

    async def publish(self, notifications: List[Notification]) -> None:
        """Invalidate cached counts and push committed notifications to recipients."""
        for notification in notifications:
            await invalidate_unread_notification_count(notification.user_id)
            payload = NotificationResponse.model_validate(notification)
            await self.ws_manager.send_notification(notification.user_id, jsonable_encoder(payload))

    async def get_unread_count(self, user: User) -> int:
        """Unread notifications for the caller, served from cache when possible."""
        cached = await get_cached_unread_notification_count(user.id)
        if cached is not None:
            return cached

        count = await self.notification_repo.count_unread(user.id)
        await cache_unread_notification_count(user.id, count)
        return count

    async def list_notifications(
        self,
        user: User,
        limit: Optional[int] = None,
        unread_only: bool = False
    ) -> List[Notification]:
        """Newest notifications of the caller."""
        return await self.notification_repo.list_for_user(
            user.id,
            limit=limit or settings.notification_page_size,
            unread_only=unread_only
        )

    async def mark_notifications_read(
        self,
        user: User,
        notification_ids: Optional[List[str]] = None
    ) -> int:
        """
        Mark the caller's notifications as read.

        Args:
            user: Caller
            notification_ids: Specific ids, or None for every unread one

        Returns:
            Number of notifications changed
        """
        updated = await self.notification_repo.mark_read(user.id, notification_ids)
        await self.db.commit()

        if updated:
            await invalidate_unread_notification_count(user.id)
            unread = await self.notification_repo.count_unread(user.id)
            await self.ws_manager.send_notification(user.id, {"unread_count": unread})

        logger.info(f"User {user.id} marked {updated} notification(s) read")
        return updated
