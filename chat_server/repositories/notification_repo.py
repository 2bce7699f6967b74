"""
Notification repository for database operations.
"""
from typing import Optional, List

from sqlalchemy import select, update, func, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.models.notification import Notification
from chat_server.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for user notifications."""

    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    async def list_for_user(
        self,
        user_id: str,
        limit: int = 50,
        unread_only: bool = False
    ) -> List[Notification]:
        """Newest notifications of a user."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))

        result = await self.db.execute(
            query.order_by(desc(Notification.created_at)).limit(limit)
        )
        return list(result.scalars().all())

    async def count_unread(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                and_(
                    Notification.user_id == user_id,
                    Notification.is_read.is_(False)
                )
            )
        )
        return result.scalar()

    async def mark_read(
        self,
        user_id: str,
        notification_ids: Optional[List[str]] = None
    ) -> int:
        """
        Mark the user's notifications as read.

        Args:
            user_id: Owner; ids belonging to other users are ignored
            notification_ids: Specific ids, or None for all unread

        Returns:
            Number of rows changed
        """
        stmt = (
            update(Notification)
            .where(
                and_(
                    Notification.user_id == user_id,
                    Notification.is_read.is_(False)
                )
            )
            .values(is_read=True)
        )
        if notification_ids is not None:
            if not notification_ids:
                return 0
            stmt = stmt.where(Notification.id.in_(notification_ids))

        result = await self.db.execute(stmt)
        await self.db.flush()
        return result.rowcount
