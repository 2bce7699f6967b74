"""
Friend request and friendship repositories.
"""
from typing import Optional, List

from sqlalchemy import select, and_, or_, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.models.friendship import FriendRequest, FriendRequestStatus, Friendship
from chat_server.repositories.base import BaseRepository


class FriendRequestRepository(BaseRepository[FriendRequest]):
    """Repository for friend requests."""

    def __init__(self, db: AsyncSession):
        super().__init__(FriendRequest, db)

    async def get_pending(self, sender_id: str, receiver_id: str) -> Optional[FriendRequest]:
        """Get the pending request from sender to receiver, if any."""
        result = await self.db.execute(
            select(FriendRequest).where(
                and_(
                    FriendRequest.sender_id == sender_id,
                    FriendRequest.receiver_id == receiver_id,
                    FriendRequest.status == FriendRequestStatus.PENDING
                )
            )
        )
        return result.scalar_one_or_none()

    async def list_pending_received(self, receiver_id: str) -> List[FriendRequest]:
        """Pending requests addressed to a user, newest first."""
        result = await self.db.execute(
            select(FriendRequest)
            .where(
                and_(
                    FriendRequest.receiver_id == receiver_id,
                    FriendRequest.status == FriendRequestStatus.PENDING
                )
            )
            .order_by(desc(FriendRequest.created_at))
        )
        return list(result.scalars().all())


class FriendshipRepository(BaseRepository[Friendship]):
    """
    Repository for directed friendship edges.

    Every friendship is two rows; helpers here always write and delete both.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Friendship, db)

    async def exists(self, user_id: str, friend_id: str) -> bool:
        result = await self.db.execute(
            select(Friendship.id).where(
                and_(
                    Friendship.user_id == user_id,
                    Friendship.friend_id == friend_id
                )
            )
        )
        return result.first() is not None

    async def create_pair(self, user_id: str, friend_id: str) -> None:
        """Insert both directed edges."""
        self.db.add_all([
            Friendship(user_id=user_id, friend_id=friend_id),
            Friendship(user_id=friend_id, friend_id=user_id),
        ])
        await self.db.flush()

    async def delete_pair(self, user_id: str, friend_id: str) -> int:
        """
        Delete both directed edges.

        Returns:
            Number of rows removed (0 when they were not friends)
        """
        result = await self.db.execute(
            delete(Friendship).where(
                or_(
                    and_(Friendship.user_id == user_id, Friendship.friend_id == friend_id),
                    and_(Friendship.user_id == friend_id, Friendship.friend_id == user_id),
                )
            )
        )
        await self.db.flush()
        return result.rowcount

    async def list_friend_ids(self, user_id: str) -> List[str]:
        """Ids of a user's friends, in the order the friendships were made."""
        result = await self.db.execute(
            select(Friendship.friend_id)
            .where(Friendship.user_id == user_id)
            .order_by(Friendship.created_at)
        )
        return list(result.scalars().all())
