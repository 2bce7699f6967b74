"""
Message repository for database operations.
Handles messages, reactions, and read receipts.
"""
from typing import Optional, List, Dict, Iterable

from sqlalchemy import select, func, and_, or_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.models.message import Message, MessageReaction, ReadReceipt
from chat_server.repositories.base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for message database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Message, db)

    async def list_recent(self, conversation_id: str, limit: int = 100) -> List[Message]:
        """
        Get the newest `limit` messages of a conversation in ascending order.

        Fetched newest-first through the (conversation_id, sent_at) index,
        then reversed so callers get chronological order.

        Args:
            conversation_id: Conversation id
            limit: Window size

        Returns:
            Messages ordered by sent_at ascending
        """
        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(desc(Message.sent_at), desc(Message.id))
            .limit(limit)
        )
        messages = list(result.scalars().all())
        messages.reverse()
        return messages

    async def get_latest_map(self, conversation_ids: Iterable[str]) -> Dict[str, Message]:
        """
        Most recent message of each conversation in one query.

        Conversations without messages are absent from the result.
        """
        ids = list(set(conversation_ids))
        if not ids:
            return {}

        position = func.row_number().over(
            partition_by=Message.conversation_id,
            order_by=(desc(Message.sent_at), desc(Message.id))
        ).label("position")
        ranked = (
            select(Message.id, position)
            .where(Message.conversation_id.in_(ids))
            .subquery()
        )
        result = await self.db.execute(
            select(Message)
            .join(ranked, ranked.c.id == Message.id)
            .where(ranked.c.position == 1)
        )
        return {message.conversation_id: message for message in result.scalars().all()}

    async def count_unread_map(
        self,
        conversation_ids: Iterable[str],
        user_id: str
    ) -> Dict[str, int]:
        """
        Count unread messages for a reader across several conversations.

        A message is unread when another user sent it after the reader's
        latest receipt in that conversation; with no receipt every message
        from others counts.

        Args:
            conversation_ids: Conversation ids
            user_id: Reader; their own messages are never unread

        Returns:
            Mapping conversation_id -> unread count (0 included)
        """
        ids = list(set(conversation_ids))
        counts: Dict[str, int] = {conversation_id: 0 for conversation_id in ids}
        if not ids:
            return counts

        read_marks = (
            select(
                ReadReceipt.conversation_id,
                func.max(ReadReceipt.read_at).label("read_at")
            )
            .where(
                and_(
                    ReadReceipt.user_id == user_id,
                    ReadReceipt.conversation_id.in_(ids)
                )
            )
            .group_by(ReadReceipt.conversation_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Message.conversation_id, func.count())
            .outerjoin(read_marks, read_marks.c.conversation_id == Message.conversation_id)
            .where(
                and_(
                    Message.conversation_id.in_(ids),
                    Message.sender_id != user_id,
                    or_(read_marks.c.read_at.is_(None), Message.sent_at > read_marks.c.read_at)
                )
            )
            .group_by(Message.conversation_id)
        )
        for conversation_id, count in result.all():
            counts[conversation_id] = count
        return counts


class MessageReactionRepository(BaseRepository[MessageReaction]):
    """Repository for message reaction operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(MessageReaction, db)

    async def find(
        self,
        message_id: str,
        user_id: str,
        emoji: str
    ) -> Optional[MessageReaction]:
        """Get the caller's reaction with this emoji, if any."""
        result = await self.db.execute(
            select(MessageReaction).where(
                and_(
                    MessageReaction.message_id == message_id,
                    MessageReaction.user_id == user_id,
                    MessageReaction.emoji == emoji
                )
            )
        )
        return result.scalar_one_or_none()

    async def remove(self, reaction: MessageReaction) -> None:
        await self.db.delete(reaction)
        await self.db.flush()

    async def list_for_messages(
        self,
        message_ids: Iterable[str]
    ) -> Dict[str, List[MessageReaction]]:
        """
        Reactions for several messages in one query.

        Returns:
            Mapping message_id -> reactions, oldest first
        """
        ids = list(set(message_ids))
        reactions: Dict[str, List[MessageReaction]] = {message_id: [] for message_id in ids}
        if not ids:
            return reactions

        result = await self.db.execute(
            select(MessageReaction)
            .where(MessageReaction.message_id.in_(ids))
            .order_by(MessageReaction.created_at)
        )
        for reaction in result.scalars().all():
            reactions[reaction.message_id].append(reaction)
        return reactions


class ReadReceiptRepository(BaseRepository[ReadReceipt]):
    """Repository for read receipts."""

    def __init__(self, db: AsyncSession):
        super().__init__(ReadReceipt, db)

    async def find(
        self,
        user_id: str,
        conversation_id: str,
        message_id: str
    ) -> Optional[ReadReceipt]:
        """Get the receipt recorded for this exact message, if any."""
        result = await self.db.execute(
            select(ReadReceipt).where(
                and_(
                    ReadReceipt.user_id == user_id,
                    ReadReceipt.conversation_id == conversation_id,
                    ReadReceipt.message_id == message_id
                )
            )
        )
        return result.scalar_one_or_none()
