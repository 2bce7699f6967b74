"""
Typing indicator repository.
"""
from datetime import datetime
from typing import Optional, List

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.models.typing_indicator import TypingIndicator
from chat_server.repositories.base import BaseRepository


class TypingIndicatorRepository(BaseRepository[TypingIndicator]):
    """Repository for typing indicator rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(TypingIndicator, db)

    async def find(self, conversation_id: str, user_id: str) -> Optional[TypingIndicator]:
        result = await self.db.execute(
            select(TypingIndicator).where(
                and_(
                    TypingIndicator.conversation_id == conversation_id,
                    TypingIndicator.user_id == user_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def list_active(
        self,
        conversation_id: str,
        updated_after: datetime,
        exclude_user_id: Optional[str] = None
    ) -> List[TypingIndicator]:
        """
        Rows flagged as typing and refreshed after `updated_after`.

        Args:
            conversation_id: Conversation id
            updated_after: Rows older than this are stale
            exclude_user_id: Usually the caller

        Returns:
            Active typing rows, oldest signal first
        """
        query = select(TypingIndicator).where(
            and_(
                TypingIndicator.conversation_id == conversation_id,
                TypingIndicator.is_typing.is_(True),
                TypingIndicator.updated_at > updated_after
            )
        )
        if exclude_user_id:
            query = query.where(TypingIndicator.user_id != exclude_user_id)

        result = await self.db.execute(query.order_by(TypingIndicator.updated_at))
        return list(result.scalars().all())
