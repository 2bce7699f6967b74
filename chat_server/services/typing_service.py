"""
Typing indicator service.

Indicators expire by convention: rows older than the configured TTL are
hidden at read time and only overwritten, never swept.
"""
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.config import settings
from chat_server.core.exceptions import ForbiddenError
from chat_server.core.websocket import connection_manager
from chat_server.models.typing_indicator import TypingIndicator
from chat_server.models.user import User
from chat_server.repositories.conversation_repo import ConversationMemberRepository
from chat_server.repositories.typing_repo import TypingIndicatorRepository
from chat_server.repositories.user_repo import UserRepository
from chat_server.schemas.typing import TypingUserResponse
from chat_server.schemas.user import UserSummary
from chat_server.utils.datetime_utils import milliseconds_ago, utc_now


class TypingService:
    """Service for typing indicators."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.typing_repo = TypingIndicatorRepository(db)
        self.member_repo = ConversationMemberRepository(db)
        self.user_repo = UserRepository(db)
        self.ws_manager = connection_manager

    async def set_typing(self, user: User, conversation_id: str, is_typing: bool) -> TypingIndicator:
        """Upsert the caller's single indicator row for the conversation."""
        if not await self.member_repo.is_member(conversation_id, user.id):
            raise ForbiddenError("You are not a member of this conversation")

        indicator = await self.typing_repo.find(conversation_id, user.id)
        if indicator:
            await self.typing_repo.update(indicator, is_typing=is_typing, updated_at=utc_now())
        else:
            indicator = await self.typing_repo.create(
                conversation_id=conversation_id,
                user_id=user.id,
                is_typing=is_typing,
                updated_at=utc_now()
            )
        await self.db.commit()

        await self.ws_manager.broadcast_typing_changed(conversation_id, user.id, is_typing)
        return indicator

    async def list_typing(self, user: Optional[User], conversation_id: str) -> List[TypingUserResponse]:
        """
        Other members currently typing.

        Fails closed for anonymous callers and non-members.
        """
        if user is None:
            return []
        if not await self.member_repo.is_member(conversation_id, user.id):
            return []

        indicators = await self.typing_repo.list_active(
            conversation_id,
            updated_after=milliseconds_ago(settings.typing_indicator_ttl_ms),
            exclude_user_id=user.id
        )
        users = {u.id: u for u in await self.user_repo.get_many(i.user_id for i in indicators)}

        return [
            TypingUserResponse(
                user=UserSummary.model_validate(users[indicator.user_id]),
                updated_at=indicator.updated_at
            )
            for indicator in indicators
            if indicator.user_id in users
        ]
