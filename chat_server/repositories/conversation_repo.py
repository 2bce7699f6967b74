"""
Conversation repository for database operations.
Handles conversations, members, and related queries.
"""
from typing import Optional, List, Dict, Iterable

from sqlalchemy import select, func, and_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.models.conversation import Conversation, ConversationMember, ConversationRole
from chat_server.repositories.base import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Conversation, db)

    async def find_direct_conversation(
        self,
        user_id: str,
        other_user_id: str
    ) -> Optional[Conversation]:
        """
        Find an existing DM between two users.

        Scans the user's non-group conversations and returns the one with
        exactly two members where the other member is `other_user_id`.

        Args:
            user_id: One participant (the caller)
            other_user_id: The requested counterpart

        Returns:
            Existing DM conversation or None
        """
        candidates = await self.db.execute(
            select(Conversation)
            .join(
                ConversationMember,
                ConversationMember.conversation_id == Conversation.id
            )
            .where(
                and_(
                    ConversationMember.user_id == user_id,
                    Conversation.is_group.is_(False),
                )
            )
        )
        conversations = list(candidates.scalars().all())
        if not conversations:
            return None

        members_by_conversation = await ConversationMemberRepository(self.db).get_member_ids_map(
            [conversation.id for conversation in conversations]
        )

        for conversation in conversations:
            member_ids = members_by_conversation.get(conversation.id, [])
            if len(member_ids) == 2 and other_user_id in member_ids and user_id in member_ids:
                return conversation
        return None


class ConversationMemberRepository:
    """Repository for conversation membership rows (composite key, no id)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_member(
        self,
        conversation_id: str,
        user_id: str
    ) -> Optional[ConversationMember]:
        """Get a membership row or None."""
        result = await self.db.execute(
            select(ConversationMember).where(
                and_(
                    ConversationMember.conversation_id == conversation_id,
                    ConversationMember.user_id == user_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def is_member(self, conversation_id: str, user_id: str) -> bool:
        """Check whether the user has a membership row in the conversation."""
        result = await self.db.execute(
            select(func.count())
            .select_from(ConversationMember)
            .where(
                and_(
                    ConversationMember.conversation_id == conversation_id,
                    ConversationMember.user_id == user_id
                )
            )
        )
        return result.scalar() > 0

    async def list_for_user(self, user_id: str) -> List[ConversationMember]:
        """All membership rows of a user."""
        result = await self.db.execute(
            select(ConversationMember).where(ConversationMember.user_id == user_id)
        )
        return list(result.scalars().all())

    async def get_member_ids(self, conversation_id: str) -> List[str]:
        """User ids of every member of a conversation."""
        result = await self.db.execute(
            select(ConversationMember.user_id)
            .where(ConversationMember.conversation_id == conversation_id)
        )
        return list(result.scalars().all())

    async def get_member_ids_map(
        self,
        conversation_ids: Iterable[str]
    ) -> Dict[str, List[str]]:
        """
        Member ids for several conversations in one query.

        Returns:
            Mapping conversation_id -> list of user ids
        """
        ids = list(set(conversation_ids))
        members: Dict[str, List[str]] = {conversation_id: [] for conversation_id in ids}
        if not ids:
            return members

        result = await self.db.execute(
            select(ConversationMember.conversation_id, ConversationMember.user_id)
            .where(ConversationMember.conversation_id.in_(ids))
            .order_by(ConversationMember.joined_at)
        )
        for conversation_id, user_id in result.all():
            members[conversation_id].append(user_id)
        return members

    async def add_member(
        self,
        conversation_id: str,
        user_id: str,
        role: ConversationRole = ConversationRole.MEMBER
    ) -> ConversationMember:
        """Insert a membership row."""
        member = ConversationMember(
            conversation_id=conversation_id,
            user_id=user_id,
            role=role
        )
        self.db.add(member)
        await self.db.flush()
        return member

    async def add_if_absent(
        self,
        conversation_id: str,
        user_id: str,
        role: ConversationRole = ConversationRole.MEMBER
    ) -> Optional[ConversationMember]:
        """
        Insert a membership row unless one already exists.

        Returns:
            The new row, or None if the user was already a member
        """
        if await self.get_member(conversation_id, user_id):
            return None
        return await self.add_member(conversation_id, user_id, role)

    async def remove(self, conversation_id: str, user_id: str) -> bool:
        """
        Delete a membership row.

        Returns:
            True if a row was deleted
        """
        result = await self.db.execute(
            delete(ConversationMember).where(
                and_(
                    ConversationMember.conversation_id == conversation_id,
                    ConversationMember.user_id == user_id
                )
            )
        )
        await self.db.flush()
        return result.rowcount > 0
