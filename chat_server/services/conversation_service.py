"""
Conversation service containing business logic for the conversation directory.
Handles DM/group creation, membership and per-user conversation listing.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from chat_server.core.websocket import connection_manager
from chat_server.models.conversation import Conversation, ConversationRole
from chat_server.models.user import User
from chat_server.repositories.conversation_repo import (
    ConversationRepository,
    ConversationMemberRepository
)
from chat_server.repositories.user_repo import UserRepository
from chat_server.schemas.conversation import ConversationResponse
from chat_server.services.composer import ViewComposer

logger = logging.getLogger(__name__)


class ConversationService:
    """Service for conversation operations with business logic."""

    def __init__(self, db: AsyncSession):
        """
        Initialize conversation service.

        Args:
            db: Database session
        """
        self.db = db
        self.conversation_repo = ConversationRepository(db)
        self.member_repo = ConversationMemberRepository(db)
        self.user_repo = UserRepository(db)
        self.composer = ViewComposer(db)
        self.ws_manager = connection_manager

    async def _require_users(self, user_ids: List[str]) -> None:
        """Raise NotFoundError unless every id names an existing user."""
        found = {user.id for user in await self.user_repo.get_many(user_ids)}
        missing = [user_id for user_id in user_ids if user_id not in found]
        if missing:
            raise NotFoundError(f"User(s) not found: {', '.join(missing)}")

    async def create_conversation(
        self,
        user: User,
        is_group: bool,
        member_ids: List[str],
        name: Optional[str] = None,
        group_image: Optional[str] = None
    ) -> Tuple[Conversation, bool]:
        """
        Create a conversation, or return the existing DM with the same person.

        Args:
            user: Creator
            is_group: Group chat or DM
            member_ids: Other members (the creator is added automatically)
            name: Group name
            group_image: Group avatar URL

        Returns:
            Tuple of (conversation, created)
        """
        member_ids = list(dict.fromkeys(member_ids))
        if user.id in member_ids:
            raise BadRequestError("Do not include yourself in member_ids")
        if not member_ids:
            raise BadRequestError("At least one other member is required")

        await self._require_users(member_ids)

        if not is_group and len(member_ids) == 1:
            target_id = member_ids[0]
            # Serialize concurrent DM creation between the same two users
            await self.user_repo.lock_users([user.id, target_id])
            existing = await self.conversation_repo.find_direct_conversation(user.id, target_id)
            if existing:
                logger.info(f"Reusing DM {existing.id} between {user.id} and {target_id}")
                return existing, False

        conversation = await self.conversation_repo.create(
            is_group=is_group,
            name=name,
            group_image=group_image,
            admin_ids=[user.id] if is_group else None,
            created_by=user.id
        )

        await self.member_repo.add_member(
            conversation.id,
            user.id,
            ConversationRole.ADMIN if is_group else ConversationRole.MEMBER
        )
        for member_id in member_ids:
            await self.member_repo.add_member(conversation.id, member_id, ConversationRole.MEMBER)

        await self.db.commit()

        logger.info(
            f"User {user.id} created {'group' if is_group else 'DM'} conversation "
            f"{conversation.id} with {len(member_ids)} member(s)"
        )

        await self.ws_manager.notify_conversations_changed([user.id, *member_ids], conversation.id)
        return conversation, True

    async def list_conversations(self, user: Optional[User]) -> List[ConversationResponse]:
        """All conversations of the caller, most recently active first."""
        if user is None:
            return []

        memberships = await self.member_repo.list_for_user(user.id)
        conversations = await self.conversation_repo.get_many(m.conversation_id for m in memberships)
        return await self.composer.compose_conversations(conversations, user.id)

    async def get_conversation(
        self,
        user: Optional[User],
        conversation_id: str
    ) -> Optional[ConversationResponse]:
        """
        A single conversation view.

        Fails closed: returns None for anonymous callers, unknown ids and
        conversations the caller is not a member of.
        """
        if user is None:
            return None

        conversation = await self.conversation_repo.get(conversation_id)
        if not conversation:
            return None
        if not await self.member_repo.is_member(conversation_id, user.id):
            return None

        return await self.composer.compose_conversation(conversation, user.id)

    async def add_members(
        self,
        user: User,
        conversation_id: str,
        member_ids: List[str]
    ) -> List[str]:
        """
        Add members to a group. Only group admins may do this.

        Existing members are skipped.

        Returns:
            Ids of the users that were actually added
        """
        conversation = await self.conversation_repo.get(conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")

        if not conversation.is_group:
            raise BadRequestError("Members can only be added to group conversations")

        if not conversation.is_admin(user.id):
            raise ForbiddenError("Only group admins can add members")

        member_ids = list(dict.fromkeys(member_ids))
        await self._require_users(member_ids)

        added = []
        for member_id in member_ids:
            if await self.member_repo.add_if_absent(conversation_id, member_id):
                added.append(member_id)

        await self.db.commit()

        if added:
            logger.info(f"User {user.id} added {added} to conversation {conversation_id}")
            all_member_ids = await self.member_repo.get_member_ids(conversation_id)
            await self.ws_manager.notify_conversations_changed(all_member_ids, conversation_id)
        return added

    async def leave_conversation(self, user: User, conversation_id: str) -> bool:
        """
        Remove the caller's membership.

        A no-op when the caller is not a member. The conversation is kept even
        when nobody is left and admin rights are not reassigned.

        Returns:
            True if a membership was removed
        """
        removed = await self.member_repo.remove(conversation_id, user.id)
        await self.db.commit()

        if removed:
            logger.info(f"User {user.id} left conversation {conversation_id}")
            await self.ws_manager.remove_user_from_conversation(user.id, conversation_id)
            remaining = await self.member_repo.get_member_ids(conversation_id)
            await self.ws_manager.notify_conversations_changed([user.id, *remaining], conversation_id)
        return removed
