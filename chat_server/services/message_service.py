"""
Message service containing business logic for messaging operations.
Handles sending, editing, deletion, forwarding, reactions and read receipts.
"""
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.config import settings
from chat_server.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from chat_server.core.websocket import connection_manager
from chat_server.models.message import Message, MessageType
from chat_server.models.user import User
from chat_server.repositories.conversation_repo import (
    ConversationRepository,
    ConversationMemberRepository
)
from chat_server.repositories.message_repo import (
    MessageRepository,
    MessageReactionRepository,
    ReadReceiptRepository
)
from chat_server.schemas.message import (
    MarkReadResponse,
    MessageReactionResponse,
    MessageResponse,
    ReactionToggleResponse
)
from chat_server.schemas.user import UserSummary
from chat_server.services.composer import ViewComposer
from chat_server.services.notification_service import NotificationService
from chat_server.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class MessageService:
    """Service for message operations with business logic."""

    def __init__(self, db: AsyncSession):
        """
        Initialize message service.

        Args:
            db: Database session
        """
        self.db = db
        self.message_repo = MessageRepository(db)
        self.reaction_repo = MessageReactionRepository(db)
        self.receipt_repo = ReadReceiptRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.member_repo = ConversationMemberRepository(db)
        self.notification_service = NotificationService(db)
        self.composer = ViewComposer(db)
        self.ws_manager = connection_manager

    async def _require_membership(self, conversation_id: str, user_id: str) -> None:
        if not await self.member_repo.is_member(conversation_id, user_id):
            raise ForbiddenError("You are not a member of this conversation")

    async def _get_own_message(self, user: User, message_id: str) -> Message:
        """Load a message the caller authored, for edit and delete."""
        message = await self.message_repo.get(message_id)
        if not message:
            raise NotFoundError("Message not found")
        if message.sender_id != user.id:
            raise ForbiddenError("You can only modify your own messages")
        return message

    async def _append(self, conversation_id: str, **fields) -> Message:
        """Insert a message and bump the conversation's last-message time."""
        now = utc_now()
        message = await self.message_repo.create(
            conversation_id=conversation_id,
            sent_at=now,
            **fields
        )
        conversation = await self.conversation_repo.get(conversation_id)
        await self.conversation_repo.update(conversation, last_message_at=now)
        return message

    async def send_message(
        self,
        user: User,
        conversation_id: str,
        content: Optional[str] = None,
        type: MessageType = MessageType.TEXT,
        file_url: Optional[str] = None,
        file_name: Optional[str] = None,
        file_size: Optional[int] = None,
        reply_to_id: Optional[str] = None
    ) -> MessageResponse:
        """
        Send a message and notify every other member.

        Raises:
            ForbiddenError: Caller is not a member
            NotFoundError: reply_to_id names no message
            BadRequestError: reply target belongs to another conversation
        """
        await self._require_membership(conversation_id, user.id)

        if reply_to_id:
            reply_to = await self.message_repo.get(reply_to_id)
            if not reply_to:
                raise NotFoundError("Reply target message not found")
            if reply_to.conversation_id != conversation_id:
                raise BadRequestError("Reply target belongs to another conversation")

        message = await self._append(
            conversation_id,
            sender_id=user.id,
            content=content,
            type=type,
            file_url=file_url,
            file_name=file_name,
            file_size=file_size,
            reply_to_id=reply_to_id
        )

        conversation = await self.conversation_repo.get(conversation_id)
        member_ids = await self.member_repo.get_member_ids(conversation_id)
        recipient_ids = [member_id for member_id in member_ids if member_id != user.id]
        notifications = await self.notification_service.notify_new_message(
            message, conversation, user, recipient_ids
        )

        await self.db.commit()

        logger.info(f"User {user.id} sent message {message.id} to conversation {conversation_id}")

        view = await self.composer.compose_message(message)
        await self.ws_manager.broadcast_new_message(conversation_id, view.model_dump())
        await self.ws_manager.notify_conversations_changed(member_ids, conversation_id)
        await self.notification_service.publish(notifications)
        return view

    async def edit_message(self, user: User, message_id: str, content: str) -> MessageResponse:
        """
        Replace a message's content. Only the sender may edit.

        sent_at is never changed, so ordering is stable. Deleted messages can
        still be edited but keep rendering as deleted.
        """
        message = await self._get_own_message(user, message_id)
        await self.message_repo.update(message, content=content, edited_at=utc_now())
        await self.db.commit()

        logger.info(f"User {user.id} edited message {message.id}")

        view = await self.composer.compose_message(message)
        await self.ws_manager.broadcast_message_edited(message.conversation_id, view.model_dump())
        await self._announce_last_message_change(message.conversation_id)
        return view

    async def delete_message(self, user: User, message_id: str) -> MessageResponse:
        """
        Soft-delete a message. Only the sender may delete.

        The row stays for ordering and reply chains; its content is overwritten
        with the tombstone text.
        """
        message = await self._get_own_message(user, message_id)
        await self.message_repo.update(
            message,
            deleted_at=utc_now(),
            content=settings.deleted_message_placeholder
        )
        await self.db.commit()

        logger.info(f"User {user.id} deleted message {message.id}")

        await self.ws_manager.broadcast_message_deleted(message.conversation_id, message.id)
        await self._announce_last_message_change(message.conversation_id)
        return await self.composer.compose_message(message)

    async def forward_message(
        self,
        user: User,
        message_id: str,
        target_conversation_id: str
    ) -> MessageResponse:
        """
        Copy a message into another conversation.

        The caller must be a member of both the source and the target
        conversation. Forwarded copies do not create notifications.
        """
        source = await self.message_repo.get(message_id)
        if not source:
            raise NotFoundError("Message not found")

        await self._require_membership(source.conversation_id, user.id)
        await self._require_membership(target_conversation_id, user.id)

        message = await self._append(
            target_conversation_id,
            sender_id=user.id,
            content=source.content,
            type=source.type,
            file_url=source.file_url,
            file_name=source.file_name,
            file_size=source.file_size,
            forwarded_from_id=source.id
        )
        await self.db.commit()

        logger.info(f"User {user.id} forwarded message {source.id} to conversation {target_conversation_id}")

        view = await self.composer.compose_message(message)
        await self.ws_manager.broadcast_new_message(target_conversation_id, view.model_dump())
        await self._announce_last_message_change(target_conversation_id)
        return view

    async def list_messages(
        self,
        user: Optional[User],
        conversation_id: str,
        limit: Optional[int] = None
    ) -> List[MessageResponse]:
        """
        Newest `limit` messages of a conversation in ascending sent_at order.

        Fails closed: anonymous callers and non-members get an empty list.
        """
        if user is None:
            return []
        if not await self.member_repo.is_member(conversation_id, user.id):
            return []

        limit = limit or settings.message_page_size
        limit = max(1, min(limit, settings.message_page_max))

        messages = await self.message_repo.list_recent(conversation_id, limit)
        return await self.composer.compose_messages(messages)

    async def react_to_message(self, user: User, message_id: str, emoji: str) -> ReactionToggleResponse:
        """
        Toggle the caller's reaction: remove it if present, add it otherwise.

        Applying the same emoji twice returns to the original state.
        """
        message = await self.message_repo.get(message_id)
        if not message:
            raise NotFoundError("Message not found")

        await self._require_membership(message.conversation_id, user.id)

        existing = await self.reaction_repo.find(message_id, user.id, emoji)
        if existing:
            await self.reaction_repo.remove(existing)
            reaction = None
        else:
            reaction = await self.reaction_repo.create(
                message_id=message_id,
                user_id=user.id,
                emoji=emoji
            )
        await self.db.commit()

        added = reaction is not None
        logger.info(f"User {user.id} {'added' if added else 'removed'} reaction {emoji} on message {message_id}")

        await self.ws_manager.broadcast_reaction_changed(
            message.conversation_id, message_id, user.id, emoji, added
        )

        if not added:
            return ReactionToggleResponse(added=False)
        return ReactionToggleResponse(
            added=True,
            reaction=MessageReactionResponse(
                id=reaction.id,
                message_id=reaction.message_id,
                user_id=reaction.user_id,
                emoji=reaction.emoji,
                created_at=reaction.created_at,
                user=UserSummary.model_validate(user),
            )
        )

    async def mark_read(self, user: User, conversation_id: str, message_id: str) -> MarkReadResponse:
        """
        Record that the caller has seen `message_id`.

        A receipt is inserted only the first time a given message is marked;
        earlier receipts are kept and the newest one is the unread high-water
        mark.
        """
        await self._require_membership(conversation_id, user.id)

        message = await self.message_repo.get(message_id)
        if not message or message.conversation_id != conversation_id:
            raise NotFoundError("Message not found in this conversation")

        existing = await self.receipt_repo.find(user.id, conversation_id, message_id)
        if existing:
            return MarkReadResponse(receipt_id=existing.id, created=False)

        receipt = await self.receipt_repo.create(
            user_id=user.id,
            conversation_id=conversation_id,
            message_id=message_id,
            read_at=utc_now()
        )
        await self.db.commit()

        await self.ws_manager.broadcast_read_receipt(conversation_id, user.id, message_id)
        await self.ws_manager.notify_conversations_changed([user.id], conversation_id)
        return MarkReadResponse(receipt_id=receipt.id, created=True)

    async def _announce_last_message_change(self, conversation_id: str) -> None:
        member_ids = await self.member_repo.get_member_ids(conversation_id)
        await self.ws_manager.notify_conversations_changed(member_ids, conversation_id)
