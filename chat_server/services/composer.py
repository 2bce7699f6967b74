"""
Read-view composition.

Builds the denormalized conversation and message views returned by the API.
Users, members, reactions, reply targets, last messages and unread counts are
each loaded in one batched query per view build, so composing a page of N
conversations or messages costs a fixed number of queries.
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.config import settings
from chat_server.models.conversation import Conversation
from chat_server.models.message import Message
from chat_server.models.user import User
from chat_server.repositories.conversation_repo import ConversationMemberRepository
from chat_server.repositories.message_repo import (
    MessageRepository,
    MessageReactionRepository
)
from chat_server.repositories.user_repo import UserRepository
from chat_server.schemas.conversation import ConversationResponse
from chat_server.schemas.message import MessageReactionResponse, MessageResponse, ReplyToResponse
from chat_server.schemas.user import UserSummary
from chat_server.utils.datetime_utils import ensure_utc

UNKNOWN_DISPLAY_NAME = "Unknown"
DEFAULT_GROUP_NAME = "Group"


def render_content(message: Message) -> Optional[str]:
    """Content as clients must see it; deleted messages show the tombstone."""
    if message.deleted_at is not None:
        return settings.deleted_message_placeholder
    return message.content


def display_name_for(user: Optional[User]) -> str:
    if user is None:
        return UNKNOWN_DISPLAY_NAME
    return user.username or user.full_name or UNKNOWN_DISPLAY_NAME


class ViewComposer:
    """Assembles read views from several repositories."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.member_repo = ConversationMemberRepository(db)
        self.message_repo = MessageRepository(db)
        self.reaction_repo = MessageReactionRepository(db)

    async def load_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """Batch-load users keyed by id."""
        users = await self.user_repo.get_many(user_ids)
        return {user.id: user for user in users}

    @staticmethod
    def summarize(user: Optional[User]) -> Optional[UserSummary]:
        return UserSummary.model_validate(user) if user is not None else None

    async def compose_messages(self, messages: List[Message]) -> List[MessageResponse]:
        """
        Resolve sender, reactions (with reactors) and reply target for each message.

        Input order is preserved.
        """
        if not messages:
            return []

        reply_ids = [message.reply_to_id for message in messages if message.reply_to_id]
        replies = {reply.id: reply for reply in await self.message_repo.get_many(reply_ids)}
        reactions = await self.reaction_repo.list_for_messages(message.id for message in messages)

        user_ids = {message.sender_id for message in messages}
        user_ids.update(reply.sender_id for reply in replies.values())
        for message_reactions in reactions.values():
            user_ids.update(reaction.user_id for reaction in message_reactions)
        users = await self.load_users(user_ids)

        views = []
        for message in messages:
            reply_view = None
            reply = replies.get(message.reply_to_id) if message.reply_to_id else None
            if reply is not None:
                reply_view = ReplyToResponse(
                    id=reply.id,
                    sender_id=reply.sender_id,
                    content=render_content(reply),
                    type=reply.type,
                    sent_at=reply.sent_at,
                    deleted_at=reply.deleted_at,
                    sender=self.summarize(users.get(reply.sender_id)),
                )

            views.append(MessageResponse(
                id=message.id,
                conversation_id=message.conversation_id,
                sender_id=message.sender_id,
                content=render_content(message),
                type=message.type,
                file_url=message.file_url,
                file_name=message.file_name,
                file_size=message.file_size,
                reply_to_id=message.reply_to_id,
                forwarded_from_id=message.forwarded_from_id,
                sent_at=message.sent_at,
                edited_at=message.edited_at,
                deleted_at=message.deleted_at,
                sender=self.summarize(users.get(message.sender_id)),
                reactions=[
                    MessageReactionResponse(
                        id=reaction.id,
                        message_id=reaction.message_id,
                        user_id=reaction.user_id,
                        emoji=reaction.emoji,
                        created_at=reaction.created_at,
                        user=self.summarize(users.get(reaction.user_id)),
                    )
                    for reaction in reactions.get(message.id, [])
                ],
                reply_to=reply_view,
            ))
        return views

    async def compose_message(self, message: Message) -> MessageResponse:
        views = await self.compose_messages([message])
        return views[0]

    async def unread_count(self, conversation_id: str, user_id: str) -> int:
        """
        Messages from others sent after the caller's latest receipt.

        With no receipt every message from others counts.
        """
        counts = await self.message_repo.count_unread_map([conversation_id], user_id)
        return counts[conversation_id]

    async def compose_conversations(
        self,
        conversations: List[Conversation],
        viewer_id: str
    ) -> List[ConversationResponse]:
        """
        Build conversation views for a viewer, most recently active first.

        Args:
            conversations: Conversations the viewer belongs to
            viewer_id: Caller's user id (drives DM display and unread counts)
        """
        if not conversations:
            return []

        conversation_ids = [c.id for c in conversations]
        member_ids = await self.member_repo.get_member_ids_map(conversation_ids)
        all_member_ids = {user_id for ids in member_ids.values() for user_id in ids}
        users = await self.load_users(all_member_ids)

        latest = await self.message_repo.get_latest_map(conversation_ids)
        unread = await self.message_repo.count_unread_map(conversation_ids, viewer_id)
        last_views = {
            view.conversation_id: view
            for view in await self.compose_messages(list(latest.values()))
        }

        views = []
        for conversation in conversations:
            members = [users[user_id] for user_id in member_ids.get(conversation.id, []) if user_id in users]

            if conversation.is_group:
                display_name = conversation.name or DEFAULT_GROUP_NAME
                display_image = conversation.group_image
            else:
                other = next((member for member in members if member.id != viewer_id), None)
                display_name = display_name_for(other)
                display_image = other.image_url if other else None

            views.append(ConversationResponse(
                id=conversation.id,
                is_group=conversation.is_group,
                name=conversation.name,
                group_image=conversation.group_image,
                admin_ids=conversation.admin_ids,
                created_by=conversation.created_by,
                created_at=conversation.created_at,
                last_message_at=conversation.last_message_at,
                members=[self.summarize(member) for member in members],
                last_message=last_views.get(conversation.id),
                unread_count=unread[conversation.id],
                display_name=display_name,
                display_image=display_image,
            ))

        views.sort(
            key=lambda view: ensure_utc(view.last_message.sent_at if view.last_message else view.created_at),
            reverse=True
        )
        return views

    async def compose_conversation(
        self,
        conversation: Conversation,
        viewer_id: str
    ) -> ConversationResponse:
        views = await self.compose_conversations([conversation], viewer_id)
        return views[0]
