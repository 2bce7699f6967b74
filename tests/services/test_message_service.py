"""
Tests for message service.
Tests business logic, validation, and error handling.
"""
import pytest
from sqlalchemy import select

from chat_server.config import settings
from chat_server.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from chat_server.models import (
    Conversation,
    ConversationMember,
    Message,
    MessageType,
    Notification,
    NotificationType,
    ReadReceipt,
)
from chat_server.services.composer import ViewComposer
from chat_server.services.message_service import MessageService


@pytest.mark.asyncio
class TestMessageService:
    """Test message service business logic."""

    async def test_send_message_success(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation,
        mock_websocket_manager
    ):
        """Test sending a message successfully."""
        service = MessageService(db_session)

        message = await service.send_message(
            test_user,
            conversation_id=test_conversation.id,
            content="Hello, world!"
        )

        assert message.content == "Hello, world!"
        assert message.sender_id == test_user.id
        assert message.type == MessageType.TEXT
        assert message.sender.username == "alice"
        assert message.reactions == []

        await db_session.refresh(test_conversation)
        assert test_conversation.last_message_at is not None

        mock_websocket_manager.broadcast_new_message.assert_awaited_once()
        args = mock_websocket_manager.broadcast_new_message.await_args.args
        assert args[0] == test_conversation.id
        assert args[1]["id"] == message.id

    async def test_send_message_notifies_every_other_member(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation,
        mock_websocket_manager
    ):
        """Each recipient gets one message notification; the sender gets none."""
        service = MessageService(db_session)

        await service.send_message(test_user, conversation_id=test_conversation.id, content="Ping")

        result = await db_session.execute(select(Notification))
        notifications = list(result.scalars().all())

        assert len(notifications) == 1
        assert notifications[0].user_id == test_user_2.id
        assert notifications[0].type == NotificationType.MESSAGE
        assert notifications[0].title == "Test Group"
        assert notifications[0].content == "Ping"
        assert notifications[0].related_id == test_conversation.id

        mock_websocket_manager.send_notification.assert_awaited_once()
        assert mock_websocket_manager.send_notification.await_args.args[0] == test_user_2.id

    async def test_send_attachment_notification_label(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation
    ):
        """Attachment-only messages use a generic notification text."""
        service = MessageService(db_session)

        await service.send_message(
            test_user,
            conversation_id=test_conversation.id,
            type=MessageType.IMAGE,
            file_url="https://cdn.example.org/cat.png",
            file_name="cat.png",
            file_size=2048
        )

        result = await db_session.execute(select(Notification))
        notification = result.scalar_one()
        assert notification.content == "Sent an attachment"

    async def test_send_message_not_member(self, db_session, test_user_3, test_conversation):
        """Test sending message when not a conversation member."""
        service = MessageService(db_session)

        with pytest.raises(ForbiddenError) as exc_info:
            await service.send_message(
                test_user_3,
                conversation_id=test_conversation.id,
                content="Hello"
            )

        assert exc_info.value.status_code == 403

        result = await db_session.execute(select(Message))
        assert result.scalars().all() == []

    async def test_send_message_with_reply(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation,
        test_message
    ):
        """Test sending a reply message."""
        service = MessageService(db_session)

        reply = await service.send_message(
            test_user_2,
            conversation_id=test_conversation.id,
            content="This is a reply",
            reply_to_id=test_message.id
        )

        assert reply.reply_to_id == test_message.id
        assert reply.reply_to is not None
        assert reply.reply_to.content == test_message.content
        assert reply.reply_to.sender.id == test_user.id

    async def test_send_message_reply_to_missing_message(self, db_session, test_user, test_conversation):
        service = MessageService(db_session)

        with pytest.raises(NotFoundError):
            await service.send_message(
                test_user,
                conversation_id=test_conversation.id,
                content="Reply",
                reply_to_id="00000000-0000-0000-0000-000000000000"
            )

    async def test_send_message_reply_across_conversations(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation,
        test_message
    ):
        """A reply target from a different conversation is rejected."""
        other = Conversation(is_group=False, created_by=test_user.id)
        db_session.add(other)
        await db_session.flush()
        db_session.add_all([
            ConversationMember(conversation_id=other.id, user_id=test_user.id),
            ConversationMember(conversation_id=other.id, user_id=test_user_2.id),
        ])
        await db_session.commit()

        service = MessageService(db_session)

        with pytest.raises(BadRequestError):
            await service.send_message(
                test_user,
                conversation_id=other.id,
                content="Wrong thread",
                reply_to_id=test_message.id
            )

    async def test_edit_message_success(self, db_session, test_user, test_message, mock_websocket_manager):
        """Test editing a message successfully."""
        service = MessageService(db_session)
        original_sent_at = test_message.sent_at

        edited = await service.edit_message(test_user, test_message.id, "Updated content")

        assert edited.content == "Updated content"
        assert edited.edited_at is not None
        assert edited.sent_at == original_sent_at
        mock_websocket_manager.broadcast_message_edited.assert_awaited_once()

    async def test_edit_message_not_owner(self, db_session, test_user_2, test_message):
        """Test editing message by non-owner."""
        service = MessageService(db_session)

        with pytest.raises(ForbiddenError) as exc_info:
            await service.edit_message(test_user_2, test_message.id, "Hacked content")

        assert exc_info.value.status_code == 403

        await db_session.refresh(test_message)
        assert test_message.content == "Test message content"

    async def test_edit_missing_message(self, db_session, test_user):
        service = MessageService(db_session)

        with pytest.raises(NotFoundError):
            await service.edit_message(test_user, "missing", "Content")

    async def test_delete_message_is_soft(
        self,
        db_session,
        test_user,
        test_message,
        mock_websocket_manager
    ):
        """Deleted messages stay in the list with placeholder content."""
        service = MessageService(db_session)

        deleted = await service.delete_message(test_user, test_message.id)

        assert deleted.deleted_at is not None
        assert deleted.content == settings.deleted_message_placeholder

        messages = await service.list_messages(test_user, test_message.conversation_id)
        assert [m.id for m in messages] == [test_message.id]
        assert messages[0].content == settings.deleted_message_placeholder

        mock_websocket_manager.broadcast_message_deleted.assert_awaited_once_with(
            test_message.conversation_id, test_message.id
        )

    async def test_delete_message_not_owner(self, db_session, test_user_2, test_message):
        service = MessageService(db_session)

        with pytest.raises(ForbiddenError):
            await service.delete_message(test_user_2, test_message.id)

    async def test_edit_deleted_message_keeps_tombstone(self, db_session, test_user, test_message):
        """Editing after deletion is accepted but the message still renders as deleted."""
        service = MessageService(db_session)

        await service.delete_message(test_user, test_message.id)
        edited = await service.edit_message(test_user, test_message.id, "Resurrected?")

        assert edited.content == settings.deleted_message_placeholder
        assert edited.deleted_at is not None
        assert edited.edited_at is not None

    async def test_deleted_reply_target_renders_tombstone(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation,
        test_message
    ):
        service = MessageService(db_session)
        reply = await service.send_message(
            test_user_2,
            conversation_id=test_conversation.id,
            content="Replying",
            reply_to_id=test_message.id
        )

        await service.delete_message(test_user, test_message.id)
        messages = await service.list_messages(test_user_2, test_conversation.id)

        reply_view = next(m for m in messages if m.id == reply.id)
        assert reply_view.reply_to.content == settings.deleted_message_placeholder

    async def test_forward_message(
        self,
        db_session,
        test_user,
        test_user_2,
        test_user_3,
        test_conversation,
        test_message
    ):
        """Forwarding copies content into the target and records the source."""
        target = Conversation(is_group=False, created_by=test_user.id)
        db_session.add(target)
        await db_session.flush()
        db_session.add_all([
            ConversationMember(conversation_id=target.id, user_id=test_user.id),
            ConversationMember(conversation_id=target.id, user_id=test_user_3.id),
        ])
        await db_session.commit()

        service = MessageService(db_session)
        forwarded = await service.forward_message(test_user, test_message.id, target.id)

        assert forwarded.conversation_id == target.id
        assert forwarded.content == test_message.content
        assert forwarded.forwarded_from_id == test_message.id
        assert forwarded.sender_id == test_user.id

        result = await db_session.execute(select(Notification))
        assert result.scalars().all() == []

    async def test_forward_requires_target_membership(
        self,
        db_session,
        test_user,
        test_user_3,
        test_message
    ):
        target = Conversation(is_group=False, created_by=test_user_3.id)
        db_session.add(target)
        await db_session.flush()
        db_session.add(ConversationMember(conversation_id=target.id, user_id=test_user_3.id))
        await db_session.commit()

        service = MessageService(db_session)

        with pytest.raises(ForbiddenError):
            await service.forward_message(test_user, test_message.id, target.id)

    async def test_forward_requires_source_membership(
        self,
        db_session,
        test_user_3,
        test_message
    ):
        target = Conversation(is_group=False, created_by=test_user_3.id)
        db_session.add(target)
        await db_session.flush()
        db_session.add(ConversationMember(conversation_id=target.id, user_id=test_user_3.id))
        await db_session.commit()

        service = MessageService(db_session)

        with pytest.raises(ForbiddenError):
            await service.forward_message(test_user_3, test_message.id, target.id)

    async def test_list_messages_window_is_newest_in_ascending_order(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation
    ):
        """The newest `limit` messages come back oldest first."""
        service = MessageService(db_session)
        sent = []
        for i in range(5):
            sender = test_user if i % 2 == 0 else test_user_2
            message = await service.send_message(sender, conversation_id=test_conversation.id, content=f"m{i}")
            sent.append(message.id)

        window = await service.list_messages(test_user, test_conversation.id, limit=3)

        assert [m.id for m in window] == sent[-3:]
        assert [m.content for m in window] == ["m2", "m3", "m4"]

    async def test_list_messages_fails_closed(self, db_session, test_user_3, test_conversation, test_message):
        """Non-members and anonymous callers get an empty list."""
        service = MessageService(db_session)

        assert await service.list_messages(test_user_3, test_conversation.id) == []
        assert await service.list_messages(None, test_conversation.id) == []

    async def test_reaction_toggle_round_trip(
        self,
        db_session,
        test_user,
        test_user_2,
        test_message,
        mock_websocket_manager
    ):
        """Applying the same reaction twice restores the original state."""
        service = MessageService(db_session)

        added = await service.react_to_message(test_user_2, test_message.id, "👍")
        assert added.added is True
        assert added.reaction.emoji == "👍"
        assert added.reaction.user.id == test_user_2.id

        view = await service.composer.compose_message(test_message)
        assert [(r.user_id, r.emoji) for r in view.reactions] == [(test_user_2.id, "👍")]

        removed = await service.react_to_message(test_user_2, test_message.id, "👍")
        assert removed.added is False
        assert removed.reaction is None

        view = await service.composer.compose_message(test_message)
        assert view.reactions == []

        assert mock_websocket_manager.broadcast_reaction_changed.await_count == 2

    async def test_different_emojis_coexist(self, db_session, test_user, test_user_2, test_message):
        service = MessageService(db_session)

        await service.react_to_message(test_user, test_message.id, "👍")
        await service.react_to_message(test_user, test_message.id, "❤️")
        await service.react_to_message(test_user_2, test_message.id, "👍")

        view = await service.composer.compose_message(test_message)
        assert len(view.reactions) == 3

    async def test_react_requires_membership(self, db_session, test_user_3, test_message):
        service = MessageService(db_session)

        with pytest.raises(ForbiddenError):
            await service.react_to_message(test_user_3, test_message.id, "👍")

    async def test_react_to_missing_message(self, db_session, test_user):
        service = MessageService(db_session)

        with pytest.raises(NotFoundError):
            await service.react_to_message(test_user, "missing", "👍")

    async def test_mark_read_is_idempotent_per_message(
        self,
        db_session,
        test_user_2,
        test_conversation,
        test_message,
        mock_websocket_manager
    ):
        service = MessageService(db_session)

        first = await service.mark_read(test_user_2, test_conversation.id, test_message.id)
        second = await service.mark_read(test_user_2, test_conversation.id, test_message.id)

        assert first.created is True
        assert second.created is False
        assert second.receipt_id == first.receipt_id

        result = await db_session.execute(select(ReadReceipt))
        assert len(result.scalars().all()) == 1
        mock_websocket_manager.broadcast_read_receipt.assert_awaited_once_with(
            test_conversation.id, test_user_2.id, test_message.id
        )

    async def test_mark_read_requires_membership(self, db_session, test_user_3, test_conversation, test_message):
        service = MessageService(db_session)

        with pytest.raises(ForbiddenError):
            await service.mark_read(test_user_3, test_conversation.id, test_message.id)

    async def test_mark_read_message_from_other_conversation(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation
    ):
        other = Conversation(is_group=False, created_by=test_user.id)
        db_session.add(other)
        await db_session.flush()
        db_session.add_all([
            ConversationMember(conversation_id=other.id, user_id=test_user.id),
            ConversationMember(conversation_id=other.id, user_id=test_user_2.id),
        ])
        await db_session.commit()

        service = MessageService(db_session)
        elsewhere = await service.send_message(test_user, conversation_id=other.id, content="Elsewhere")

        with pytest.raises(NotFoundError):
            await service.mark_read(test_user_2, test_conversation.id, elsewhere.id)

    async def test_unread_count_follows_latest_receipt(
        self,
        db_session,
        test_user,
        test_user_2,
        test_conversation
    ):
        """Only messages from others after the newest receipt are unread."""
        service = MessageService(db_session)
        composer = ViewComposer(db_session)

        first = await service.send_message(test_user, conversation_id=test_conversation.id, content="one")
        await service.send_message(test_user, conversation_id=test_conversation.id, content="two")
        await service.send_message(test_user_2, conversation_id=test_conversation.id, content="mine")

        assert await composer.unread_count(test_conversation.id, test_user_2.id) == 2
        assert await composer.unread_count(test_conversation.id, test_user.id) == 1

        latest = await service.send_message(test_user, conversation_id=test_conversation.id, content="three")
        await service.mark_read(test_user_2, test_conversation.id, latest.id)
        assert await composer.unread_count(test_conversation.id, test_user_2.id) == 0

        # Marking an older message later never raises the count back up
        await service.mark_read(test_user_2, test_conversation.id, first.id)
        assert await composer.unread_count(test_conversation.id, test_user_2.id) == 0

        await service.send_message(test_user, conversation_id=test_conversation.id, content="four")
        assert await composer.unread_count(test_conversation.id, test_user_2.id) == 1
