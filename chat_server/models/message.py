"""
Message, MessageReaction, and ReadReceipt models.

Handles all message types, reactions, and read receipts.
"""
import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from chat_server.models.base import Base, UUIDMixin, CreatedAtMixin, enum_type
from chat_server.utils.datetime_utils import utc_now


class MessageType(str, enum.Enum):
    """Enum for message types."""
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    VOICE = "voice"


class Message(Base, UUIDMixin):
    """
    Message model for all message types.

    Deletion is soft: deleted_at is set and the row stays so replies and
    ordering keep working.
    """

    __tablename__ = "messages"

    # References
    conversation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        doc="Conversation this message belongs to"
    )

    sender_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="User who sent the message"
    )

    # Message content
    content: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Text content"
    )

    type: Mapped[MessageType] = mapped_column(
        enum_type(MessageType, "message_type"),
        default=MessageType.TEXT,
        nullable=False,
        doc="Message type: text, image, file or voice"
    )

    # Attachment (stored externally, referenced by URL)
    file_url: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
        doc="Attachment URL"
    )

    file_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Original attachment file name"
    )

    file_size: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
        doc="Attachment size in bytes"
    )

    # Threading
    reply_to_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("messages.id", ondelete="SET NULL"),
        nullable=True,
        doc="Message this one replies to"
    )

    forwarded_from_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("messages.id", ondelete="SET NULL"),
        nullable=True,
        doc="Message this one was forwarded from"
    )

    # Lifecycle
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="When the message was sent"
    )

    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Last edit time"
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Soft-delete time"
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, type={self.type}, conversation_id={self.conversation_id})>"


class MessageReaction(Base, UUIDMixin, CreatedAtMixin):
    """
    Emoji reaction on a message.

    One row per (message, user, emoji); reacting again removes it.
    """

    __tablename__ = "message_reactions"

    message_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        doc="Reacted message"
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Reacting user"
    )

    emoji: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        doc="Emoji character(s)"
    )

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", "emoji", name="uq_message_reaction"),
    )

    def __repr__(self) -> str:
        return f"<MessageReaction(message_id={self.message_id}, user_id={self.user_id}, emoji={self.emoji})>"


class ReadReceipt(Base, UUIDMixin):
    """
    Marks a message as read by a user.

    Receipts accumulate; the unread count uses the latest read_at per
    (user, conversation).
    """

    __tablename__ = "read_receipts"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Reader"
    )

    conversation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        doc="Conversation of the read message"
    )

    message_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        doc="Message read"
    )

    read_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="When the message was marked read"
    )

    __table_args__ = (
        UniqueConstraint("user_id", "conversation_id", "message_id", name="uq_read_receipt"),
    )

    def __repr__(self) -> str:
        return f"<ReadReceipt(user_id={self.user_id}, message_id={self.message_id})>"


# Indexes for performance
Index("idx_messages_conversation_sent", Message.conversation_id, Message.sent_at)
Index("idx_message_reactions_message", MessageReaction.message_id)
Index("idx_read_receipts_user_conversation", ReadReceipt.user_id, ReadReceipt.conversation_id, ReadReceipt.read_at)
