"""
Conversation and ConversationMember models.

Handles both direct messages (DM) and group chats.
"""
import enum
from datetime import datetime
from typing import List

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from chat_server.models.base import Base, UUIDMixin, CreatedAtMixin, enum_type
from chat_server.utils.datetime_utils import utc_now


class ConversationRole(str, enum.Enum):
    """Enum for conversation member roles."""
    ADMIN = "admin"
    MEMBER = "member"


class Conversation(Base, UUIDMixin, CreatedAtMixin):
    """
    Conversation model for DMs and group chats.

    is_group is fixed at creation. last_message_at is denormalized and
    refreshed on every send/forward into the conversation.
    """

    __tablename__ = "conversations"

    is_group: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        doc="True for group chats, False for DMs"
    )

    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Group name"
    )

    group_image: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="Group avatar URL"
    )

    admin_ids: Mapped[List[str] | None] = mapped_column(
        JSON,
        nullable=True,
        doc="User ids allowed to manage the group (null for DMs)"
    )

    created_by: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="User who created the conversation"
    )

    last_message_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Time of the latest message"
    )

    def is_admin(self, user_id: str) -> bool:
        return user_id in (self.admin_ids or [])

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, is_group={self.is_group}, name={self.name})>"


class ConversationMember(Base):
    """
    ConversationMember model - the membership row authorizing access.

    The composite primary key guarantees one row per (conversation, user).
    """

    __tablename__ = "conversation_members"

    conversation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Conversation ID"
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User ID"
    )

    role: Mapped[ConversationRole] = mapped_column(
        enum_type(ConversationRole, "conversation_role"),
        default=ConversationRole.MEMBER,
        nullable=False,
        doc="Member role: 'admin' or 'member'"
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="When the user joined the conversation"
    )

    def __repr__(self) -> str:
        return (
            f"<ConversationMember(conversation_id={self.conversation_id}, "
            f"user_id={self.user_id}, role={self.role})>"
        )


Index("idx_conversation_members_user", ConversationMember.user_id)
Index("idx_conversation_members_conversation", ConversationMember.conversation_id)
