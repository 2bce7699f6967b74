"""
TypingIndicator model - ephemeral "user is typing" state.
"""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from chat_server.models.base import Base, UUIDMixin
from chat_server.utils.datetime_utils import utc_now


class TypingIndicator(Base, UUIDMixin):
    """
    At most one row per (conversation, user).

    A row counts as active only while updated_at is within the configured TTL;
    stale rows are filtered out on read rather than swept.
    """

    __tablename__ = "typing_indicators"

    conversation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        doc="Conversation being typed in"
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Typing user"
    )

    is_typing: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        doc="False once the client reports it stopped typing"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="Last keystroke signal"
    )

    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_typing_indicator"),
    )

    def __repr__(self) -> str:
        return f"<TypingIndicator(conversation_id={self.conversation_id}, user_id={self.user_id})>"
