"""
Notification model - per-user inbox entries.
"""
import enum

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chat_server.models.base import Base, UUIDMixin, CreatedAtMixin, enum_type


class NotificationType(str, enum.Enum):
    """Enum for notification kinds."""
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    MESSAGE = "message"
    MENTION = "mention"


class Notification(Base, UUIDMixin, CreatedAtMixin):
    """
    Notification addressed to a single user.

    related_id points at the friend request or conversation the
    notification is about.
    """

    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Recipient"
    )

    type: Mapped[NotificationType] = mapped_column(
        enum_type(NotificationType, "notification_type"),
        nullable=False,
        doc="Notification kind"
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Short headline"
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Body text"
    )

    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="Whether the recipient has seen it"
    )

    related_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        doc="Friend request or conversation id"
    )

    def __repr__(self) -> str:
        return f"<Notification(user_id={self.user_id}, type={self.type}, is_read={self.is_read})>"


Index("idx_notifications_user_created", Notification.user_id, Notification.created_at)
Index("idx_notifications_user_unread", Notification.user_id, Notification.is_read)
