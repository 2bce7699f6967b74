"""
User model - local record for an identity-provider subject.

Created on the first authenticated contact and refreshed on every login.
"""
import enum
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chat_server.models.base import Base, UUIDMixin, CreatedAtMixin, enum_type


class UserStatus(str, enum.Enum):
    """Enum for user presence status."""
    ONLINE = "online"
    OFFLINE = "offline"
    AWAY = "away"


class User(Base, UUIDMixin, CreatedAtMixin):
    """User model keyed by the identity provider's stable subject."""

    __tablename__ = "users"

    external_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        doc="Subject identifier from the auth provider (immutable)"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Email address from the auth provider"
    )

    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Username from the auth provider"
    )

    full_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Full display name"
    )

    image_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="Avatar URL"
    )

    bio: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Free-form profile text"
    )

    status: Mapped[UserStatus] = mapped_column(
        enum_type(UserStatus, "user_status"),
        default=UserStatus.OFFLINE,
        nullable=False,
        doc="Presence: online, offline or away"
    )

    last_seen_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Last login or status change"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"


Index("idx_users_username", User.username)
Index("idx_users_email", User.email)
