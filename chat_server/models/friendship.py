"""
FriendRequest and Friendship models.

A friendship is stored as two directed rows (A->B and B->A) so listing a
user's friends is a single indexed lookup.
"""
import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from chat_server.models.base import Base, UUIDMixin, CreatedAtMixin, enum_type


class FriendRequestStatus(str, enum.Enum):
    """Enum for friend request lifecycle."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FriendRequest(Base, UUIDMixin, CreatedAtMixin):
    """Directed friend request. Only pending requests can be responded to."""

    __tablename__ = "friend_requests"

    sender_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="User who sent the request"
    )

    receiver_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="User who received the request"
    )

    status: Mapped[FriendRequestStatus] = mapped_column(
        enum_type(FriendRequestStatus, "friend_request_status"),
        default=FriendRequestStatus.PENDING,
        nullable=False,
        doc="pending, accepted or rejected"
    )

    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the receiver accepted or rejected"
    )

    def __repr__(self) -> str:
        return (
            f"<FriendRequest(sender_id={self.sender_id}, "
            f"receiver_id={self.receiver_id}, status={self.status})>"
        )


class Friendship(Base, UUIDMixin, CreatedAtMixin):
    """One direction of a symmetric friendship edge."""

    __tablename__ = "friendships"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="Owner of this edge"
    )

    friend_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        doc="The friend"
    )

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendship"),
    )

    def __repr__(self) -> str:
        return f"<Friendship(user_id={self.user_id}, friend_id={self.friend_id})>"


# At most one pending request per ordered pair
Index(
    "uq_friend_requests_pending_pair",
    FriendRequest.sender_id,
    FriendRequest.receiver_id,
    unique=True,
    postgresql_where=text("status = 'pending'"),
    sqlite_where=text("status = 'pending'"),
)
