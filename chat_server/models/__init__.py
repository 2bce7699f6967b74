"""
SQLAlchemy models for the chat server.

All models must be imported here for Alembic auto-generation to work.
"""

# Import Base first
from chat_server.models.base import Base, UUIDMixin, CreatedAtMixin

from chat_server.models.user import User, UserStatus
from chat_server.models.conversation import Conversation, ConversationMember, ConversationRole
from chat_server.models.message import Message, MessageReaction, MessageType, ReadReceipt
from chat_server.models.typing_indicator import TypingIndicator
from chat_server.models.friendship import FriendRequest, FriendRequestStatus, Friendship
from chat_server.models.notification import Notification, NotificationType

# Export all models and enums
__all__ = [
    # Base classes
    "Base",
    "UUIDMixin",
    "CreatedAtMixin",
    # Users
    "User",
    "UserStatus",
    # Conversations
    "Conversation",
    "ConversationMember",
    "ConversationRole",
    # Messages
    "Message",
    "MessageReaction",
    "MessageType",
    "ReadReceipt",
    "TypingIndicator",
    # Friends
    "FriendRequest",
    "FriendRequestStatus",
    "Friendship",
    # Notifications
    "Notification",
    "NotificationType",
]
