"""
Repository layer exports.
Provides database access layer for the application.
"""
from chat_server.repositories.base import BaseRepository
from chat_server.repositories.user_repo import UserRepository
from chat_server.repositories.conversation_repo import (
    ConversationRepository,
    ConversationMemberRepository
)
from chat_server.repositories.message_repo import (
    MessageRepository,
    MessageReactionRepository,
    ReadReceiptRepository
)
from chat_server.repositories.typing_repo import TypingIndicatorRepository
from chat_server.repositories.friend_repo import FriendRequestRepository, FriendshipRepository
from chat_server.repositories.notification_repo import NotificationRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ConversationRepository",
    "ConversationMemberRepository",
    "MessageRepository",
    "MessageReactionRepository",
    "ReadReceiptRepository",
    "TypingIndicatorRepository",
    "FriendRequestRepository",
    "FriendshipRepository",
    "NotificationRepository",
]
