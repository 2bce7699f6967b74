"""
Service layer: business rules over the repositories.
"""
from chat_server.services.composer import ViewComposer
from chat_server.services.conversation_service import ConversationService
from chat_server.services.friend_service import FriendService
from chat_server.services.message_service import MessageService
from chat_server.services.notification_service import NotificationService
from chat_server.services.typing_service import TypingService
from chat_server.services.user_service import UserService

__all__ = [
    "ViewComposer",
    "ConversationService",
    "FriendService",
    "MessageService",
    "NotificationService",
    "TypingService",
    "UserService",
]
