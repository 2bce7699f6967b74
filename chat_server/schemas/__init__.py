"""
Pydantic schemas for request/response validation.
"""
from chat_server.schemas.user import (
    UserSyncRequest,
    UserStatusUpdate,
    UserProfileUpdate,
    UserSummary,
    UserResponse,
)
from chat_server.schemas.message import (
    MessageCreate,
    MessageUpdate,
    MessageForwardRequest,
    MessageReactionToggle,
    MarkReadRequest,
    MessageReactionResponse,
    ReplyToResponse,
    MessageResponse,
    ReactionToggleResponse,
    MarkReadResponse,
)
from chat_server.schemas.conversation import (
    ConversationCreate,
    ConversationMembersAdd,
    ConversationResponse,
)
from chat_server.schemas.friend import (
    FriendRequestCreate,
    FriendRequestRespond,
    FriendRequestResponse,
)
from chat_server.schemas.notification import (
    NotificationResponse,
    UnreadCountResponse,
    NotificationsMarkRead,
    NotificationsMarkReadResponse,
)
from chat_server.schemas.typing import TypingUpdate, TypingUserResponse

__all__ = [
    "UserSyncRequest",
    "UserStatusUpdate",
    "UserProfileUpdate",
    "UserSummary",
    "UserResponse",
    "MessageCreate",
    "MessageUpdate",
    "MessageForwardRequest",
    "MessageReactionToggle",
    "MarkReadRequest",
    "MessageReactionResponse",
    "ReplyToResponse",
    "MessageResponse",
    "ReactionToggleResponse",
    "MarkReadResponse",
    "ConversationCreate",
    "ConversationMembersAdd",
    "ConversationResponse",
    "FriendRequestCreate",
    "FriendRequestRespond",
    "FriendRequestResponse",
    "NotificationResponse",
    "UnreadCountResponse",
    "NotificationsMarkRead",
    "NotificationsMarkReadResponse",
    "TypingUpdate",
    "TypingUserResponse",
]
