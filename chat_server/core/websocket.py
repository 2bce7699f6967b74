"""
WebSocket manager for real-time updates.
Handles Socket.IO connections, rooms, and invalidation broadcasts.

Every committed mutation publishes a small event naming what changed; clients
re-run the affected query. Rooms:
    user:<user_id>                 - every connection of a user
    conversation:<conversation_id> - clients viewing a conversation
"""
import logging
from typing import Dict, Set, Optional, Any, Iterable

import socketio
from fastapi.encoders import jsonable_encoder

from chat_server.config import settings

logger = logging.getLogger(__name__)


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def conversation_room(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


class ConnectionManager:
    """
    WebSocket connection manager using Socket.IO.

    Authenticates connections with the same bearer token as the HTTP API and
    fans out invalidation events to user and conversation rooms.
    """

    def __init__(self):
        """Initialize the connection manager."""
        cors_origins = settings.get_allowed_origins_list() if settings.allowed_origins else "*"

        client_manager = None
        if settings.redis_url:
            # Multi-process fan-out
            client_manager = socketio.AsyncRedisManager(settings.redis_url)
            logger.info("Socket.IO using Redis client manager")

        self.sio = socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins=cors_origins,
            client_manager=client_manager,
            logger=False,
            engineio_logger=False,
            ping_timeout=settings.ws_heartbeat_interval,
            ping_interval=max(settings.ws_heartbeat_interval // 2, 1),
        )

        # Track connections: {sid: user_id}
        self.connections: Dict[str, str] = {}

        # Track user sessions: {user_id: set of sids}
        self.user_sessions: Dict[str, Set[str]] = {}

        self._setup_handlers()

    def _setup_handlers(self):
        """Setup Socket.IO event handlers."""

        @self.sio.event
        async def connect(sid, environ, auth):
            """
            Handle client connection.

            Client must provide {'token': <bearer token>} in the handshake.
            """
            token = auth.get("token") if isinstance(auth, dict) else None
            if not token:
                logger.warning(f"Connection rejected - no token: {sid}")
                return False

            from chat_server.core.database import AsyncSessionLocal
            from chat_server.core.security import SecurityException, extract_subject
            from chat_server.services.user_service import UserService

            try:
                subject = extract_subject(token)
            except SecurityException as e:
                logger.warning(f"Connection rejected - invalid token: {sid} ({e.detail})")
                return False

            async with AsyncSessionLocal() as db:
                user = await UserService(db).resolve(subject)

            if not user:
                logger.warning(f"Connection rejected - user not found: {sid}")
                return False

            self.connections[sid] = user.id
            self.user_sessions.setdefault(user.id, set()).add(sid)
            await self.sio.enter_room(sid, user_room(user.id))

            logger.info(f"Client connected: {sid} (user: {user.id})")
            return True

        @self.sio.event
        async def disconnect(sid, *args):
            """Handle client disconnection."""
            user_id = self.connections.pop(sid, None)
            if not user_id:
                return

            sessions = self.user_sessions.get(user_id)
            if sessions is not None:
                sessions.discard(sid)
                if not sessions:
                    del self.user_sessions[user_id]

            logger.info(f"Client disconnected: {sid} (user: {user_id})")

        @self.sio.event
        async def join_conversation(sid, data):
            """
            Join a conversation room. Only members may join.

            Expected data: {'conversation_id': '<id>'}
            """
            user_id = self.connections.get(sid)
            conversation_id = data.get("conversation_id") if isinstance(data, dict) else None

            if not user_id:
                await self.sio.emit("error", {"message": "Unauthorized"}, to=sid)
                return
            if not conversation_id:
                await self.sio.emit("error", {"message": "conversation_id is required"}, to=sid)
                return

            from chat_server.core.database import AsyncSessionLocal
            from chat_server.repositories.conversation_repo import ConversationMemberRepository

            async with AsyncSessionLocal() as db:
                is_member = await ConversationMemberRepository(db).is_member(conversation_id, user_id)

            if not is_member:
                logger.warning(f"User {user_id} tried to join conversation {conversation_id} without membership")
                await self.sio.emit("error", {"message": "Not a member of this conversation"}, to=sid)
                return

            await self.sio.enter_room(sid, conversation_room(conversation_id))
            await self.sio.emit("joined_conversation", {"conversation_id": conversation_id}, to=sid)

        @self.sio.event
        async def leave_conversation(sid, data):
            """
            Leave a conversation room.

            Expected data: {'conversation_id': '<id>'}
            """
            conversation_id = data.get("conversation_id") if isinstance(data, dict) else None
            if not conversation_id:
                return

            await self.sio.leave_room(sid, conversation_room(conversation_id))
            await self.sio.emit("left_conversation", {"conversation_id": conversation_id}, to=sid)

        @self.sio.event
        async def typing_start(sid, data):
            """Expected data: {'conversation_id': '<id>'}"""
            await self._handle_typing(sid, data, True)

        @self.sio.event
        async def typing_stop(sid, data):
            """Expected data: {'conversation_id': '<id>'}"""
            await self._handle_typing(sid, data, False)

    async def _handle_typing(self, sid: str, data: Any, is_typing: bool) -> None:
        """Persist a typing signal received over the socket."""
        user_id = self.connections.get(sid)
        conversation_id = data.get("conversation_id") if isinstance(data, dict) else None
        if not user_id or not conversation_id:
            return

        from chat_server.core.database import AsyncSessionLocal
        from chat_server.core.exceptions import ChatException
        from chat_server.repositories.user_repo import UserRepository
        from chat_server.services.typing_service import TypingService

        async with AsyncSessionLocal() as db:
            user = await UserRepository(db).get(user_id)
            if not user:
                return
            try:
                await TypingService(db).set_typing(user, conversation_id, is_typing)
            except ChatException as e:
                await db.rollback()
                await self.sio.emit("error", {"message": e.detail, "code": e.code}, to=sid)

    async def remove_user_from_conversation(self, user_id: str, conversation_id: str) -> None:
        """Evict every connection of a user from a conversation room."""
        room = conversation_room(conversation_id)
        for sid in list(self.user_sessions.get(user_id, ())):
            try:
                await self.sio.leave_room(sid, room)
            except Exception:
                logger.exception(f"Failed to remove {sid} from {room}")

    async def _emit(self, event: str, data: Dict[str, Any], room: str) -> None:
        """Emit to a room; delivery failures are logged, never raised."""
        try:
            await self.sio.emit(event, jsonable_encoder(data), room=room)
        except Exception:
            logger.exception(f"Failed to emit '{event}' to {room}")

    async def broadcast_to_conversation(
        self,
        conversation_id: str,
        event: str,
        data: Dict[str, Any]
    ) -> None:
        """
        Broadcast an event to everyone viewing a conversation.

        Args:
            conversation_id: Conversation ID
            event: Event name
            data: Payload (conversation_id is added)
        """
        payload = {"conversation_id": conversation_id, **data}
        await self._emit(event, payload, conversation_room(conversation_id))

    async def broadcast_to_users(
        self,
        user_ids: Iterable[str],
        event: str,
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Broadcast an event to every connection of each user."""
        for user_id in set(user_ids):
            await self._emit(event, data or {}, user_room(user_id))

    async def broadcast_new_message(self, conversation_id: str, message_data: Dict[str, Any]) -> None:
        await self.broadcast_to_conversation(conversation_id, "message_new", {"message": message_data})

    async def broadcast_message_edited(self, conversation_id: str, message_data: Dict[str, Any]) -> None:
        await self.broadcast_to_conversation(conversation_id, "message_edited", {"message": message_data})

    async def broadcast_message_deleted(self, conversation_id: str, message_id: str) -> None:
        await self.broadcast_to_conversation(conversation_id, "message_deleted", {"message_id": message_id})

    async def broadcast_reaction_changed(
        self,
        conversation_id: str,
        message_id: str,
        user_id: str,
        emoji: str,
        added: bool
    ) -> None:
        await self.broadcast_to_conversation(conversation_id, "reaction_changed", {
            "message_id": message_id,
            "user_id": user_id,
            "emoji": emoji,
            "added": added,
        })

    async def broadcast_read_receipt(self, conversation_id: str, user_id: str, message_id: str) -> None:
        await self.broadcast_to_conversation(conversation_id, "read_receipt", {
            "user_id": user_id,
            "message_id": message_id,
        })

    async def broadcast_typing_changed(self, conversation_id: str, user_id: str, is_typing: bool) -> None:
        await self.broadcast_to_conversation(conversation_id, "typing_changed", {
            "user_id": user_id,
            "is_typing": is_typing,
        })

    async def notify_conversations_changed(
        self,
        user_ids: Iterable[str],
        conversation_id: Optional[str] = None
    ) -> None:
        """Tell users their conversation list (last message, unread, members) changed."""
        await self.broadcast_to_users(user_ids, "conversations_changed", {"conversation_id": conversation_id})

    async def send_notification(self, user_id: str, notification_data: Dict[str, Any]) -> None:
        await self.broadcast_to_users([user_id], "notification", notification_data)

    async def notify_friends_changed(self, user_ids: Iterable[str]) -> None:
        await self.broadcast_to_users(user_ids, "friends_changed")

    async def notify_friend_requests_changed(self, user_ids: Iterable[str]) -> None:
        await self.broadcast_to_users(user_ids, "friend_requests_changed")

    def get_asgi_app(self, fastapi_app):
        """
        Get the ASGI app for Socket.IO wrapping FastAPI.

        Socket.IO wraps FastAPI; clients connect to /socket.io/.
        """
        return socketio.ASGIApp(self.sio, fastapi_app)


# Global connection manager instance
connection_manager = ConnectionManager()
