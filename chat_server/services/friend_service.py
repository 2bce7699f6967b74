"""
Friend service containing business logic for the friendship graph.
Handles the friend request lifecycle and symmetric friend edges.
"""
import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.core.exceptions import (
    AlreadyFriendsError,
    AlreadyProcessedError,
    BadRequestError,
    DuplicateRequestError,
    ForbiddenError,
    NotFoundError,
    ReverseRequestExistsError
)
from chat_server.core.websocket import connection_manager
from chat_server.models.friendship import FriendRequest, FriendRequestStatus
from chat_server.models.user import User
from chat_server.repositories.friend_repo import FriendRequestRepository, FriendshipRepository
from chat_server.repositories.user_repo import UserRepository
from chat_server.schemas.friend import FriendRequestResponse
from chat_server.schemas.user import UserSummary
from chat_server.services.notification_service import NotificationService
from chat_server.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class FriendService:
    """Service for friend requests and friendships."""

    def __init__(self, db: AsyncSession):
        """
        Initialize friend service.

        Args:
            db: Database session
        """
        self.db = db
        self.request_repo = FriendRequestRepository(db)
        self.friendship_repo = FriendshipRepository(db)
        self.user_repo = UserRepository(db)
        self.notification_service = NotificationService(db)
        self.ws_manager = connection_manager

    async def send_request(self, user: User, receiver_id: str) -> FriendRequest:
        """
        Send a friend request.

        Raises:
            BadRequestError: Caller targeted themselves
            NotFoundError: Receiver does not exist
            DuplicateRequestError: A pending caller->receiver request exists
            ReverseRequestExistsError: A pending receiver->caller request exists
            AlreadyFriendsError: The two users are already friends
        """
        if receiver_id == user.id:
            raise BadRequestError("You cannot send a friend request to yourself")

        if not await self.user_repo.get(receiver_id):
            raise NotFoundError("User not found")

        if await self.request_repo.get_pending(user.id, receiver_id):
            raise DuplicateRequestError()

        # Crossed requests are not allowed; the receiver must respond instead
        if await self.request_repo.get_pending(receiver_id, user.id):
            raise ReverseRequestExistsError()

        if await self.friendship_repo.exists(user.id, receiver_id):
            raise AlreadyFriendsError()

        request = await self.request_repo.create(
            sender_id=user.id,
            receiver_id=receiver_id,
            status=FriendRequestStatus.PENDING
        )
        notification = await self.notification_service.notify_friend_request(request, user)
        await self.db.commit()

        logger.info(f"User {user.id} sent friend request {request.id} to {receiver_id}")

        await self.notification_service.publish([notification])
        await self.ws_manager.notify_friend_requests_changed([receiver_id])
        return request

    async def respond_to_request(self, user: User, request_id: str, accept: bool) -> FriendRequest:
        """
        Accept or reject a pending request addressed to the caller.

        Accepting writes both friendship edges and notifies the sender;
        rejecting only changes the status.
        """
        request = await self.request_repo.get(request_id)
        if not request:
            raise NotFoundError("Friend request not found")

        if request.receiver_id != user.id:
            raise ForbiddenError("Only the receiver can respond to this request")

        if request.status != FriendRequestStatus.PENDING:
            raise AlreadyProcessedError()

        notifications = []
        if accept:
            await self.request_repo.update(
                request,
                status=FriendRequestStatus.ACCEPTED,
                responded_at=utc_now()
            )
            await self.friendship_repo.create_pair(request.sender_id, request.receiver_id)
            notifications.append(await self.notification_service.notify_friend_accepted(request, user))
        else:
            await self.request_repo.update(
                request,
                status=FriendRequestStatus.REJECTED,
                responded_at=utc_now()
            )

        await self.db.commit()

        logger.info(f"User {user.id} {'accepted' if accept else 'rejected'} friend request {request.id}")

        await self.notification_service.publish(notifications)
        await self.ws_manager.notify_friend_requests_changed([user.id])
        if accept:
            await self.ws_manager.notify_friends_changed([request.sender_id, request.receiver_id])
        return request

    async def list_friends(self, user: User) -> List[User]:
        """Friends of the caller, oldest friendship first."""
        friend_ids = await self.friendship_repo.list_friend_ids(user.id)
        friends = {friend.id: friend for friend in await self.user_repo.get_many(friend_ids)}
        return [friends[friend_id] for friend_id in friend_ids if friend_id in friends]

    async def list_pending_requests(self, user: User) -> List[FriendRequestResponse]:
        """Pending requests received by the caller, each with the sender's profile."""
        requests = await self.request_repo.list_pending_received(user.id)
        senders = {
            sender.id: sender
            for sender in await self.user_repo.get_many(r.sender_id for r in requests)
        }

        views = []
        for request in requests:
            view = FriendRequestResponse.model_validate(request)
            sender = senders.get(request.sender_id)
            view.sender = UserSummary.model_validate(sender) if sender else None
            views.append(view)
        return views

    async def remove_friend(self, user: User, friend_id: str) -> bool:
        """
        Delete both friendship edges.

        Idempotent: removing someone who is not a friend is not an error.

        Returns:
            True if a friendship existed
        """
        removed = await self.friendship_repo.delete_pair(user.id, friend_id)
        await self.db.commit()

        if removed:
            logger.info(f"User {user.id} removed friend {friend_id}")
            await self.ws_manager.notify_friends_changed([user.id, friend_id])
        return removed > 0
