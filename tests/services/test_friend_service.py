"""
Tests for friend service.
Tests the friend request lifecycle and the symmetric friendship graph.
"""
import pytest
from sqlalchemy import select

from chat_server.core.exceptions import (
    AlreadyFriendsError,
    AlreadyProcessedError,
    BadRequestError,
    DuplicateRequestError,
    ForbiddenError,
    NotFoundError,
    ReverseRequestExistsError,
)
from chat_server.models import FriendRequestStatus, Friendship, Notification, NotificationType
from chat_server.services.friend_service import FriendService


@pytest.mark.asyncio
class TestFriendService:
    """Test friend service business logic."""

    async def test_send_request(self, db_session, test_user, test_user_2, mock_websocket_manager):
        """Test sending a friend request notifies the receiver."""
        service = FriendService(db_session)

        request = await service.send_request(test_user, test_user_2.id)

        assert request.sender_id == test_user.id
        assert request.receiver_id == test_user_2.id
        assert request.status == FriendRequestStatus.PENDING

        result = await db_session.execute(select(Notification))
        notification = result.scalar_one()
        assert notification.user_id == test_user_2.id
        assert notification.type == NotificationType.FRIEND_REQUEST
        assert notification.content == "alice sent you a friend request"
        assert notification.related_id == request.id

        mock_websocket_manager.send_notification.assert_awaited_once()
        mock_websocket_manager.notify_friend_requests_changed.assert_awaited_once_with([test_user_2.id])

    async def test_send_request_to_self(self, db_session, test_user):
        service = FriendService(db_session)

        with pytest.raises(BadRequestError):
            await service.send_request(test_user, test_user.id)

    async def test_send_request_to_unknown_user(self, db_session, test_user):
        service = FriendService(db_session)

        with pytest.raises(NotFoundError):
            await service.send_request(test_user, "ghost")

    async def test_duplicate_request(self, db_session, test_user, test_user_2):
        service = FriendService(db_session)
        await service.send_request(test_user, test_user_2.id)

        with pytest.raises(DuplicateRequestError) as exc_info:
            await service.send_request(test_user, test_user_2.id)

        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "duplicate_request"

    async def test_reverse_request(self, db_session, test_user, test_user_2):
        """A user with a pending incoming request must respond rather than send."""
        service = FriendService(db_session)
        await service.send_request(test_user, test_user_2.id)

        with pytest.raises(ReverseRequestExistsError) as exc_info:
            await service.send_request(test_user_2, test_user.id)

        assert exc_info.value.code == "reverse_request_exists"

    async def test_accept_request(self, db_session, test_user, test_user_2, mock_websocket_manager):
        """Accepting creates both edges and notifies the original sender."""
        service = FriendService(db_session)
        request = await service.send_request(test_user, test_user_2.id)

        accepted = await service.respond_to_request(test_user_2, request.id, accept=True)

        assert accepted.status == FriendRequestStatus.ACCEPTED
        assert accepted.responded_at is not None

        result = await db_session.execute(select(Friendship))
        edges = {(f.user_id, f.friend_id) for f in result.scalars().all()}
        assert edges == {(test_user.id, test_user_2.id), (test_user_2.id, test_user.id)}

        result = await db_session.execute(
            select(Notification).where(Notification.type == NotificationType.FRIEND_ACCEPTED)
        )
        notification = result.scalar_one()
        assert notification.user_id == test_user.id
        assert notification.content == "bob accepted your friend request"

        assert [u.id for u in await service.list_friends(test_user)] == [test_user_2.id]
        assert [u.id for u in await service.list_friends(test_user_2)] == [test_user.id]

        mock_websocket_manager.notify_friends_changed.assert_awaited_once_with([test_user.id, test_user_2.id])

    async def test_reject_request(self, db_session, test_user, test_user_2):
        service = FriendService(db_session)
        request = await service.send_request(test_user, test_user_2.id)

        rejected = await service.respond_to_request(test_user_2, request.id, accept=False)

        assert rejected.status == FriendRequestStatus.REJECTED
        assert await service.list_friends(test_user) == []

        result = await db_session.execute(
            select(Notification).where(Notification.type == NotificationType.FRIEND_ACCEPTED)
        )
        assert result.scalars().all() == []

    async def test_rejected_request_can_be_resent(self, db_session, test_user, test_user_2):
        service = FriendService(db_session)
        request = await service.send_request(test_user, test_user_2.id)
        await service.respond_to_request(test_user_2, request.id, accept=False)

        again = await service.send_request(test_user, test_user_2.id)

        assert again.id != request.id
        assert again.status == FriendRequestStatus.PENDING

    async def test_respond_twice(self, db_session, test_user, test_user_2):
        service = FriendService(db_session)
        request = await service.send_request(test_user, test_user_2.id)
        await service.respond_to_request(test_user_2, request.id, accept=True)

        with pytest.raises(AlreadyProcessedError):
            await service.respond_to_request(test_user_2, request.id, accept=False)

    async def test_only_receiver_can_respond(self, db_session, test_user, test_user_2, test_user_3):
        service = FriendService(db_session)
        request = await service.send_request(test_user, test_user_2.id)

        with pytest.raises(ForbiddenError):
            await service.respond_to_request(test_user, request.id, accept=True)
        with pytest.raises(ForbiddenError):
            await service.respond_to_request(test_user_3, request.id, accept=True)

    async def test_respond_to_unknown_request(self, db_session, test_user):
        service = FriendService(db_session)

        with pytest.raises(NotFoundError):
            await service.respond_to_request(test_user, "missing", accept=True)

    async def test_already_friends(self, db_session, test_user, test_user_2):
        service = FriendService(db_session)
        request = await service.send_request(test_user, test_user_2.id)
        await service.respond_to_request(test_user_2, request.id, accept=True)

        with pytest.raises(AlreadyFriendsError):
            await service.send_request(test_user, test_user_2.id)
        with pytest.raises(AlreadyFriendsError):
            await service.send_request(test_user_2, test_user.id)

    async def test_list_pending_requests(self, db_session, test_user, test_user_2, test_user_3):
        """Only pending requests addressed to the caller are listed, with the sender profile."""
        service = FriendService(db_session)
        await service.send_request(test_user, test_user_3.id)
        handled = await service.send_request(test_user_2, test_user_3.id)
        await service.respond_to_request(test_user_3, handled.id, accept=False)

        pending = await service.list_pending_requests(test_user_3)

        assert len(pending) == 1
        assert pending[0].sender_id == test_user.id
        assert pending[0].sender.username == "alice"
        assert await service.list_pending_requests(test_user) == []

    async def test_remove_friend(self, db_session, test_user, test_user_2):
        """Removing deletes both edges and is idempotent."""
        service = FriendService(db_session)
        request = await service.send_request(test_user, test_user_2.id)
        await service.respond_to_request(test_user_2, request.id, accept=True)

        assert await service.remove_friend(test_user_2, test_user.id) is True
        assert await service.remove_friend(test_user_2, test_user.id) is False

        result = await db_session.execute(select(Friendship))
        assert result.scalars().all() == []
        assert await service.list_friends(test_user) == []

        again = await service.send_request(test_user, test_user_2.id)
        assert again.status == FriendRequestStatus.PENDING
