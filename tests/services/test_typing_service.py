"""
Tests for typing indicator service.
"""
from datetime import timedelta

import pytest
from sqlalchemy import select

from chat_server.config import settings
from chat_server.core.exceptions import ForbiddenError
from chat_server.models import TypingIndicator
from chat_server.services.typing_service import TypingService
from chat_server.utils.datetime_utils import utc_now


@pytest.mark.asyncio
class TestTypingService:
    """Test typing indicator upsert and expiry."""

    async def test_set_typing_upserts_single_row(
        self,
        db_session,
        test_user,
        test_conversation,
        mock_websocket_manager
    ):
        service = TypingService(db_session)

        await service.set_typing(test_user, test_conversation.id, True)
        await service.set_typing(test_user, test_conversation.id, False)
        await service.set_typing(test_user, test_conversation.id, True)

        result = await db_session.execute(select(TypingIndicator))
        rows = result.scalars().all()
        assert len(rows) == 1
        assert rows[0].is_typing is True

        assert mock_websocket_manager.broadcast_typing_changed.await_count == 3
        mock_websocket_manager.broadcast_typing_changed.assert_awaited_with(
            test_conversation.id, test_user.id, True
        )

    async def test_list_typing_excludes_caller(self, db_session, test_user, test_user_2, test_conversation):
        service = TypingService(db_session)

        await service.set_typing(test_user, test_conversation.id, True)
        await service.set_typing(test_user_2, test_conversation.id, True)

        typing = await service.list_typing(test_user, test_conversation.id)
        assert [t.user.id for t in typing] == [test_user_2.id]

    async def test_stopped_typing_is_hidden(self, db_session, test_user, test_user_2, test_conversation):
        service = TypingService(db_session)

        await service.set_typing(test_user_2, test_conversation.id, True)
        await service.set_typing(test_user_2, test_conversation.id, False)

        assert await service.list_typing(test_user, test_conversation.id) == []

    async def test_stale_indicator_is_hidden(self, db_session, test_user, test_user_2, test_conversation):
        """Indicators older than the TTL do not show even when still flagged."""
        service = TypingService(db_session)
        indicator = await service.set_typing(test_user_2, test_conversation.id, True)

        indicator.updated_at = utc_now() - timedelta(milliseconds=settings.typing_indicator_ttl_ms + 1000)
        await db_session.commit()

        assert await service.list_typing(test_user, test_conversation.id) == []

    async def test_set_typing_requires_membership(self, db_session, test_user_3, test_conversation):
        service = TypingService(db_session)

        with pytest.raises(ForbiddenError):
            await service.set_typing(test_user_3, test_conversation.id, True)

    async def test_list_typing_fails_closed(self, db_session, test_user_2, test_user_3, test_conversation):
        service = TypingService(db_session)
        await service.set_typing(test_user_2, test_conversation.id, True)

        assert await service.list_typing(test_user_3, test_conversation.id) == []
        assert await service.list_typing(None, test_conversation.id) == []
