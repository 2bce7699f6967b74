"""
Integration tests for notification API endpoints.
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestNotificationsAPI:
    """Test notification API endpoints."""

    async def test_message_creates_notification(
        self,
        client: AsyncClient,
        test_conversation,
        auth_headers,
        auth_headers_2
    ):
        await client.post(
            "/api/v1/messages/",
            json={"conversation_id": test_conversation.id, "content": "Ping"},
            headers=auth_headers
        )

        count = await client.get("/api/v1/notifications/unread-count", headers=auth_headers_2)
        assert count.json() == {"count": 1}

        own = await client.get("/api/v1/notifications/unread-count", headers=auth_headers)
        assert own.json() == {"count": 0}

        inbox = await client.get("/api/v1/notifications/", headers=auth_headers_2)
        assert inbox.status_code == 200
        assert inbox.json()[0]["type"] == "message"
        assert inbox.json()[0]["title"] == "Test Group"
        assert inbox.json()[0]["related_id"] == test_conversation.id

    async def test_mark_read(self, client: AsyncClient, test_user_2, auth_headers, auth_headers_2):
        await client.post("/api/v1/friends/requests", json={"receiver_id": test_user_2.id}, headers=auth_headers)

        response = await client.post("/api/v1/notifications/read", json={}, headers=auth_headers_2)

        assert response.status_code == 200
        assert response.json() == {"updated": 1}

        count = await client.get("/api/v1/notifications/unread-count", headers=auth_headers_2)
        assert count.json() == {"count": 0}

        unread = await client.get("/api/v1/notifications/", params={"unread_only": True}, headers=auth_headers_2)
        assert unread.json() == []

    async def test_mark_read_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/v1/notifications/read", json={})

        assert response.status_code == 401

    async def test_anonymous_degrades(self, client: AsyncClient):
        assert (await client.get("/api/v1/notifications/unread-count")).json() == {"count": 0}
        assert (await client.get("/api/v1/notifications/")).json() == []
