"""
Integration tests for message API endpoints.
Tests the complete request/response cycle.
"""
import pytest
from httpx import AsyncClient

from chat_server.config import settings


@pytest.mark.asyncio
class TestMessagesAPI:
    """Test message API endpoints."""

    async def test_send_message_success(self, client: AsyncClient, test_conversation, auth_headers):
        """Test sending a message via API."""
        response = await client.post(
            "/api/v1/messages/",
            json={"conversation_id": test_conversation.id, "content": "Hello from API!"},
            headers=auth_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["content"] == "Hello from API!"
        assert data["type"] == "text"
        assert data["conversation_id"] == test_conversation.id
        assert data["sender"]["username"] == "alice"
        assert data["reactions"] == []

    async def test_send_message_unauthorized(self, client: AsyncClient, test_conversation):
        """Test sending message without authentication."""
        response = await client.post(
            "/api/v1/messages/",
            json={"conversation_id": test_conversation.id, "content": "Hello"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"

    async def test_send_message_invalid_token(self, client: AsyncClient, test_conversation):
        response = await client.post(
            "/api/v1/messages/",
            json={"conversation_id": test_conversation.id, "content": "Hello"},
            headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid token", "code": "unauthenticated"}

    async def test_send_message_not_member(self, client: AsyncClient, test_conversation, auth_headers_3):
        response = await client.post(
            "/api/v1/messages/",
            json={"conversation_id": test_conversation.id, "content": "Let me in"},
            headers=auth_headers_3
        )

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    async def test_send_message_validation(self, client: AsyncClient, test_conversation, auth_headers):
        """Whitespace-only text and attachment types without a file are rejected."""
        blank = await client.post(
            "/api/v1/messages/",
            json={"conversation_id": test_conversation.id, "content": "   "},
            headers=auth_headers
        )
        no_file = await client.post(
            "/api/v1/messages/",
            json={"conversation_id": test_conversation.id, "type": "image"},
            headers=auth_headers
        )

        assert blank.status_code == 422
        assert no_file.status_code == 422

    async def test_send_attachment(self, client: AsyncClient, test_conversation, auth_headers):
        response = await client.post(
            "/api/v1/messages/",
            json={
                "conversation_id": test_conversation.id,
                "type": "file",
                "file_url": "https://cdn.example.org/report.pdf",
                "file_name": "report.pdf",
                "file_size": 52000
            },
            headers=auth_headers
        )

        assert response.status_code == 201
        assert response.json()["content"] is None
        assert response.json()["file_name"] == "report.pdf"

    async def test_edit_message(self, client: AsyncClient, test_message, auth_headers, auth_headers_2):
        forbidden = await client.patch(
            f"/api/v1/messages/{test_message.id}",
            json={"content": "Not yours"},
            headers=auth_headers_2
        )
        assert forbidden.status_code == 403

        response = await client.patch(
            f"/api/v1/messages/{test_message.id}",
            json={"content": "Edited"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["content"] == "Edited"
        assert response.json()["edited_at"] is not None

    async def test_delete_message(self, client: AsyncClient, test_conversation, test_message, auth_headers):
        response = await client.delete(f"/api/v1/messages/{test_message.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["content"] == settings.deleted_message_placeholder
        assert response.json()["deleted_at"] is not None

        listing = await client.get(f"/api/v1/conversations/{test_conversation.id}/messages", headers=auth_headers)
        assert listing.json()[0]["content"] == settings.deleted_message_placeholder

    async def test_delete_unknown_message(self, client: AsyncClient, auth_headers):
        response = await client.delete("/api/v1/messages/missing", headers=auth_headers)

        assert response.status_code == 404

    async def test_toggle_reaction(self, client: AsyncClient, test_message, auth_headers_2):
        added = await client.post(
            f"/api/v1/messages/{test_message.id}/reactions",
            json={"emoji": "🎉"},
            headers=auth_headers_2
        )
        removed = await client.post(
            f"/api/v1/messages/{test_message.id}/reactions",
            json={"emoji": "🎉"},
            headers=auth_headers_2
        )

        assert added.status_code == 200
        assert added.json()["added"] is True
        assert added.json()["reaction"]["emoji"] == "🎉"
        assert removed.json() == {"added": False, "reaction": None}

    async def test_forward_message(
        self,
        client: AsyncClient,
        test_message,
        test_user_3,
        auth_headers
    ):
        dm = await client.post(
            "/api/v1/conversations/",
            json={"is_group": False, "member_ids": [test_user_3.id]},
            headers=auth_headers
        )

        response = await client.post(
            f"/api/v1/messages/{test_message.id}/forward",
            json={"conversation_id": dm.json()["id"]},
            headers=auth_headers
        )

        assert response.status_code == 201
        assert response.json()["forwarded_from_id"] == test_message.id
        assert response.json()["conversation_id"] == dm.json()["id"]

    async def test_send_then_list_keeps_send_order(self, client: AsyncClient, test_conversation, auth_headers, auth_headers_2):
        for content, headers in (("one", auth_headers), ("two", auth_headers_2), ("three", auth_headers)):
            response = await client.post(
                "/api/v1/messages/",
                json={"conversation_id": test_conversation.id, "content": content},
                headers=headers
            )
            assert response.status_code == 201

        listing = await client.get(
            f"/api/v1/conversations/{test_conversation.id}/messages",
            params={"limit": 2},
            headers=auth_headers
        )

        assert [m["content"] for m in listing.json()] == ["two", "three"]
