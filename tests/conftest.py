"""
Pytest configuration and fixtures for tests.
Provides reusable test fixtures for database, users, and data setup.
"""
import pytest
from datetime import timedelta
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from chat_server.core.database import get_db
from chat_server.core.security import create_access_token
from chat_server.main import fastapi_app
from chat_server.models import (
    Base,
    Conversation,
    ConversationMember,
    ConversationRole,
    Message,
    MessageType,
    User,
    UserStatus,
)
from chat_server.utils.datetime_utils import utc_now


# In-memory SQLite shared by every connection of the test engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SERVICE_MODULES = (
    "chat_server.services.user_service",
    "chat_server.services.friend_service",
    "chat_server.services.conversation_service",
    "chat_server.services.message_service",
    "chat_server.services.typing_service",
    "chat_server.services.notification_service",
)


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    TestSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def mock_websocket_manager(mocker):
    """Mock the Socket.IO connection manager for all tests."""
    mock_manager = mocker.AsyncMock()

    mocker.patch("chat_server.core.websocket.connection_manager", mock_manager)
    for module in SERVICE_MODULES:
        mocker.patch(f"{module}.connection_manager", mock_manager)

    return mock_manager


async def _create_user(db_session: AsyncSession, external_id: str, username: str, **fields) -> User:
    user = User(
        external_id=external_id,
        email=f"{username}@mail.com",
        username=username,
        status=UserStatus.ONLINE,
        last_seen_at=utc_now(),
        **fields
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session: AsyncSession):
    """Create a test user."""
    return await _create_user(db_session, "auth|alice", "alice", full_name="Alice Liddell")


@pytest.fixture
async def test_user_2(db_session: AsyncSession):
    """Create a second test user."""
    return await _create_user(db_session, "auth|bob", "bob", full_name="Bob Builder")


@pytest.fixture
async def test_user_3(db_session: AsyncSession):
    """Create a third test user (not a member of test_conversation)."""
    return await _create_user(db_session, "auth|carol", "carol", image_url="https://cdn.example.org/carol.png")


@pytest.fixture
async def test_conversation(db_session: AsyncSession, test_user, test_user_2):
    """Create a group conversation administered by test_user, with test_user_2 as member."""
    conversation = Conversation(
        is_group=True,
        name="Test Group",
        admin_ids=[test_user.id],
        created_by=test_user.id
    )
    db_session.add(conversation)
    await db_session.flush()

    db_session.add_all([
        ConversationMember(
            conversation_id=conversation.id,
            user_id=test_user.id,
            role=ConversationRole.ADMIN
        ),
        ConversationMember(
            conversation_id=conversation.id,
            user_id=test_user_2.id,
            role=ConversationRole.MEMBER
        ),
    ])

    await db_session.commit()
    await db_session.refresh(conversation)

    return conversation


@pytest.fixture
async def test_message(db_session: AsyncSession, test_conversation, test_user):
    """Create a test message sent a minute ago."""
    message = Message(
        conversation_id=test_conversation.id,
        sender_id=test_user.id,
        content="Test message content",
        type=MessageType.TEXT,
        sent_at=utc_now() - timedelta(minutes=1)
    )
    db_session.add(message)
    await db_session.commit()
    await db_session.refresh(message)

    return message


def make_auth_headers(user: User) -> dict:
    """Bearer header for a user, signed like the auth provider's tokens."""
    return {"Authorization": f"Bearer {create_access_token(user.external_id)}"}


@pytest.fixture
def auth_headers(test_user):
    """Authentication headers for test_user."""
    return make_auth_headers(test_user)


@pytest.fixture
def auth_headers_2(test_user_2):
    """Authentication headers for test_user_2."""
    return make_auth_headers(test_user_2)


@pytest.fixture
def auth_headers_3(test_user_3):
    """Authentication headers for test_user_3."""
    return make_auth_headers(test_user_3)


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the test database.

    Authentication is real: pass auth_headers to act as a user.
    """
    async def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac

    fastapi_app.dependency_overrides.clear()
