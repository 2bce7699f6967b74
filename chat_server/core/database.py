"""
Database configuration and session management.
Uses SQLAlchemy 2.0 with async support.
"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from chat_server.config import settings


engine_options = {
    "echo": settings.debug,
    "pool_pre_ping": True,
}
if not settings.uses_sqlite:
    engine_options.update(pool_size=20, max_overflow=10)

# Create async engine
engine = create_async_engine(settings.database_url, **engine_options)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Services commit at the end of each mutation; anything that escapes before
    the commit is rolled back here so a failed call leaves no partial state.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
