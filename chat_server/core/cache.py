"""
Redis cache management.
Provides connection pooling and helper functions for caching operations.

The cache is optional: with no redis_url every operation is a no-op and
callers fall back to the database.
"""
import json
import logging
from typing import Any, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from chat_server.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache manager with connection pooling."""

    def __init__(self):
        """Initialize Redis connection pool."""
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if not settings.redis_url:
            logger.info("No Redis URL provided - running without Redis cache")
            self.redis = None
            return

        try:
            self.redis = aioredis.from_url(
                settings.redis_url,
                password=settings.redis_password or None,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
            )
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except (RedisError, OSError) as e:
            logger.warning(f"Could not connect to Redis, running without cache: {e}")
            self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.close()
            self.redis = None

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        if not self.redis:
            return None

        value = await self.redis.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache (JSON encoded)
            ttl: Time to live in seconds

        Returns:
            True if successful
        """
        if not self.redis:
            return False

        payload = json.dumps(value)
        if ttl:
            return bool(await self.redis.setex(key, ttl, payload))
        return bool(await self.redis.set(key, payload))

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.redis:
            return False

        return bool(await self.redis.delete(key))

    async def ping(self) -> bool:
        """Check the connection is alive."""
        if not self.redis:
            return False
        return bool(await self.redis.ping())


# Global cache instance
cache = RedisCache()


def _notification_count_key(user_id: str) -> str:
    return f"notifications:unread:{user_id}"


async def get_cached_unread_notification_count(user_id: str) -> Optional[int]:
    """Get cached unread notification count for a user."""
    value = await cache.get(_notification_count_key(user_id))
    return int(value) if value is not None else None


async def cache_unread_notification_count(user_id: str, count: int) -> bool:
    """Cache unread notification count for a user."""
    return await cache.set(
        _notification_count_key(user_id),
        count,
        ttl=settings.cache_notification_count_ttl
    )


async def invalidate_unread_notification_count(user_id: str) -> bool:
    """
    Invalidate cached unread notification count.

    Called after every notification insert or read-state change for the user.
    """
    return await cache.delete(_notification_count_key(user_id))
