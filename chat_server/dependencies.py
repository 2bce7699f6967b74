"""
Dependency injection for FastAPI routes.
Provides reusable dependencies for authentication and caller resolution.

Caller identity is resolved once here and passed explicitly into every
service call. Queries use the optional variants and degrade to empty results;
mutations use the required ones and fail with 401/404.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.core.database import get_db
from chat_server.core.exceptions import NotFoundError
from chat_server.core.security import (
    SecurityException,
    extract_subject,
    extract_token_from_header
)
from chat_server.models.user import User
from chat_server.services.user_service import UserService


async def get_auth_subject(authorization: Optional[str] = Header(None)) -> str:
    """
    External subject from a valid bearer token.

    Raises:
        SecurityException: 401 if the header is missing or the token is invalid
    """
    token = extract_token_from_header(authorization)
    return extract_subject(token)


async def get_optional_auth_subject(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Like get_auth_subject, but None instead of 401."""
    if not authorization:
        return None
    try:
        return extract_subject(extract_token_from_header(authorization))
    except SecurityException:
        return None


async def get_current_user(
    subject: str = Depends(get_auth_subject),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user.

    Raises:
        SecurityException: 401 if the token is missing or invalid
        NotFoundError: 404 if the token is valid but the user has not synced yet

    Example:
        ```python
        @router.post("/things")
        async def create_thing(current_user: User = Depends(get_current_user)):
            ...
        ```
    """
    user = await UserService(db).resolve(subject)
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_current_user_optional(
    subject: Optional[str] = Depends(get_optional_auth_subject),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Current user, or None for anonymous callers and unsynced subjects."""
    if not subject:
        return None
    return await UserService(db).resolve(subject)
