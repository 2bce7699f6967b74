"""
User API routes.
Provides endpoints for profile sync, presence, profile edits and search.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.core.database import get_db
from chat_server.dependencies import get_auth_subject, get_current_user, get_current_user_optional
from chat_server.models.user import User
from chat_server.schemas.user import (
    UserProfileUpdate,
    UserResponse,
    UserStatusUpdate,
    UserSummary,
    UserSyncRequest
)
from chat_server.services.user_service import UserService

router = APIRouter()


@router.post(
    "/sync",
    response_model=UserResponse,
    summary="Create or refresh the caller's user record",
    description="Called at login with the profile fields from the auth provider. Sets status to online."
)
async def sync_user(
    payload: UserSyncRequest,
    subject: str = Depends(get_auth_subject),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).upsert_user(
        external_id=subject,
        email=payload.email,
        username=payload.username,
        full_name=payload.full_name,
        image_url=payload.image_url
    )


@router.get(
    "/me",
    response_model=Optional[UserResponse],
    summary="Get the current user"
)
async def get_me(current_user: Optional[User] = Depends(get_current_user_optional)):
    return current_user


@router.patch(
    "/me/status",
    response_model=UserResponse,
    summary="Change presence status"
)
async def update_status(
    payload: UserStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).update_status(current_user, payload.status)


@router.patch(
    "/me",
    response_model=UserResponse,
    summary="Update profile",
    description="Only the fields present in the request body are changed."
)
async def update_profile(
    payload: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).update_profile(current_user, **payload.model_dump(exclude_unset=True))


@router.get(
    "/search",
    response_model=List[UserSummary],
    summary="Search users",
    description="Case-insensitive match on username, email or full name. Excludes the caller."
)
async def search_users(
    q: str = Query("", max_length=100, description="Search term"),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).search_users(current_user, q)


@router.get(
    "/{user_id}",
    response_model=UserSummary,
    summary="Get a user's public profile"
)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).get_user(user_id)
