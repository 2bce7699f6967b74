"""
Friend API routes.
Provides endpoints for friend requests and the friend list.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.core.database import get_db
from chat_server.dependencies import get_current_user, get_current_user_optional
from chat_server.models.user import User
from chat_server.schemas.friend import (
    FriendRequestCreate,
    FriendRequestRespond,
    FriendRequestResponse
)
from chat_server.schemas.user import UserSummary
from chat_server.services.friend_service import FriendService

router = APIRouter()


@router.post(
    "/requests",
    response_model=FriendRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a friend request"
)
async def send_friend_request(
    payload: FriendRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await FriendService(db).send_request(current_user, payload.receiver_id)


@router.get(
    "/requests",
    response_model=List[FriendRequestResponse],
    summary="Pending requests received by the caller"
)
async def list_friend_requests(
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    if current_user is None:
        return []
    return await FriendService(db).list_pending_requests(current_user)


@router.post(
    "/requests/{request_id}/respond",
    response_model=FriendRequestResponse,
    summary="Accept or reject a friend request"
)
async def respond_to_friend_request(
    request_id: str,
    payload: FriendRequestRespond,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await FriendService(db).respond_to_request(current_user, request_id, payload.accept)


@router.get(
    "/",
    response_model=List[UserSummary],
    summary="The caller's friends"
)
async def list_friends(
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    if current_user is None:
        return []
    return await FriendService(db).list_friends(current_user)


@router.delete(
    "/{friend_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a friend",
    description="Idempotent: removing someone who is not a friend succeeds."
)
async def remove_friend(
    friend_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await FriendService(db).remove_friend(current_user, friend_id)
