"""
Conversation API routes.
Provides endpoints for creating, listing and managing conversations, plus the
per-conversation message list, read receipts and typing indicators.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.core.database import get_db
from chat_server.dependencies import get_current_user, get_current_user_optional
from chat_server.models.user import User
from chat_server.schemas.conversation import (
    ConversationCreate,
    ConversationMembersAdd,
    ConversationResponse
)
from chat_server.schemas.message import MarkReadRequest, MarkReadResponse, MessageResponse
from chat_server.schemas.typing import TypingUpdate, TypingUserResponse
from chat_server.services.conversation_service import ConversationService
from chat_server.services.message_service import MessageService
from chat_server.services.typing_service import TypingService

router = APIRouter()


@router.post(
    "/",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new conversation",
    description="Create a DM or group conversation. Creating a DM with someone you already have one with returns it."
)
async def create_conversation(
    conversation_data: ConversationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a new conversation.

    - **is_group**: Group chat or DM
    - **member_ids**: Other members (you are added automatically)
    - **name**: Group name
    - **group_image**: Optional group avatar URL
    """
    service = ConversationService(db)
    conversation, _ = await service.create_conversation(
        current_user,
        is_group=conversation_data.is_group,
        member_ids=conversation_data.member_ids,
        name=conversation_data.name,
        group_image=conversation_data.group_image
    )
    return await service.composer.compose_conversation(conversation, current_user.id)


@router.get(
    "/",
    response_model=List[ConversationResponse],
    summary="List the caller's conversations",
    description="Most recently active first, each with members, last message and unread count."
)
async def list_conversations(
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    return await ConversationService(db).list_conversations(current_user)


@router.get(
    "/{conversation_id}",
    response_model=Optional[ConversationResponse],
    summary="Get a conversation",
    description="Returns null unless the caller is a member."
)
async def get_conversation(
    conversation_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    return await ConversationService(db).get_conversation(current_user, conversation_id)


@router.post(
    "/{conversation_id}/members",
    response_model=List[str],
    summary="Add members to a group",
    description="Admins only. Returns the ids that were actually added."
)
async def add_members(
    conversation_id: str,
    payload: ConversationMembersAdd,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ConversationService(db).add_members(current_user, conversation_id, payload.member_ids)


@router.post(
    "/{conversation_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave a conversation"
)
async def leave_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await ConversationService(db).leave_conversation(current_user, conversation_id)


@router.get(
    "/{conversation_id}/messages",
    response_model=List[MessageResponse],
    summary="List messages",
    description="The newest `limit` messages in chronological order. Empty for non-members."
)
async def list_messages(
    conversation_id: str,
    limit: Optional[int] = Query(None, ge=1, description="Number of newest messages to return"),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    return await MessageService(db).list_messages(current_user, conversation_id, limit)


@router.post(
    "/{conversation_id}/read",
    response_model=MarkReadResponse,
    summary="Mark a message as read"
)
async def mark_read(
    conversation_id: str,
    payload: MarkReadRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MessageService(db).mark_read(current_user, conversation_id, payload.message_id)


@router.put(
    "/{conversation_id}/typing",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Set the caller's typing state"
)
async def set_typing(
    conversation_id: str,
    payload: TypingUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await TypingService(db).set_typing(current_user, conversation_id, payload.is_typing)


@router.get(
    "/{conversation_id}/typing",
    response_model=List[TypingUserResponse],
    summary="Members currently typing",
    description="Excludes the caller and indicators older than the typing TTL."
)
async def list_typing(
    conversation_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    return await TypingService(db).list_typing(current_user, conversation_id)
