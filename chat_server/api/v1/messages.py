"""
Message API routes.
Provides endpoints for sending, editing, deleting, forwarding and reacting.
Listing lives under /conversations/{id}/messages.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.core.database import get_db
from chat_server.dependencies import get_current_user
from chat_server.models.user import User
from chat_server.schemas.message import (
    MessageCreate,
    MessageForwardRequest,
    MessageReactionToggle,
    MessageResponse,
    MessageUpdate,
    ReactionToggleResponse
)
from chat_server.services.message_service import MessageService

router = APIRouter()


@router.post(
    "/",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
    description="Send a text or attachment message to a conversation you are a member of."
)
async def send_message(
    message_data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Send a message.

    - **conversation_id**: Target conversation
    - **content**: Text (required for text messages)
    - **type**: text, image, file or voice
    - **file_url / file_name / file_size**: Already-uploaded attachment
    - **reply_to_id**: Optional message being replied to
    """
    return await MessageService(db).send_message(
        current_user,
        conversation_id=message_data.conversation_id,
        content=message_data.content,
        type=message_data.type,
        file_url=message_data.file_url,
        file_name=message_data.file_name,
        file_size=message_data.file_size,
        reply_to_id=message_data.reply_to_id
    )


@router.patch(
    "/{message_id}",
    response_model=MessageResponse,
    summary="Edit a message",
    description="Only the sender can edit. The original send time is kept."
)
async def edit_message(
    message_id: str,
    payload: MessageUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MessageService(db).edit_message(current_user, message_id, payload.content)


@router.delete(
    "/{message_id}",
    response_model=MessageResponse,
    summary="Delete a message",
    description="Soft delete: the message stays in place with placeholder content."
)
async def delete_message(
    message_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MessageService(db).delete_message(current_user, message_id)


@router.post(
    "/{message_id}/forward",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Forward a message to another conversation"
)
async def forward_message(
    message_id: str,
    payload: MessageForwardRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MessageService(db).forward_message(current_user, message_id, payload.conversation_id)


@router.post(
    "/{message_id}/reactions",
    response_model=ReactionToggleResponse,
    summary="Toggle a reaction",
    description="Adds the emoji reaction, or removes it if the caller already reacted with it."
)
async def react_to_message(
    message_id: str,
    payload: MessageReactionToggle,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MessageService(db).react_to_message(current_user, message_id, payload.emoji)
