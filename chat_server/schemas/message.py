"""
Pydantic schemas for message requests and responses.
Handles validation for message-related API endpoints.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from chat_server.models.message import MessageType
from chat_server.schemas.user import UserSummary


# ============================================================================
# Request Schemas
# ============================================================================

class MessageCreate(BaseModel):
    """Schema for sending a new message."""

    conversation_id: str = Field(..., description="Conversation ID")
    content: Optional[str] = Field(None, max_length=10000, description="Message text content")
    type: MessageType = Field(default=MessageType.TEXT, description="Message type")
    file_url: Optional[str] = Field(None, max_length=1000, description="Attachment URL (already uploaded)")
    file_name: Optional[str] = Field(None, max_length=255, description="Attachment file name")
    file_size: Optional[int] = Field(None, ge=0, description="Attachment size in bytes")
    reply_to_id: Optional[str] = Field(None, description="ID of message being replied to")

    @model_validator(mode="after")
    def validate_payload(self) -> "MessageCreate":
        """Text messages need content; attachments need a file URL."""
        if self.content is not None and len(self.content.strip()) == 0:
            raise ValueError("Content cannot be empty or whitespace only")

        if self.type == MessageType.TEXT and not self.content:
            raise ValueError("Text messages must have content")

        if self.type != MessageType.TEXT and not self.file_url:
            raise ValueError(f"{self.type.value} messages must have a file_url")

        return self

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "conversation_id": "123e4567-e89b-12d3-a456-426614174000",
            "content": "Hello, how are you?",
            "type": "text",
            "reply_to_id": None
        }
    })


class MessageUpdate(BaseModel):
    """Schema for editing a message."""

    content: str = Field(..., min_length=1, max_length=10000, description="Updated message content")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Ensure content is not empty or whitespace."""
        if len(v.strip()) == 0:
            raise ValueError("Content cannot be empty or whitespace only")
        return v


class MessageForwardRequest(BaseModel):
    """Schema for forwarding a message into another conversation."""

    conversation_id: str = Field(..., description="Target conversation ID")


class MessageReactionToggle(BaseModel):
    """Schema for toggling a reaction on a message."""

    emoji: str = Field(..., min_length=1, max_length=32, description="Emoji reaction")

    @field_validator("emoji")
    @classmethod
    def validate_emoji(cls, v: str) -> str:
        """Basic emoji validation."""
        if not v or len(v.strip()) == 0:
            raise ValueError("Emoji cannot be empty")
        return v.strip()


class MarkReadRequest(BaseModel):
    """Latest message the caller has seen in a conversation."""

    message_id: str = Field(..., description="Message ID")


# ============================================================================
# Response Schemas
# ============================================================================

class MessageReactionResponse(BaseModel):
    """Reaction with the reacting user's profile."""

    id: str
    message_id: str
    user_id: str
    emoji: str
    created_at: datetime
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class ReplyToResponse(BaseModel):
    """Replied-to message with its sender."""

    id: str
    sender_id: str
    content: Optional[str] = None
    type: MessageType
    sent_at: datetime
    deleted_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None


class MessageResponse(BaseModel):
    """Message view with sender, reactions and reply target resolved."""

    id: str
    conversation_id: str
    sender_id: str
    content: Optional[str] = None
    type: MessageType
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    reply_to_id: Optional[str] = None
    forwarded_from_id: Optional[str] = None
    sent_at: datetime
    edited_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None
    reactions: List[MessageReactionResponse] = Field(default_factory=list)
    reply_to: Optional[ReplyToResponse] = None


class ReactionToggleResponse(BaseModel):
    """Result of a reaction toggle."""

    added: bool = Field(..., description="True if the reaction was added, False if removed")
    reaction: Optional[MessageReactionResponse] = None


class MarkReadResponse(BaseModel):
    receipt_id: str
    created: bool = Field(..., description="False when this message was already marked read")
