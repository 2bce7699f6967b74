"""
Pydantic schemas for typing indicators.
"""
from datetime import datetime

from pydantic import BaseModel, Field

from chat_server.schemas.user import UserSummary


class TypingUpdate(BaseModel):
    is_typing: bool = Field(..., description="Whether the caller is typing")


class TypingUserResponse(BaseModel):
    """A member currently typing in the conversation."""

    user: UserSummary
    updated_at: datetime
