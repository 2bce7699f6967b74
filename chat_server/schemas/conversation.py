"""
Pydantic schemas for conversation requests and responses.
Handles validation for conversation-related API endpoints.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from chat_server.schemas.message import MessageResponse
from chat_server.schemas.user import UserSummary


# ============================================================================
# Request Schemas
# ============================================================================

class ConversationCreate(BaseModel):
    """Schema for creating a new conversation."""

    is_group: bool = Field(..., description="True for a group chat, False for a DM")
    member_ids: List[str] = Field(
        ...,
        min_length=1,
        max_length=100,
        description="User IDs to add as members (excluding yourself - the creator is added automatically)"
    )
    name: Optional[str] = Field(None, max_length=255, description="Group name")
    group_image: Optional[str] = Field(None, max_length=500, description="Group avatar URL")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) == 0:
            raise ValueError("Name cannot be empty or whitespace only")
        return v.strip() if v else v

    @field_validator("member_ids")
    @classmethod
    def dedupe_member_ids(cls, v: List[str]) -> List[str]:
        """Collapse duplicates, keeping the first occurrence."""
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def validate_direct_members(self) -> "ConversationCreate":
        if not self.is_group and len(self.member_ids) != 1:
            raise ValueError("Direct conversations must have exactly 1 other member")
        return self

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "is_group": True,
            "member_ids": ["123e4567-e89b-12d3-a456-426614174000"],
            "name": "Weekend plans",
            "group_image": None
        }
    })


class ConversationMembersAdd(BaseModel):
    """Schema for adding members to a group."""

    member_ids: List[str] = Field(..., min_length=1, max_length=100, description="User IDs to add")


# ============================================================================
# Response Schemas
# ============================================================================

class ConversationResponse(BaseModel):
    """
    Conversation view for the caller.

    display_name/display_image are the other member's profile for DMs and the
    group's own name/image for groups.
    """

    id: str
    is_group: bool
    name: Optional[str] = None
    group_image: Optional[str] = None
    admin_ids: Optional[List[str]] = None
    created_by: str
    created_at: datetime
    last_message_at: Optional[datetime] = None
    members: List[UserSummary] = Field(default_factory=list)
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0
    display_name: str
    display_image: Optional[str] = None
