"""
User schemas for API request/response validation.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from chat_server.models.user import UserStatus


# ============================================================================
# Request Schemas
# ============================================================================

class UserSyncRequest(BaseModel):
    """
    Profile fields supplied by the auth provider at login.

    The external subject comes from the verified token, never from this body.
    """

    email: EmailStr = Field(..., description="Email address")
    username: str = Field(..., min_length=1, max_length=255, description="Username")
    full_name: Optional[str] = Field(None, max_length=255, description="Full display name")
    image_url: Optional[str] = Field(None, max_length=500, description="Avatar URL")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username cannot be empty or whitespace only")
        return v.strip()

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "email": "alice@mail.com",
            "username": "alice",
            "full_name": "Alice Liddell",
            "image_url": "https://cdn.example.org/avatars/alice.png"
        }
    })


class UserStatusUpdate(BaseModel):
    """Schema for changing presence status."""

    status: UserStatus = Field(..., description="online, offline or away")


class UserProfileUpdate(BaseModel):
    """Only fields present in the request body are changed."""

    full_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = Field(None, max_length=500)


# ============================================================================
# Response Schemas
# ============================================================================

class UserSummary(BaseModel):
    """Public profile embedded in other views."""

    id: str
    username: str
    full_name: Optional[str] = None
    image_url: Optional[str] = None
    status: UserStatus

    model_config = ConfigDict(from_attributes=True)


class UserResponse(UserSummary):
    """Full user profile."""

    email: str
    bio: Optional[str] = None
    last_seen_at: Optional[datetime] = None
    created_at: datetime
