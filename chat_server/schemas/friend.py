"""
Pydantic schemas for friend requests and friendships.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from chat_server.models.friendship import FriendRequestStatus
from chat_server.schemas.user import UserSummary


class FriendRequestCreate(BaseModel):
    receiver_id: str = Field(..., description="User to send the request to")


class FriendRequestRespond(BaseModel):
    accept: bool = Field(..., description="True to accept, False to reject")


class FriendRequestResponse(BaseModel):
    """Friend request with the sender's profile."""

    id: str
    sender_id: str
    receiver_id: str
    status: FriendRequestStatus
    created_at: datetime
    responded_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)
