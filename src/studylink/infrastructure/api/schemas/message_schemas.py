"""Pydantic schemas for the group message log."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for posting a message."""

    content: str = Field(..., min_length=1, max_length=2000, description="Message text")


class GroupMessageResponse(BaseModel):
    """Schema for one message."""

    id: int = Field(..., description="Message ID, usable as the after_id cursor")
    group_id: str
    sender_id: str
    sender_name: str | None = None
    content: str
    type: str = Field(..., description="TEXT or SYSTEM")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageListResponse(BaseModel):
    """Schema for a page of messages."""

    messages: list[GroupMessageResponse]
    total: int
    page: int
    limit: int
