"""Message Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for sending a message.

    Blank content is rejected by the service so it can be reported as a
    domain validation error rather than a schema error.
    """

    model_config = ConfigDict(from_attributes=True)

    content: str = Field(..., description="Message content")


class MessageResponse(BaseModel):
    """Schema for message API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Message id assigned by the store")
    sender: UUID = Field(description="Sending identity")
    receiver: UUID = Field(description="Receiving identity")
    content: str = Field(description="Message content")
    created_at: datetime = Field(description="Creation timestamp")


class MessageListResponse(BaseModel):
    """All messages of a conversation, oldest first."""

    model_config = ConfigDict(from_attributes=True)

    messages: list[MessageResponse] = Field(description="List of messages")
    total: int = Field(default=0, description="Number of messages")
