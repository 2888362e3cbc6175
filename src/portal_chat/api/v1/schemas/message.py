from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    sender_id: str = Field(min_length=1)
    content: str


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    content: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MarkReadRequest(BaseModel):
    user_id: str = Field(min_length=1)


class MarkReadResponse(BaseModel):
    success: bool = True
    updated_count: int
