from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from portal_chat.api.v1.schemas.message import MessageResponse
from portal_chat.application.dto.conversation import ConversationOverview


class CreateConversationRequest(BaseModel):
    client_id: str = Field(min_length=1)
    admin_id: str = Field(min_length=1)


class ParticipantResponse(BaseModel):
    id: str
    name: str | None
    role: str

    model_config = {"from_attributes": True}


class ConversationResponse(BaseModel):
    id: str
    created_at: datetime
    updated_at: datetime
    participants: list[ParticipantResponse] = []


class ConversationOverviewResponse(BaseModel):
    id: str
    updated_at: datetime
    participants: list[ParticipantResponse]
    last_message: MessageResponse | None
    unread_count: int

    @classmethod
    def from_overview(cls, overview: ConversationOverview) -> ConversationOverviewResponse:
        return cls(
            id=overview.conversation.id,
            updated_at=overview.conversation.updated_at,
            participants=[
                ParticipantResponse.model_validate(p, from_attributes=True)
                for p in overview.participants
            ],
            last_message=(
                MessageResponse.model_validate(overview.last_message, from_attributes=True)
                if overview.last_message
                else None
            ),
            unread_count=overview.unread_count,
        )
