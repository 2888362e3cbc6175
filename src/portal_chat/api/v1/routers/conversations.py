from __future__ import annotations

from fastapi import APIRouter

from portal_chat.api.deps import UoWDep
from portal_chat.api.v1.schemas.conversation import (
    ConversationOverviewResponse,
    ConversationResponse,
    CreateConversationRequest,
    ParticipantResponse,
)
from portal_chat.services import conversation_service

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


@router.post("", response_model=ConversationResponse)
async def create_conversation(
    body: CreateConversationRequest,
    uow: UoWDep,
) -> ConversationResponse:
    conv, _created = await conversation_service.get_or_create_conversation(
        body.client_id, body.admin_id, uow,
    )
    participants = await conversation_service.list_participants(conv.id, uow)
    return ConversationResponse(
        id=conv.id,
        created_at=conv.created_at,
        updated_at=conv.updated_at,
        participants=[ParticipantResponse.model_validate(p, from_attributes=True) for p in participants],
    )


@router.get("/user/{user_id}", response_model=list[ConversationOverviewResponse])
async def list_user_conversations(
    user_id: str,
    uow: UoWDep,
) -> list[ConversationOverviewResponse]:
    overviews = await conversation_service.list_overviews(user_id, uow)
    return [ConversationOverviewResponse.from_overview(o) for o in overviews]


@router.get("/admin/{admin_id}", response_model=list[ConversationOverviewResponse])
async def list_admin_conversations(
    admin_id: str,
    uow: UoWDep,
) -> list[ConversationOverviewResponse]:
    overviews = await conversation_service.list_overviews(admin_id, uow)
    return [ConversationOverviewResponse.from_overview(o) for o in overviews]
