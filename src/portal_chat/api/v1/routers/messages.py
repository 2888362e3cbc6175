from __future__ import annotations

from fastapi import APIRouter

from portal_chat.api.deps import EngineDep, RateLimited, UoWDep
from portal_chat.api.v1.schemas.message import (
    MarkReadRequest,
    MarkReadResponse,
    MessageResponse,
    SendMessageRequest,
)
from portal_chat.application.exceptions import NotFoundError
from portal_chat.services import message_service, read_state_service, user_service

router = APIRouter(prefix="/api/v1/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: str,
    uow: UoWDep,
) -> list[MessageResponse]:
    messages = await message_service.list_messages(conversation_id, uow)
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=201,
    dependencies=[RateLimited],
)
async def send_message(
    conversation_id: str,
    body: SendMessageRequest,
    uow: UoWDep,
    engine: EngineDep,
) -> MessageResponse:
    sender = await user_service.resolve_principal(body.sender_id, uow)
    if sender is None:
        raise NotFoundError("Sender not found")
    msg = await message_service.send_message(conversation_id, sender, body.content, uow)
    await engine.announce_message(msg, sender)
    return MessageResponse.model_validate(msg, from_attributes=True)


@router.post("/{conversation_id}/mark-read", response_model=MarkReadResponse)
async def mark_read(
    conversation_id: str,
    body: MarkReadRequest,
    uow: UoWDep,
    engine: EngineDep,
) -> MarkReadResponse:
    count = await read_state_service.mark_read(conversation_id, body.user_id, uow)
    await engine.announce_read(conversation_id, body.user_id, count)
    return MarkReadResponse(updated_count=count)
