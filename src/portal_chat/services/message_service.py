from __future__ import annotations

import uuid
from datetime import datetime, timezone

from portal_chat.application.dto.principal import Principal
from portal_chat.application.exceptions import NotFoundError, ValidationError
from portal_chat.application.policies.permissions import assert_conversation_access
from portal_chat.application.uow import UnitOfWork
from portal_chat.domain.entities.message import Message


def validate_content(content: str | None) -> str:
    if content is None or not content.strip():
        raise ValidationError("Message content must not be empty")
    return content


async def send_message(
    conversation_id: str,
    sender: Principal,
    content: str | None,
    uow: UnitOfWork,
    *,
    now: datetime | None = None,
) -> Message:
    """Persist a message and bump the conversation's activity timestamp in one commit."""
    content = validate_content(content)
    conversation = await uow.conversations.get_by_id(conversation_id)
    await assert_conversation_access(sender, conversation, uow.participants)

    now = now or datetime.now(timezone.utc)
    msg = await uow.messages_w.create(
        Message(
            id=uuid.uuid4().hex,
            conversation_id=conversation_id,
            sender_id=sender.user_id,
            content=content,
            read=False,
            created_at=now,
        )
    )
    await uow.conversations_w.touch(conversation_id, now)
    await uow.commit()
    return msg


async def list_messages(conversation_id: str, uow: UnitOfWork) -> list[Message]:
    conversation = await uow.conversations.get_by_id(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return await uow.messages.list_messages(conversation_id)
