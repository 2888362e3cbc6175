from __future__ import annotations

import uuid
from datetime import datetime, timezone

from portal_chat.application.dto.conversation import ConversationOverview
from portal_chat.application.exceptions import NotFoundError, ValidationError
from portal_chat.application.uow import UnitOfWork
from portal_chat.domain.entities.conversation import Conversation
from portal_chat.domain.entities.user import User
from portal_chat.domain.value_objects.enums import Role
from portal_chat.services import unread_service


async def get_or_create_conversation(
    client_id: str,
    admin_id: str,
    uow: UnitOfWork,
) -> tuple[Conversation, bool]:
    """Return the conversation between a client and an admin, creating users and thread as needed.

    Returns (conversation, created).
    """
    if client_id == admin_id:
        raise ValidationError("A conversation needs two distinct users")

    client = await uow.users_w.ensure(
        User(id=client_id, role=Role.CLIENT, name=f"User {client_id}", email=f"{client_id}@example.com")
    )
    admin = await uow.users_w.ensure(
        User(id=admin_id, role=Role.ADMIN, name=f"User {admin_id}", email=f"{admin_id}@example.com")
    )

    existing = await uow.conversations.find_between(client.id, admin.id)
    if existing is not None:
        await uow.commit()
        return existing, False

    now = datetime.now(timezone.utc)
    conversation = await uow.conversations_w.create(
        Conversation(id=uuid.uuid4().hex, created_at=now, updated_at=now),
        [client.id, admin.id],
    )
    await uow.commit()
    return conversation, True


async def list_participants(conversation_id: str, uow: UnitOfWork) -> list[User]:
    conversation = await uow.conversations.get_by_id(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return await uow.participants.list_participants(conversation_id)


async def list_overviews(user_id: str, uow: UnitOfWork) -> list[ConversationOverview]:
    """Conversations of a user with participants, last message and the user's unread count."""
    overviews: list[ConversationOverview] = []
    for conversation in await uow.conversations.list_for_user(user_id):
        participants = await uow.participants.list_participants(conversation.id)
        last_message = await uow.messages.last_message(conversation.id)
        unread = await unread_service.count_for_conversation(conversation.id, user_id, uow)
        overviews.append(
            ConversationOverview(
                conversation=conversation,
                participants=participants,
                last_message=last_message,
                unread_count=unread,
            )
        )
    return overviews
