from __future__ import annotations

from portal_chat.application.dto.principal import Principal
from portal_chat.application.exceptions import ForbiddenError, NotFoundError
from portal_chat.application.repositories.participant import ParticipantReader
from portal_chat.domain.entities.conversation import Conversation


async def assert_conversation_access(
    principal: Principal,
    conversation: Conversation | None,
    participants: ParticipantReader,
) -> Conversation:
    """Raise if conversation doesn't exist or principal has no access."""
    if conversation is None:
        raise NotFoundError("Conversation not found")

    # Admins have global access
    if principal.is_admin:
        return conversation

    is_member = await participants.is_participant(conversation.id, principal.user_id)
    if not is_member:
        raise ForbiddenError("Not a participant of this conversation")

    return conversation
