from __future__ import annotations

from dataclasses import dataclass, field

from portal_chat.domain.entities.conversation import Conversation
from portal_chat.domain.entities.message import Message
from portal_chat.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class UnreadMessageRef:
    id: str
    sender_id: str


@dataclass(frozen=True, slots=True)
class ConversationUnreadSnapshot:
    """A conversation a user takes part in, with its participants and unread messages."""

    conversation_id: str
    participants: list[User] = field(default_factory=list)
    unread_messages: list[UnreadMessageRef] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ConversationOverview:
    conversation: Conversation
    participants: list[User]
    last_message: Message | None
    unread_count: int
