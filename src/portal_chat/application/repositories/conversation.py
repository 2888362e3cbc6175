from __future__ import annotations

from datetime import datetime
from typing import Protocol

from portal_chat.application.dto.conversation import ConversationUnreadSnapshot
from portal_chat.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: str) -> Conversation | None: ...

    async def find_between(self, user_a: str, user_b: str) -> Conversation | None:
        """Find a conversation where both users are participants."""
        ...

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        """Conversations the user takes part in, most recently active first."""
        ...

    async def list_unread_snapshots(self, user_id: str) -> list[ConversationUnreadSnapshot]:
        """Every conversation of the user with its participants and unread messages."""
        ...


class ConversationWriter(Protocol):
    async def create(self, conversation: Conversation, participant_ids: list[str]) -> Conversation: ...

    async def touch(self, conversation_id: str, ts: datetime) -> None: ...
