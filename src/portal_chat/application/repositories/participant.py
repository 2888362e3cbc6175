from __future__ import annotations

from typing import Protocol

from portal_chat.domain.entities.user import User


class ParticipantReader(Protocol):
    async def is_participant(self, conversation_id: str, user_id: str) -> bool: ...

    async def list_participants(self, conversation_id: str) -> list[User]: ...
