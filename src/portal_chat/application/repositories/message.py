from __future__ import annotations

from typing import Protocol

from portal_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(self, conversation_id: str) -> list[Message]: ...

    async def last_message(self, conversation_id: str) -> Message | None: ...

    async def count_unread(
        self,
        conversation_id: str,
        *,
        sender_id: str | None = None,
        exclude_sender_id: str | None = None,
    ) -> int:
        """Unread messages in the conversation, optionally only from ``sender_id`` or not from ``exclude_sender_id``."""
        ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message: ...

    async def mark_read(self, conversation_id: str, *, exclude_sender_id: str) -> int:
        """Flag every unread message not sent by ``exclude_sender_id`` as read; return rows updated."""
        ...
