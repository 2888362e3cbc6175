from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol

from portal_chat.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from portal_chat.application.repositories.message import MessageReader, MessageWriter
from portal_chat.application.repositories.participant import ParticipantReader
from portal_chat.application.repositories.user import UserReader, UserWriter


class UnitOfWork(Protocol):
    users: UserReader
    users_w: UserWriter
    conversations: ConversationReader
    conversations_w: ConversationWriter
    participants: ParticipantReader
    messages: MessageReader
    messages_w: MessageWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


# Opens a fresh unit of work per engine operation.
UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]
