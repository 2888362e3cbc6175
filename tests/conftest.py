"""Shared test fixtures."""
from __future__ import annotations

import dataclasses
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator

import pytest

from portal_chat.application.dto.conversation import (
    ConversationUnreadSnapshot,
    UnreadMessageRef,
)
from portal_chat.application.dto.principal import Principal
from portal_chat.domain.entities.conversation import Conversation
from portal_chat.domain.entities.message import Message
from portal_chat.domain.entities.user import User
from portal_chat.domain.value_objects.enums import Role
from portal_chat.infrastructure.ws.engine import PresenceEngine

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class StoreFailure(RuntimeError):
    pass


@dataclass
class InMemoryStore:
    """Backing state shared by every FakeUoW opened over it.

    Add a repository method name to ``failing`` to make that call raise.
    """

    users: dict[str, User] = field(default_factory=dict)
    conversations: dict[str, Conversation] = field(default_factory=dict)
    participants: dict[str, list[str]] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)
    commits: int = 0

    def check(self, operation: str) -> None:
        if operation in self.failing:
            raise StoreFailure(f"{operation} unavailable")

    def add_user(self, user_id: str, role: Role = Role.CLIENT, name: str | None = None) -> User:
        user = User(id=user_id, role=role, name=name)
        self.users[user_id] = user
        return user

    def add_conversation(self, conversation_id: str, *user_ids: str) -> Conversation:
        conversation = Conversation(id=conversation_id, created_at=T0, updated_at=T0)
        self.conversations[conversation_id] = conversation
        self.participants[conversation_id] = list(user_ids)
        return conversation

    def add_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str = "hello",
        *,
        read: bool = False,
    ) -> Message:
        message = Message(
            id=f"m{len(self.messages) + 1}",
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            read=read,
            created_at=T0 + timedelta(seconds=len(self.messages)),
        )
        self.messages.append(message)
        return message

    def unread(self, conversation_id: str) -> list[Message]:
        return [m for m in self.messages if m.conversation_id == conversation_id and not m.read]


@dataclass
class FakeUserReader:
    _store: InMemoryStore

    async def get_by_id(self, user_id: str) -> User | None:
        self._store.check("get_user")
        return self._store.users.get(user_id)


@dataclass
class FakeUserWriter:
    _store: InMemoryStore

    async def ensure(self, user: User) -> User:
        return self._store.users.setdefault(user.id, user)

    async def upsert(self, user: User) -> User:
        self._store.users[user.id] = user
        return user


@dataclass
class FakeConversationReader:
    _store: InMemoryStore

    async def get_by_id(self, conversation_id: str) -> Conversation | None:
        self._store.check("get_conversation")
        return self._store.conversations.get(conversation_id)

    async def find_between(self, user_a: str, user_b: str) -> Conversation | None:
        for cid, members in self._store.participants.items():
            if user_a in members and user_b in members:
                return self._store.conversations[cid]
        return None

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        convs = [
            self._store.conversations[cid]
            for cid, members in self._store.participants.items()
            if user_id in members
        ]
        return sorted(convs, key=lambda c: c.updated_at, reverse=True)

    async def list_unread_snapshots(self, user_id: str) -> list[ConversationUnreadSnapshot]:
        self._store.check("list_unread_snapshots")
        return [
            ConversationUnreadSnapshot(
                conversation_id=cid,
                participants=[self._store.users[uid] for uid in members if uid in self._store.users],
                unread_messages=[
                    UnreadMessageRef(id=m.id, sender_id=m.sender_id)
                    for m in self._store.unread(cid)
                ],
            )
            for cid, members in self._store.participants.items()
            if user_id in members
        ]


@dataclass
class FakeConversationWriter:
    _store: InMemoryStore

    async def create(self, conversation: Conversation, participant_ids: list[str]) -> Conversation:
        self._store.conversations[conversation.id] = conversation
        self._store.participants[conversation.id] = list(dict.fromkeys(participant_ids))
        return conversation

    async def touch(self, conversation_id: str, ts: datetime) -> None:
        current = self._store.conversations[conversation_id]
        self._store.conversations[conversation_id] = dataclasses.replace(current, updated_at=ts)


@dataclass
class FakeParticipantReader:
    _store: InMemoryStore

    async def is_participant(self, conversation_id: str, user_id: str) -> bool:
        return user_id in self._store.participants.get(conversation_id, [])

    async def list_participants(self, conversation_id: str) -> list[User]:
        self._store.check("list_participants")
        return [
            self._store.users[uid]
            for uid in self._store.participants.get(conversation_id, [])
            if uid in self._store.users
        ]


@dataclass
class FakeMessageReader:
    _store: InMemoryStore

    async def list_messages(self, conversation_id: str) -> list[Message]:
        return [m for m in self._store.messages if m.conversation_id == conversation_id]

    async def last_message(self, conversation_id: str) -> Message | None:
        messages = await self.list_messages(conversation_id)
        return messages[-1] if messages else None

    async def count_unread(
        self,
        conversation_id: str,
        *,
        sender_id: str | None = None,
        exclude_sender_id: str | None = None,
    ) -> int:
        self._store.check("count_unread")
        return sum(
            1 for m in self._store.unread(conversation_id)
            if (sender_id is None or m.sender_id == sender_id)
            and (exclude_sender_id is None or m.sender_id != exclude_sender_id)
        )


@dataclass
class FakeMessageWriter:
    _store: InMemoryStore

    async def create(self, message: Message) -> Message:
        self._store.check("create_message")
        self._store.messages.append(message)
        return message

    async def mark_read(self, conversation_id: str, *, exclude_sender_id: str) -> int:
        self._store.check("mark_read")
        updated = 0
        for i, m in enumerate(self._store.messages):
            if m.conversation_id == conversation_id and not m.read and m.sender_id != exclude_sender_id:
                self._store.messages[i] = dataclasses.replace(m, read=True)
                updated += 1
        return updated


class FakeUoW:
    """In-memory UoW for unit tests."""

    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()
        self.users = FakeUserReader(self.store)
        self.users_w = FakeUserWriter(self.store)
        self.conversations = FakeConversationReader(self.store)
        self.conversations_w = FakeConversationWriter(self.store)
        self.participants = FakeParticipantReader(self.store)
        self.messages = FakeMessageReader(self.store)
        self.messages_w = FakeMessageWriter(self.store)
        self._committed = False

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True
        self.store.commits += 1

    async def rollback(self) -> None:
        pass


def uow_factory(store: InMemoryStore):
    @asynccontextmanager
    async def _factory() -> AsyncIterator[FakeUoW]:
        yield FakeUoW(store)

    return _factory


class FakeTransport:
    """Records what the engine sends; ``fail_sends`` makes every send raise."""

    def __init__(self, *, fail_sends: bool = False) -> None:
        self.accepted = False
        self.sent: list[str] = []
        self.closed: tuple[int, str | None] | None = None
        self.fail_sends = fail_sends

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise ConnectionResetError("socket gone")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed = (code, reason)

    @property
    def events(self) -> list[dict[str, Any]]:
        return [json.loads(raw) for raw in self.sent]

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [e["data"] for e in self.events if e["type"] == event_type]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def portal(store: InMemoryStore) -> InMemoryStore:
    """One client and one admin sharing conv-1."""
    store.add_user("client-1", Role.CLIENT, "Alice")
    store.add_user("admin-1", Role.ADMIN, "Admin")
    store.add_conversation("conv-1", "client-1", "admin-1")
    return store


@pytest.fixture
def engine(store: InMemoryStore) -> PresenceEngine:
    return PresenceEngine(uow_factory(store))


@pytest.fixture
def client_principal() -> Principal:
    return Principal(user_id="client-1", role=Role.CLIENT, name="Alice")


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(user_id="admin-1", role=Role.ADMIN, name="Admin")
