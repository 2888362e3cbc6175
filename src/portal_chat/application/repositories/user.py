from __future__ import annotations

from typing import Protocol

from portal_chat.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: str) -> User | None: ...


class UserWriter(Protocol):
    async def ensure(self, user: User) -> User:
        """Insert the user if missing and return the stored row (existing rows are left untouched)."""
        ...

    async def upsert(self, user: User) -> User:
        """Insert or overwrite role, name and email."""
        ...
