from __future__ import annotations

from dataclasses import dataclass

from portal_chat.domain.entities.user import User
from portal_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Principal:
    """Identity attached to a live connection, resolved from persistence at handshake."""

    user_id: str
    role: Role
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def display_name(self) -> str:
        return self.name or self.user_id

    @classmethod
    def from_user(cls, user: User) -> Principal:
        return cls(user_id=user.id, role=user.role, name=user.name)
