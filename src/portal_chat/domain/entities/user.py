from __future__ import annotations

from dataclasses import dataclass

from portal_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class User:
    id: str
    role: Role
    name: str | None = None
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def display_name(self) -> str:
        return self.name or self.id
