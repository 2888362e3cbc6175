from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    ADMIN = "admin"
    CLIENT = "client"

    @classmethod
    def parse(cls, raw: str | None) -> Role:
        """Anything that is not ``admin`` is a client."""
        return cls.ADMIN if raw == cls.ADMIN.value else cls.CLIENT


class ConnectionState(StrEnum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
