from __future__ import annotations

from typing import Protocol


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> str:
        """Return the user id claimed by the token."""
        ...


class TokenIssuer(Protocol):
    def issue(self, user_id: str) -> str: ...
