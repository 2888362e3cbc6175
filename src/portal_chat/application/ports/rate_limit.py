from __future__ import annotations

from typing import Protocol


class RateLimiter(Protocol):
    async def hit(self, key: str) -> bool:
        """Record one hit for ``key``; False when the window is exhausted."""
        ...
