from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Timezone-aware UTC wall clock; message timestamps and conversation activity use it."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
