from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ConversationUnread:
    conversation_id: str
    unread_count: int


@dataclass(frozen=True, slots=True)
class UnreadTotals:
    total_unread_count: int = 0
    conversations: list[ConversationUnread] = field(default_factory=list)
