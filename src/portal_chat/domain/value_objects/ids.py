from __future__ import annotations

from typing import NewType

UserId = NewType("UserId", str)
ConversationId = NewType("ConversationId", str)
MessageId = NewType("MessageId", str)
ConnectionId = NewType("ConnectionId", str)
