"""WebSocket message envelope models.

Every frame is ``{"type": <event name>, "data": {...}}`` with camelCase keys.
Inbound and outbound events are closed unions discriminated on ``type``.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from portal_chat.application.dto.principal import Principal
from portal_chat.application.dto.unread import UnreadTotals
from portal_chat.domain.entities.message import Message


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Client → Server


class ConversationRef(_Payload):
    conversation_id: str = Field(min_length=1)


class SendMessageData(_Payload):
    conversation_id: str = Field(min_length=1)
    content: str = ""


class MarkAsReadData(_Payload):
    conversation_id: str = Field(min_length=1)
    user_id: str | None = None


class JoinConversation(BaseModel):
    type: Literal["joinConversation"]
    data: ConversationRef


class LeaveConversation(BaseModel):
    type: Literal["leaveConversation"]
    data: ConversationRef


class SendMessage(BaseModel):
    type: Literal["sendMessage"]
    data: SendMessageData


class MarkAsRead(BaseModel):
    type: Literal["markAsRead"]
    data: MarkAsReadData


class Ping(BaseModel):
    type: Literal["ping"]
    data: dict[str, Any] = {}


WsInbound = Annotated[
    Union[JoinConversation, LeaveConversation, SendMessage, MarkAsRead, Ping],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[WsInbound] = TypeAdapter(WsInbound)


def parse_inbound(raw: str | bytes) -> WsInbound:
    """Raises pydantic.ValidationError on malformed or unknown frames."""
    return _inbound_adapter.validate_json(raw)


# Server → Client


class SenderOut(_Payload):
    id: str
    name: str | None = None
    role: str


class MessageOut(_Payload):
    id: str
    conversation_id: str
    sender_id: str
    content: str
    read: bool
    created_at: datetime
    sender: SenderOut | None = None

    @classmethod
    def build(cls, message: Message, sender: Principal | None = None) -> MessageOut:
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            content=message.content,
            read=message.read,
            created_at=message.created_at,
            sender=(
                SenderOut(id=sender.user_id, name=sender.name, role=sender.role.value)
                if sender is not None
                else None
            ),
        )


class MessageSummary(_Payload):
    id: str
    content: str
    sender_id: str
    created_at: datetime


class AdminNewMessageData(_Payload):
    conversation_id: str
    message: MessageSummary
    unread_count: int
    client_id: str
    client_name: str


class ConversationUnreadOut(_Payload):
    conversation_id: str
    unread_count: int


class AdminUnreadCountData(_Payload):
    total_unread_count: int
    conversations: list[ConversationUnreadOut] = []

    @classmethod
    def build(cls, totals: UnreadTotals) -> AdminUnreadCountData:
        return cls(
            total_unread_count=totals.total_unread_count,
            conversations=[
                ConversationUnreadOut(conversation_id=c.conversation_id, unread_count=c.unread_count)
                for c in totals.conversations
            ],
        )


class MessagesReadData(_Payload):
    conversation_id: str
    user_id: str
    count: int


class ErrorData(_Payload):
    message: str
    code: str


class NewMessage(BaseModel):
    type: Literal["newMessage"] = "newMessage"
    data: MessageOut


class AdminNewMessage(BaseModel):
    type: Literal["adminNewMessage"] = "adminNewMessage"
    data: AdminNewMessageData


class AdminUnreadCount(BaseModel):
    type: Literal["adminUnreadCount"] = "adminUnreadCount"
    data: AdminUnreadCountData


class MessagesRead(BaseModel):
    type: Literal["messagesRead"] = "messagesRead"
    data: MessagesReadData


class Error(BaseModel):
    type: Literal["error"] = "error"
    data: ErrorData


class Pong(BaseModel):
    type: Literal["pong"] = "pong"
    data: dict[str, Any] = {}


WsOutbound = Annotated[
    Union[NewMessage, AdminNewMessage, AdminUnreadCount, MessagesRead, Error, Pong],
    Field(discriminator="type"),
]


def error_event(code: str, message: str) -> Error:
    return Error(data=ErrorData(code=code, message=message))


def encode(event: WsOutbound) -> str:
    return event.model_dump_json(by_alias=True)
