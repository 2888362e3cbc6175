"""Presence and notification engine.

Owns the connection registry and the room router, handles the per-connection
lifecycle and the inbound events, and pushes unread counters to admins.
Each operation opens its own unit of work through the injected factory so a
slow query on one connection never blocks the others.
"""
from __future__ import annotations

import logging
import uuid
from typing import assert_never

from pydantic import ValidationError as PayloadError

from portal_chat.application.dto.principal import Principal
from portal_chat.application.dto.unread import UnreadTotals
from portal_chat.application.exceptions import AppError, ValidationError
from portal_chat.application.ports.clock import Clock, SystemClock
from portal_chat.application.uow import UoWFactory
from portal_chat.domain.entities.message import Message
from portal_chat.domain.value_objects.enums import ConnectionState, Role
from portal_chat.domain.value_objects.ids import ConnectionId
from portal_chat.infrastructure.ws.protocol import (
    AdminNewMessage,
    AdminNewMessageData,
    AdminUnreadCount,
    AdminUnreadCountData,
    JoinConversation,
    LeaveConversation,
    MarkAsRead,
    MessageOut,
    MessagesRead,
    MessagesReadData,
    MessageSummary,
    NewMessage,
    Ping,
    Pong,
    SendMessage,
    WsInbound,
    WsOutbound,
    error_event,
    parse_inbound,
)
from portal_chat.infrastructure.ws.registry import Connection, ConnectionRegistry
from portal_chat.infrastructure.ws.rooms import ADMINS_CHANNEL, RoomRouter, Transport
from portal_chat.services import message_service, read_state_service, unread_service, user_service

logger = logging.getLogger(__name__)

CLOSE_UNKNOWN_IDENTITY = 4001
CLOSE_INTERNAL_ERROR = 1011


class PresenceEngine:
    def __init__(
        self,
        uow_factory: UoWFactory,
        *,
        registry: ConnectionRegistry | None = None,
        rooms: RoomRouter | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._registry = registry or ConnectionRegistry()
        self._rooms = rooms or RoomRouter()
        self._clock = clock or SystemClock()

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def rooms(self) -> RoomRouter:
        return self._rooms

    # -- lifecycle ---------------------------------------------------------

    async def connect(self, transport: Transport, claimed_user_id: str) -> Connection | None:
        """Resolve the claimed identity and bring the connection to ACTIVE.

        Unknown identities get the transport closed and None back.
        """
        try:
            async with self._uow_factory() as uow:
                principal = await user_service.resolve_principal(claimed_user_id, uow)
        except Exception:
            logger.exception("Identity lookup failed for %s", claimed_user_id)
            await _close(transport, CLOSE_INTERNAL_ERROR, "Identity lookup failed")
            return None

        if principal is None:
            logger.info("Rejected connection for unknown user %s", claimed_user_id)
            await _close(transport, CLOSE_UNKNOWN_IDENTITY, "Unknown user")
            return None

        connection_id = ConnectionId(uuid.uuid4().hex)
        await transport.accept()
        self._rooms.attach(connection_id, transport)
        connection = self._registry.register(connection_id, principal)
        try:
            connection.state = ConnectionState.ACTIVE
            logger.info("User %s (%s) connected as %s", principal.user_id, principal.role, connection_id)
            if principal.is_admin:
                self._rooms.join(connection_id, ADMINS_CHANNEL)
                await self._push_totals(principal.user_id, only=connection_id)
        except BaseException:
            # Cancelled or failed before the caller owns the connection.
            self.disconnect(connection_id)
            raise
        return connection

    def disconnect(self, connection_id: ConnectionId) -> None:
        connection = self._registry.unregister(connection_id)
        self._rooms.detach(connection_id)
        if connection is not None:
            logger.info("User %s disconnected (%s)", connection.user_id, connection_id)

    # -- inbound events ----------------------------------------------------

    async def dispatch(self, connection_id: ConnectionId, raw: str | bytes) -> None:
        """Parse one frame from the connection and handle it to completion."""
        connection = self._registry.get(connection_id)
        if connection is None or connection.state is not ConnectionState.ACTIVE:
            logger.debug("Dropping frame for closed connection %s", connection_id)
            return
        try:
            event = parse_inbound(raw)
        except PayloadError:
            await self._emit_error(connection_id, "invalid_payload", "Malformed event")
            return
        await self.handle(connection, event)

    async def handle(self, connection: Connection, event: WsInbound) -> None:
        if isinstance(event, JoinConversation):
            await self.join_conversation(connection, event.data.conversation_id)
        elif isinstance(event, LeaveConversation):
            await self.leave_conversation(connection, event.data.conversation_id)
        elif isinstance(event, SendMessage):
            await self.send_message(connection, event.data.conversation_id, event.data.content)
        elif isinstance(event, MarkAsRead):
            await self.mark_as_read(connection, event.data.conversation_id, event.data.user_id)
        elif isinstance(event, Ping):
            await self._rooms.emit_to_connection(connection.id, Pong())
        else:
            assert_never(event)

    async def join_conversation(self, connection: Connection, conversation_id: str) -> bool:
        if conversation_id == ADMINS_CHANNEL:
            await self._emit_error(connection.id, "invalid_conversation", "Reserved channel")
            return False
        self._rooms.join(connection.id, conversation_id)
        logger.debug("User %s joined conversation %s", connection.user_id, conversation_id)
        return True

    async def leave_conversation(self, connection: Connection, conversation_id: str) -> bool:
        if conversation_id == ADMINS_CHANNEL:
            await self._emit_error(connection.id, "invalid_conversation", "Reserved channel")
            return False
        self._rooms.leave(connection.id, conversation_id)
        logger.debug("User %s left conversation %s", connection.user_id, conversation_id)
        return True

    async def send_message(
        self,
        connection: Connection,
        conversation_id: str,
        content: str | None,
    ) -> Message | None:
        try:
            message_service.validate_content(content)
        except ValidationError as exc:
            await self._emit_error(connection.id, "invalid_content", exc.detail)
            return None

        try:
            async with self._uow_factory() as uow:
                message = await message_service.send_message(
                    conversation_id, connection.principal, content, uow,
                    now=self._clock.now(),
                )
        except AppError as exc:
            await self._emit_error(connection.id, "send_failed", exc.detail)
            return None
        except Exception:
            logger.exception("sendMessage failed for %s in %s", connection.user_id, conversation_id)
            await self._emit_error(connection.id, "send_failed", "Failed to send message")
            return None

        await self.announce_message(message, connection.principal)
        return message

    async def mark_as_read(
        self,
        connection: Connection,
        conversation_id: str,
        reader_id: str | None = None,
    ) -> int | None:
        reader_id = reader_id or connection.user_id
        if reader_id != connection.user_id:
            await self._emit_error(
                connection.id, "forbidden", "Cannot mark messages as read for another user",
            )
            return None

        try:
            async with self._uow_factory() as uow:
                count = await read_state_service.mark_read(conversation_id, reader_id, uow)
        except Exception:
            logger.exception("markAsRead failed for %s in %s", reader_id, conversation_id)
            await self._emit_error(connection.id, "mark_read_failed", "Failed to mark messages as read")
            return None

        await self.announce_read(conversation_id, reader_id, count)
        return count

    # -- fan-out entry points (also used by the HTTP layer) -----------------

    async def announce_message(self, message: Message, sender: Principal) -> None:
        """Broadcast a persisted message and notify admins when a client wrote it."""
        await self._rooms.emit_to_channel(
            message.conversation_id,
            NewMessage(data=MessageOut.build(message, sender)),
        )
        if not sender.is_admin:
            await self._notify_admins_of_new_message(message)

    async def announce_read(self, conversation_id: str, reader_id: str, count: int) -> None:
        await self._rooms.emit_to_channel(
            conversation_id,
            MessagesRead(
                data=MessagesReadData(conversation_id=conversation_id, user_id=reader_id, count=count)
            ),
        )
        if count > 0:
            await self._refresh_conversation_admins(conversation_id)

    async def push_unread_totals(self, admin_id: str) -> UnreadTotals | None:
        """Recompute and push totals to every live connection of the admin."""
        if not self._registry.connections_for(admin_id):
            return None
        return await self._push_totals(admin_id)

    async def reconcile_unread(self) -> int:
        """Re-push totals to every connected admin. Returns how many admins were refreshed."""
        refreshed = 0
        for admin_id in self._registry.online_user_ids(Role.ADMIN):
            if await self.push_unread_totals(admin_id) is not None:
                refreshed += 1
        return refreshed

    async def notify_user(self, user_id: str, event: WsOutbound) -> int:
        delivered = 0
        for connection_id in self._registry.connections_for(user_id):
            if await self._rooms.emit_to_connection(connection_id, event):
                delivered += 1
        return delivered

    async def broadcast_to_admins(self, event: WsOutbound) -> int:
        return await self._rooms.emit_to_channel(ADMINS_CHANNEL, event)

    async def heartbeat(self, connection_id: ConnectionId) -> bool:
        return await self._rooms.emit_to_connection(connection_id, Pong())

    # -- internals ---------------------------------------------------------

    async def _notify_admins_of_new_message(self, message: Message) -> None:
        """Tell every online admin of the conversation that its client wrote.

        The unread figure is the client's unread messages, the same number
        ``totals_for_admin`` reports for this conversation.
        """
        try:
            async with self._uow_factory() as uow:
                participants = await uow.participants.list_participants(message.conversation_id)
                if unread_service.sole_client_id(participants) != message.sender_id:
                    logger.debug(
                        "Sender %s is not the client of %s, no admin notification",
                        message.sender_id, message.conversation_id,
                    )
                    return
                client = next(p for p in participants if p.id == message.sender_id)
                online_admins = [
                    p.id for p in participants
                    if p.is_admin and self._registry.connections_for(p.id)
                ]
                if not online_admins:
                    return
                unread = await uow.messages.count_unread(message.conversation_id, sender_id=client.id)
        except Exception:
            logger.exception("Admin notification failed for conversation %s", message.conversation_id)
            return

        event = AdminNewMessage(
            data=AdminNewMessageData(
                conversation_id=message.conversation_id,
                message=MessageSummary(
                    id=message.id,
                    content=message.content,
                    sender_id=message.sender_id,
                    created_at=message.created_at,
                ),
                unread_count=unread,
                client_id=client.id,
                client_name=client.display_name,
            )
        )
        for admin_id in online_admins:
            await self.notify_user(admin_id, event)

    async def _refresh_conversation_admins(self, conversation_id: str) -> None:
        try:
            async with self._uow_factory() as uow:
                participants = await uow.participants.list_participants(conversation_id)
        except Exception:
            logger.exception("Could not load participants of %s", conversation_id)
            return
        for admin in (p for p in participants if p.is_admin):
            await self.push_unread_totals(admin.id)

    async def _push_totals(
        self,
        admin_id: str,
        *,
        only: ConnectionId | None = None,
    ) -> UnreadTotals | None:
        try:
            async with self._uow_factory() as uow:
                totals = await unread_service.totals_for_admin(admin_id, uow)
        except Exception:
            logger.warning("Skipping unread totals push for %s", admin_id, exc_info=True)
            return None

        event = AdminUnreadCount(data=AdminUnreadCountData.build(totals))
        targets = [only] if only is not None else self._registry.connections_for(admin_id)
        for connection_id in targets:
            await self._rooms.emit_to_connection(connection_id, event)
        return totals

    async def _emit_error(self, connection_id: ConnectionId, code: str, message: str) -> None:
        await self._rooms.emit_to_connection(connection_id, error_event(code, message))


async def _close(transport: Transport, code: int, reason: str) -> None:
    try:
        await transport.close(code=code, reason=reason)
    except Exception:
        logger.debug("Closing rejected transport failed", exc_info=True)
