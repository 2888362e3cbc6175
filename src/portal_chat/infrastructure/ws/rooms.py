"""Channel membership and fan-out for live connections."""
from __future__ import annotations

import logging
from typing import Protocol

from portal_chat.domain.value_objects.ids import ConnectionId
from portal_chat.infrastructure.ws.protocol import WsOutbound, encode

logger = logging.getLogger(__name__)

ADMINS_CHANNEL = "admins"


class Transport(Protocol):
    """The slice of ``fastapi.WebSocket`` the engine relies on."""

    async def accept(self) -> None: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class RoomRouter:
    def __init__(self) -> None:
        self._transports: dict[ConnectionId, Transport] = {}
        self._members: dict[str, set[ConnectionId]] = {}
        self._channels: dict[ConnectionId, set[str]] = {}

    def attach(self, connection_id: ConnectionId, transport: Transport) -> None:
        self._transports[connection_id] = transport
        self._channels.setdefault(connection_id, set())

    def detach(self, connection_id: ConnectionId) -> None:
        """Drop the transport and leave every channel."""
        self._transports.pop(connection_id, None)
        for channel in self._channels.pop(connection_id, set()):
            self._discard(channel, connection_id)

    def join(self, connection_id: ConnectionId, channel: str) -> None:
        if connection_id not in self._transports:
            logger.debug("Ignoring join of %s by detached %s", channel, connection_id)
            return
        self._members.setdefault(channel, set()).add(connection_id)
        self._channels[connection_id].add(channel)

    def leave(self, connection_id: ConnectionId, channel: str) -> None:
        channels = self._channels.get(connection_id)
        if channels is None or channel not in channels:
            return
        channels.discard(channel)
        self._discard(channel, connection_id)

    def members(self, channel: str) -> frozenset[ConnectionId]:
        return frozenset(self._members.get(channel, ()))

    def channels_of(self, connection_id: ConnectionId) -> frozenset[str]:
        return frozenset(self._channels.get(connection_id, ()))

    async def emit_to_channel(self, channel: str, event: WsOutbound) -> int:
        """Send to every current member. Returns the number of successful deliveries."""
        members = list(self._members.get(channel, ()))
        if not members:
            return 0
        raw = encode(event)
        delivered = 0
        for connection_id in members:
            if await self._send(connection_id, raw):
                delivered += 1
        return delivered

    async def emit_to_connection(self, connection_id: ConnectionId, event: WsOutbound) -> bool:
        return await self._send(connection_id, encode(event))

    async def _send(self, connection_id: ConnectionId, raw: str) -> bool:
        transport = self._transports.get(connection_id)
        if transport is None:
            return False
        try:
            await transport.send_text(raw)
        except Exception:
            # The receive loop of a dead socket performs the cleanup.
            logger.debug("WS send to %s failed", connection_id, exc_info=True)
            return False
        return True

    def _discard(self, channel: str, connection_id: ConnectionId) -> None:
        members = self._members.get(channel)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._members[channel]
