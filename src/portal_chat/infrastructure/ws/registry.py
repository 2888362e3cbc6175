"""Live connections per identity, plus the reverse lookup."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from portal_chat.application.dto.principal import Principal
from portal_chat.domain.value_objects.enums import ConnectionState, Role
from portal_chat.domain.value_objects.ids import ConnectionId, UserId

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Connection:
    id: ConnectionId
    principal: Principal
    state: ConnectionState = ConnectionState.AUTHENTICATED

    @property
    def user_id(self) -> UserId:
        return UserId(self.principal.user_id)

    @property
    def role(self) -> Role:
        return self.principal.role


@dataclass
class ConnectionRegistry:
    """Mutated only from the event loop; no locking."""

    _by_user: dict[UserId, set[ConnectionId]] = field(default_factory=dict)
    _by_connection: dict[ConnectionId, Connection] = field(default_factory=dict)

    def register(self, connection_id: ConnectionId, principal: Principal) -> Connection:
        previous = self._by_connection.get(connection_id)
        if previous is not None:
            self._forget(previous)
        connection = Connection(id=connection_id, principal=principal)
        self._by_connection[connection_id] = connection
        self._by_user.setdefault(connection.user_id, set()).add(connection_id)
        logger.debug(
            "Registered %s for %s (%s), %d live",
            connection_id, principal.user_id, principal.role, len(self._by_connection),
        )
        return connection

    def unregister(self, connection_id: ConnectionId) -> Connection | None:
        connection = self._by_connection.pop(connection_id, None)
        if connection is None:
            return None
        self._forget(connection)
        connection.state = ConnectionState.DISCONNECTED
        return connection

    def get(self, connection_id: ConnectionId) -> Connection | None:
        return self._by_connection.get(connection_id)

    def connections_for(self, user_id: str) -> frozenset[ConnectionId]:
        return frozenset(self._by_user.get(UserId(user_id), ()))

    def online_user_ids(self, role: Role | None = None) -> list[UserId]:
        if role is None:
            return list(self._by_user)
        return [
            uid for uid, conns in self._by_user.items()
            if any(self._by_connection[c].role == role for c in conns)
        ]

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._by_connection

    def __len__(self) -> int:
        return len(self._by_connection)

    def _forget(self, connection: Connection) -> None:
        conns = self._by_user.get(connection.user_id)
        if conns is None:
            return
        conns.discard(connection.id)
        if not conns:
            del self._by_user[connection.user_id]
