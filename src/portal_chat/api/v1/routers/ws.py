from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from portal_chat.api.deps import get_verifier
from portal_chat.application.exceptions import AuthenticationError
from portal_chat.application.ports.auth import TokenVerifier
from portal_chat.config import settings
from portal_chat.domain.value_objects.ids import ConnectionId
from portal_chat.infrastructure.ws.engine import CLOSE_UNKNOWN_IDENTITY, PresenceEngine

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


async def _claimed_identity(token: str | None, user_id: str | None) -> str | None:
    """With a JWT secret configured only a valid token is accepted; otherwise ?user_id= is trusted."""
    verifier: TokenVerifier | None = get_verifier()
    if verifier is None:
        return user_id or None
    if not token:
        return None
    try:
        return await verifier.verify(token)
    except AuthenticationError:
        logger.debug("WS auth failed", exc_info=True)
        return None


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str | None = Query(None),
    user_id: str | None = Query(None),
) -> None:
    engine: PresenceEngine = websocket.app.state.engine

    claimed = await _claimed_identity(token, user_id)
    if claimed is None:
        await websocket.close(code=CLOSE_UNKNOWN_IDENTITY, reason="Authentication failed")
        return

    connection = await engine.connect(websocket, claimed)
    if connection is None:
        return

    heartbeat_task = asyncio.create_task(
        _heartbeat(engine, connection.id), name=f"ws-heartbeat-{connection.id}",
    )
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # Text and binary frames share the parser; bad input yields an error event.
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await engine.dispatch(connection.id, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", connection.user_id)
    finally:
        heartbeat_task.cancel()
        engine.disconnect(connection.id)


async def _heartbeat(engine: PresenceEngine, connection_id: ConnectionId) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    if interval <= 0:
        return
    try:
        while True:
            await asyncio.sleep(interval)
            await engine.heartbeat(connection_id)
    except asyncio.CancelledError:
        pass
