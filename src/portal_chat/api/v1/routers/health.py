from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from portal_chat.api.deps import EngineDep
from portal_chat.infrastructure.db.session import AsyncSessionLocal

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz(engine: EngineDep) -> dict[str, Any]:
    """Liveness plus the number of live WebSocket connections in this process."""
    return {"status": "ok", "connections": len(engine.registry)}


async def _probe_postgres() -> str | None:
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        return f"postgres: {exc}"
    return None


async def _probe_redis(request: Request) -> str | None:
    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        return "redis: not configured"
    try:
        await redis.ping()
    except Exception as exc:  # noqa: BLE001
        return f"redis: {exc}"
    return None


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    errors = [e for e in (await _probe_postgres(), await _probe_redis(request)) if e]
    if errors:
        return JSONResponse(status_code=503, content={"status": "unavailable", "errors": errors})
    return JSONResponse(content={"status": "ready"})
