"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, Request

from portal_chat.application.exceptions import RateLimitedError
from portal_chat.application.ports.rate_limit import RateLimiter
from portal_chat.config import settings
from portal_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from portal_chat.infrastructure.db.session import AsyncSessionLocal
from portal_chat.infrastructure.db.uow import SqlAlchemyUoW
from portal_chat.infrastructure.ratelimit.redis_limiter import RedisRateLimiter
from portal_chat.infrastructure.ws.engine import PresenceEngine


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def get_engine(request: Request) -> PresenceEngine:
    """The engine built by create_app; the HTTP layer reaches the realtime core only through this."""
    return request.app.state.engine


EngineDep = Annotated[PresenceEngine, Depends(get_engine)]


def get_verifier() -> HS256Verifier | None:
    """None when realtime tokens are disabled (no JWT_SECRET)."""
    if not settings.JWT_SECRET:
        return None
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_TTL_SECONDS)


def get_rate_limiter(request: Request) -> RateLimiter:
    return RedisRateLimiter(
        request.app.state.redis,
        settings.RATE_LIMIT_MAX,
        settings.RATE_LIMIT_WINDOW_SECONDS,
        prefix=settings.RATE_LIMIT_PREFIX,
    )


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip") or ""
    key = forwarded.split(",")[0].strip()
    if key:
        return key
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
    if not await limiter.hit(client_key(request)):
        raise RateLimitedError("Too many requests")


RateLimited = Depends(enforce_rate_limit)
