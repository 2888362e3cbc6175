from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from portal_chat.api.middleware.metrics import RequestTimingMiddleware
from portal_chat.api.v1.routers import (
    conversations,
    health,
    messages,
    realtime,
    ws,
)
from portal_chat.application.exceptions import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from portal_chat.application.uow import UoWFactory
from portal_chat.config import settings
from portal_chat.infrastructure.db.uow import sqlalchemy_uow
from portal_chat.infrastructure.ws.engine import PresenceEngine
from portal_chat.infrastructure.ws.reconciler import UnreadReconciler
from portal_chat.services import user_service

logger = logging.getLogger(__name__)


async def _seed_admin() -> None:
    """Admin must exist for the handshake and for notifications to resolve."""
    try:
        async with sqlalchemy_uow() as uow:
            await user_service.ensure_admin(
                settings.ADMIN_USER_ID, settings.ADMIN_EMAIL, settings.ADMIN_NAME, uow,
            )
        logger.info("Admin user ensured: %s (%s)", settings.ADMIN_USER_ID, settings.ADMIN_EMAIL)
    except Exception:
        logger.exception("Failed ensuring admin user %s", settings.ADMIN_USER_ID)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    engine: PresenceEngine = app.state.engine
    if settings.SEED_ADMIN:
        await _seed_admin()

    reconciler = UnreadReconciler(engine, settings.UNREAD_RECONCILE_SECONDS)
    await reconciler.start()
    app.state.reconciler = reconciler

    yield

    await reconciler.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app(uow_factory: UoWFactory | None = None) -> FastAPI:
    app = FastAPI(
        title="Portal Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Single engine per process, handed to routes via app.state.
    app.state.engine = PresenceEngine(uow_factory or sqlalchemy_uow)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(realtime.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(AuthenticationError)
    async def _unauthenticated(_req: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(RateLimitedError)
    async def _rate_limited(_req: Request, exc: RateLimitedError) -> JSONResponse:
        return JSONResponse(status_code=429, content={"detail": exc.detail})
