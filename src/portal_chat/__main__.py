"""Entrypoint: python -m portal_chat"""
from __future__ import annotations

import logging

import uvicorn

from portal_chat.api.middleware.correlation_id import CorrelationIdFilter
from portal_chat.config import settings


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s [%(correlation_id)s]: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(CorrelationIdFilter())


def main() -> None:
    _configure_logging()
    uvicorn.run(
        "portal_chat.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
        log_config=None,
    )


if __name__ == "__main__":
    main()
