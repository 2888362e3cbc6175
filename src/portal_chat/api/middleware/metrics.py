"""Request timing: one log line per request plus a ``Server-Timing`` header."""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Probes are polled constantly; keep them out of INFO logs.
_QUIET_PATHS = frozenset({"/healthz", "/readyz"})


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["Server-Timing"] = f"app;dur={elapsed_ms:.1f}"

        path = request.url.path
        logger.log(
            logging.DEBUG if path in _QUIET_PATHS else logging.INFO,
            "%s %s -> %d in %.1fms",
            request.method, path, response.status_code, elapsed_ms,
        )
        return response
