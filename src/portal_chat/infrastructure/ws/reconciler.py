"""Periodic unread re-push, a safety net for missed live events."""
from __future__ import annotations

import asyncio
import logging

from portal_chat.infrastructure.ws.engine import PresenceEngine

logger = logging.getLogger(__name__)


class UnreadReconciler:
    """Background task that refreshes the unread totals of every connected admin."""

    def __init__(self, engine: PresenceEngine, interval: float) -> None:
        self._engine = engine
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._interval <= 0:
            logger.info("Unread reconciliation disabled")
            return
        self._task = asyncio.create_task(self._run(), name="unread-reconciler")
        logger.info("Unread reconciler started (interval=%.1fs)", self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Unread reconciler stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                refreshed = await self._engine.reconcile_unread()
                if refreshed:
                    logger.debug("Reconciled unread totals for %d admins", refreshed)
            except Exception:
                logger.exception("Unread reconciliation pass failed")
