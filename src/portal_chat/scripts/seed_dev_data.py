"""Create the schema and seed development data: the admin, one client and a short thread."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from portal_chat.application.dto.principal import Principal
from portal_chat.application.uow import UnitOfWork
from portal_chat.config import settings
from portal_chat.domain.entities.conversation import Conversation
from portal_chat.infrastructure.db import models  # noqa: F401
from portal_chat.infrastructure.db.base import Base
from portal_chat.infrastructure.db.session import engine
from portal_chat.infrastructure.db.uow import sqlalchemy_uow
from portal_chat.services import conversation_service, message_service, user_service

logger = logging.getLogger(__name__)

DEMO_CLIENT_ID = "demo-client"

DEMO_THREAD = [
    ("client", "Hi! I have a question about my invoice."),
    ("admin", "Hello! Which invoice number?"),
    ("client", "INV-1042"),
]


async def seed_demo(uow: UnitOfWork, *, now: datetime | None = None) -> Conversation:
    """Ensure the admin and demo client exist and share a conversation with a few messages.

    Messages are only added when the conversation is new.
    """
    admin = await user_service.ensure_admin(
        settings.ADMIN_USER_ID, settings.ADMIN_EMAIL, settings.ADMIN_NAME, uow,
    )
    client = await user_service.ensure_user(DEMO_CLIENT_ID, uow, name="Demo Client")
    conv, created = await conversation_service.get_or_create_conversation(client.id, admin.id, uow)
    if not created:
        logger.info("Conversation %s already seeded", conv.id)
        return conv

    senders = {"admin": Principal.from_user(admin), "client": Principal.from_user(client)}
    start = now or datetime.now(timezone.utc)
    for i, (who, content) in enumerate(DEMO_THREAD):
        await message_service.send_message(
            conv.id, senders[who], content, uow, now=start + timedelta(seconds=i),
        )
    logger.info("Seeded conversation %s with %d messages", conv.id, len(DEMO_THREAD))
    return conv


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ready")

    async with sqlalchemy_uow() as uow:
        await seed_demo(uow)
    await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
