"""Unread aggregates pushed to admins.

Counts are derived on every call and never cached. For an admin, a
conversation's unread count is the number of unread messages sent by its
single client participant; notes from other admins never count. A
conversation without exactly one client participant counts as zero.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from portal_chat.application.dto.unread import ConversationUnread, UnreadTotals
from portal_chat.application.exceptions import UnreadComputationError
from portal_chat.application.uow import UnitOfWork
from portal_chat.domain.entities.user import User

logger = logging.getLogger(__name__)


def sole_client_id(participants: Iterable[User]) -> str | None:
    """Id of the only non-admin participant, or None when there are zero or several."""
    clients = [p.id for p in participants if not p.is_admin]
    return clients[0] if len(clients) == 1 else None


async def count_for_conversation(
    conversation_id: str,
    recipient_id: str,
    uow: UnitOfWork,
) -> int:
    """Unread messages in the conversation as seen by the recipient.

    Admins see the client's unread messages. Anyone else sees every unread
    message they did not send.
    """
    participants = await uow.participants.list_participants(conversation_id)
    recipient = next((p for p in participants if p.id == recipient_id), None)
    if recipient is None:
        recipient = await uow.users.get_by_id(recipient_id)

    if recipient is not None and recipient.is_admin:
        client_id = sole_client_id(participants)
        if client_id is None:
            return 0
        count = await uow.messages.count_unread(conversation_id, sender_id=client_id)
    else:
        count = await uow.messages.count_unread(conversation_id, exclude_sender_id=recipient_id)
    return max(count, 0)


async def totals_for_admin(admin_id: str, uow: UnitOfWork) -> UnreadTotals:
    """Per-conversation breakdown and grand total of client messages the admin has not read.

    Raises UnreadComputationError if any lookup fails.
    """
    try:
        snapshots = await uow.conversations.list_unread_snapshots(admin_id)
    except Exception as exc:
        raise UnreadComputationError(f"Unread totals failed for {admin_id}: {exc}") from exc

    total = 0
    breakdown: list[ConversationUnread] = []
    for snapshot in snapshots:
        client_id = sole_client_id(snapshot.participants)
        if client_id is None:
            logger.debug("Skipping conversation %s: no single client participant", snapshot.conversation_id)
            continue
        unread = sum(1 for m in snapshot.unread_messages if m.sender_id == client_id)
        if unread > 0:
            total += unread
            breakdown.append(ConversationUnread(snapshot.conversation_id, unread))

    return UnreadTotals(total_unread_count=total, conversations=breakdown)
