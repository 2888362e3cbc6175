from __future__ import annotations

from portal_chat.application.uow import UnitOfWork


async def mark_read(
    conversation_id: str,
    reader_id: str,
    uow: UnitOfWork,
) -> int:
    """Mark everything the reader did not send as read. Returns the number of messages flipped."""
    count = await uow.messages_w.mark_read(conversation_id, exclude_sender_id=reader_id)
    await uow.commit()
    return count
