from __future__ import annotations

import pytest

from portal_chat.application.exceptions import UnreadComputationError
from portal_chat.domain.value_objects.enums import Role
from portal_chat.services import unread_service
from tests.conftest import FakeUoW


@pytest.mark.asyncio
async def test_count_excludes_recipients_own_messages(portal):
    portal.add_message("conv-1", "client-1")
    portal.add_message("conv-1", "client-1")
    portal.add_message("conv-1", "admin-1")
    uow = FakeUoW(portal)

    assert await unread_service.count_for_conversation("conv-1", "admin-1", uow) == 2
    assert await unread_service.count_for_conversation("conv-1", "client-1", uow) == 1


@pytest.mark.asyncio
async def test_count_ignores_read_messages(portal):
    portal.add_message("conv-1", "client-1", read=True)
    portal.add_message("conv-1", "client-1")

    assert await unread_service.count_for_conversation("conv-1", "admin-1", FakeUoW(portal)) == 1


@pytest.mark.asyncio
async def test_totals_with_nothing_unread(portal):
    totals = await unread_service.totals_for_admin("admin-1", FakeUoW(portal))

    assert totals.total_unread_count == 0
    assert totals.conversations == []


@pytest.mark.asyncio
async def test_totals_break_down_per_conversation(portal):
    portal.add_user("client-2", Role.CLIENT)
    portal.add_conversation("conv-2", "client-2", "admin-1")
    portal.add_message("conv-1", "client-1")
    portal.add_message("conv-2", "client-2")
    portal.add_message("conv-2", "client-2")
    portal.add_message("conv-2", "admin-1")

    totals = await unread_service.totals_for_admin("admin-1", FakeUoW(portal))

    assert totals.total_unread_count == 3
    by_conv = {c.conversation_id: c.unread_count for c in totals.conversations}
    assert by_conv == {"conv-1": 1, "conv-2": 2}


@pytest.mark.asyncio
async def test_totals_equal_sum_of_per_conversation_counts(portal):
    portal.add_user("client-2", Role.CLIENT)
    portal.add_conversation("conv-2", "client-2", "admin-1")
    for sender in ["client-1", "client-2", "client-2", "admin-1", "client-1"]:
        portal.add_message("conv-1" if sender == "client-1" else "conv-2", sender)
    uow = FakeUoW(portal)

    totals = await unread_service.totals_for_admin("admin-1", uow)
    per_conv = [
        await unread_service.count_for_conversation(cid, "admin-1", uow)
        for cid in ("conv-1", "conv-2")
    ]

    assert totals.total_unread_count == sum(per_conv)
    assert totals.total_unread_count == sum(c.unread_count for c in totals.conversations)


@pytest.mark.asyncio
async def test_totals_skip_conversations_without_a_single_client(portal):
    portal.add_user("admin-2", Role.ADMIN)
    portal.add_conversation("staff", "admin-1", "admin-2")
    portal.add_message("staff", "admin-2")

    totals = await unread_service.totals_for_admin("admin-1", FakeUoW(portal))

    assert totals.total_unread_count == 0
    assert await unread_service.count_for_conversation("staff", "admin-1", FakeUoW(portal)) == 0
    assert await unread_service.count_for_conversation("staff", "admin-1", FakeUoW(portal)) == 0


@pytest.mark.asyncio
async def test_totals_failure_is_wrapped(portal):
    portal.failing.add("list_unread_snapshots")

    with pytest.raises(UnreadComputationError):
        await unread_service.totals_for_admin("admin-1", FakeUoW(portal))


@pytest.fixture
def two_admins(portal):
    portal.add_user("admin-2", Role.ADMIN)
    portal.participants["conv-1"].append("admin-2")
    return portal


@pytest.mark.asyncio
async def test_count_for_admin_ignores_other_admins_notes(two_admins):
    two_admins.add_message("conv-1", "admin-2", "note")
    two_admins.add_message("conv-1", "client-1")
    uow = FakeUoW(two_admins)

    assert await unread_service.count_for_conversation("conv-1", "admin-1", uow) == 1
    assert await unread_service.count_for_conversation("conv-1", "client-1", uow) == 1


@pytest.mark.asyncio
async def test_totals_match_counts_with_several_admins(two_admins):
    two_admins.add_user("admin-3", Role.ADMIN)
    two_admins.add_conversation("staff", "admin-1", "admin-3")
    for conv, sender in [
        ("conv-1", "admin-2"), ("conv-1", "client-1"), ("conv-1", "client-1"), ("staff", "admin-3"),
    ]:
        two_admins.add_message(conv, sender)
    uow = FakeUoW(two_admins)

    for admin_id, conversations in [("admin-1", ["conv-1", "staff"]), ("admin-2", ["conv-1"])]:
        totals = await unread_service.totals_for_admin(admin_id, uow)
        per_conv = [
            await unread_service.count_for_conversation(cid, admin_id, uow) for cid in conversations
        ]
        assert totals.total_unread_count == sum(per_conv) == 2


@pytest.mark.asyncio
async def test_count_for_admin_outside_conversation(portal):
    portal.add_user("admin-9", Role.ADMIN)
    portal.add_message("conv-1", "client-1")

    assert await unread_service.count_for_conversation("conv-1", "admin-9", FakeUoW(portal)) == 1
