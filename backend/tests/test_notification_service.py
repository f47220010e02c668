"""
S-Network Backend — Notification Service Tests
================================================

What:  The merged notification listing and read/delete bookkeeping.

The listing mixes stored rows with synthetic "follow_request" items built
from pending follow requests, so most tests pin created_at values to make
the merge order deterministic.

What we test:
    ✅ synthetic items appear, newest first, and count as unread
    ✅ a stored follow_request row hides its synthetic twin, however old
    ✅ type filter and offset/limit apply to the merged list
    ✅ mark_as_read affects later reads, not the returned page
    ✅ receivers can only touch their own notifications
"""

from datetime import datetime

import pytest

from snetwork.exceptions import NotFoundError
from snetwork.models.follow import FollowRequest
from snetwork.services.follow_service import follow_service
from snetwork.services.notification_service import notification_service


async def pending_request(db, requester, target, created_at):
    result = await follow_service.follow(db, requester, target.id)
    request = await db.get(FollowRequest, result.request_id)
    request.created_at = created_at
    await db.flush()
    return request


async def system_note(db, receiver, content, created_at):
    note = await notification_service.notify_system(db, receiver.id, content)
    note.created_at = created_at
    await db.flush()
    return note


class TestMergedListing:

    @pytest.mark.asyncio
    async def test_synthetic_requests_merge_by_date(self, db_session, make_user):
        vault = await make_user("Vera", is_public=False)
        alice = await make_user("Alice", "Smith")
        await system_note(db_session, vault, "Welcome aboard", datetime(2024, 1, 1, 9, 0))
        request = await pending_request(db_session, alice, vault, datetime(2024, 1, 2, 9, 0))
        await system_note(db_session, vault, "Maintenance tonight", datetime(2024, 1, 3, 9, 0))

        listing = await notification_service.list_notifications(db_session, vault.id)

        assert [n.type for n in listing.notifications] == ["system", "follow_request", "system"]
        synthetic = listing.notifications[1]
        assert synthetic.id is None
        assert synthetic.reference_id == request.id
        assert synthetic.content == "Alice Smith wants to follow you"
        assert synthetic.sender.id == alice.id
        assert listing.unread_count == 3
        assert listing.total == 3

    @pytest.mark.asyncio
    async def test_stored_request_notification_hides_synthetic(self, db_session, make_user):
        vault = await make_user("Vera", is_public=False)
        alice = await make_user("Alice")
        request = await pending_request(db_session, alice, vault, datetime(2024, 1, 2))
        await notification_service.create(
            db_session,
            receiver_id=vault.id,
            type="follow_request",
            content="Alice User wants to follow you",
            sender_id=alice.id,
            reference_id=request.id,
        )

        listing = await notification_service.list_notifications(db_session, vault.id)

        assert len(listing.notifications) == 1
        assert listing.notifications[0].id is not None

    @pytest.mark.asyncio
    async def test_old_stored_request_notification_still_hides_synthetic(self, db_session, make_user):
        vault = await make_user("Vera", is_public=False)
        alice = await make_user("Alice")
        request = await pending_request(db_session, alice, vault, datetime(2024, 1, 4))
        stored = await notification_service.create(
            db_session,
            receiver_id=vault.id,
            type="follow_request",
            content="Alice User wants to follow you",
            sender_id=alice.id,
            reference_id=request.id,
        )
        stored.created_at = datetime(2024, 1, 1)
        await system_note(db_session, vault, "second", datetime(2024, 1, 2))
        await system_note(db_session, vault, "third", datetime(2024, 1, 3))

        first_page = await notification_service.list_notifications(db_session, vault.id, limit=2)
        everything = await notification_service.list_notifications(db_session, vault.id)

        assert [n.content for n in first_page.notifications] == ["third", "second"]
        assert [(n.type, n.id is None) for n in everything.notifications] == [
            ("system", False),
            ("system", False),
            ("follow_request", False),
        ]

    @pytest.mark.asyncio
    async def test_type_filter(self, db_session, make_user):
        vault = await make_user("Vera", is_public=False)
        alice = await make_user("Alice")
        await pending_request(db_session, alice, vault, datetime(2024, 1, 2))
        await system_note(db_session, vault, "Hello", datetime(2024, 1, 1))

        only_system = await notification_service.list_notifications(db_session, vault.id, type_filter="system")
        only_requests = await notification_service.list_notifications(
            db_session, vault.id, type_filter="follow_request"
        )

        assert [n.content for n in only_system.notifications] == ["Hello"]
        assert [n.type for n in only_requests.notifications] == ["follow_request"]

    @pytest.mark.asyncio
    async def test_offset_and_limit_apply_after_merge(self, db_session, make_user):
        vault = await make_user("Vera", is_public=False)
        requesters = [await make_user(f"Req{i}") for i in range(2)]
        await system_note(db_session, vault, "oldest", datetime(2024, 1, 1))
        await pending_request(db_session, requesters[0], vault, datetime(2024, 1, 2))
        await system_note(db_session, vault, "middle", datetime(2024, 1, 3))
        await pending_request(db_session, requesters[1], vault, datetime(2024, 1, 4))

        page = await notification_service.list_notifications(db_session, vault.id, limit=2, offset=1)

        assert [n.created_at for n in page.notifications] == [datetime(2024, 1, 3), datetime(2024, 1, 2)]
        assert (page.limit, page.offset, page.total) == (2, 1, 2)


class TestReadState:

    @pytest.mark.asyncio
    async def test_mark_as_read_on_listing(self, db_session, make_user):
        vault = await make_user("Vera", is_public=False)
        alice = await make_user("Alice")
        await system_note(db_session, vault, "Hello", datetime(2024, 1, 1))
        await pending_request(db_session, alice, vault, datetime(2024, 1, 2))

        listing = await notification_service.list_notifications(db_session, vault.id, mark_as_read=True)

        stored = [n for n in listing.notifications if n.id is not None]
        assert stored[0].is_read is False
        # Pending follow requests stay unread until answered
        assert listing.unread_count == 1
        assert await notification_service.unread_count(db_session, vault.id) == 1

    @pytest.mark.asyncio
    async def test_mark_one_and_all(self, db_session, make_user):
        user = await make_user("Ada")
        first = await notification_service.notify_system(db_session, user.id, "one")
        await notification_service.notify_system(db_session, user.id, "two")
        await notification_service.notify_system(db_session, user.id, "three")

        await notification_service.mark_read(db_session, user.id, first.id)
        assert await notification_service.unread_count(db_session, user.id) == 2

        assert await notification_service.mark_all_read(db_session, user.id) == 2
        assert await notification_service.unread_count(db_session, user.id) == 0

    @pytest.mark.asyncio
    async def test_foreign_notification_reported_missing(self, db_session, make_user):
        owner = await make_user("Ada")
        other = await make_user("Bob")
        note = await notification_service.notify_system(db_session, owner.id, "private")

        with pytest.raises(NotFoundError):
            await notification_service.mark_read(db_session, other.id, note.id)
        with pytest.raises(NotFoundError):
            await notification_service.delete(db_session, other.id, note.id)


class TestDeletion:

    @pytest.mark.asyncio
    async def test_delete_one_and_all(self, db_session, make_user):
        user = await make_user("Ada")
        other = await make_user("Bob")
        notes = [await notification_service.notify_system(db_session, user.id, f"n{i}") for i in range(3)]
        await notification_service.notify_system(db_session, other.id, "keep me")

        await notification_service.delete(db_session, user.id, notes[0].id)
        removed = await notification_service.delete_all(db_session, user.id)

        assert removed == 2
        remaining = await notification_service.list_notifications(db_session, other.id)
        assert [n.content for n in remaining.notifications] == ["keep me"]
