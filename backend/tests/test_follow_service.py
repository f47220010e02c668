"""
S-Network Backend — Follow Service Tests
==========================================

What:  Direct follows, follow requests to private profiles, and the profile
       visibility that depends on them.

What we test:
    ✅ public target → follower row + "follow" notification
    ✅ private target → pending request, accept / reject / cancel
    ✅ self-follow, duplicate follow and foreign requests are rejected
    ✅ going public auto-approves every pending request
    ✅ private profile details hidden from non-followers
"""

import pytest
from sqlalchemy import select

from snetwork.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from snetwork.models.follow import FollowRequest
from snetwork.models.notification import Notification
from snetwork.schemas.user import ProfileUpdateRequest
from snetwork.services.follow_service import follow_service
from snetwork.services.user_service import user_service


class TestDirectFollow:

    @pytest.mark.asyncio
    async def test_follow_public_profile(self, db_session, make_user):
        alice = await make_user("Alice", "Smith")
        bob = await make_user("Bob", "Jones")

        result = await follow_service.follow(db_session, alice, bob.id)

        assert result.status == "followed"
        assert result.request_id is None
        assert await follow_service.is_following(db_session, alice.id, bob.id)
        assert await follow_service.follower_count(db_session, bob.id) == 1
        assert await follow_service.following_count(db_session, alice.id) == 1

        note = await db_session.scalar(select(Notification).where(Notification.receiver_id == bob.id))
        assert note.type == "follow"
        assert note.content == "Alice Smith started following you"
        assert note.reference_id == alice.id

    @pytest.mark.asyncio
    async def test_invalid_follows(self, db_session, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        await follow_service.follow(db_session, alice, bob.id)

        with pytest.raises(ValidationError):
            await follow_service.follow(db_session, alice, alice.id)
        with pytest.raises(ConflictError):
            await follow_service.follow(db_session, alice, bob.id)
        with pytest.raises(NotFoundError):
            await follow_service.follow(db_session, alice, 9999)

    @pytest.mark.asyncio
    async def test_unfollow_and_remove_follower(self, db_session, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        await follow_service.follow(db_session, alice, bob.id)
        await follow_service.follow(db_session, bob, alice.id)

        await follow_service.unfollow(db_session, alice, bob.id)
        await follow_service.remove_follower(db_session, alice, bob.id)

        assert not await follow_service.is_following(db_session, alice.id, bob.id)
        assert not await follow_service.is_following(db_session, bob.id, alice.id)
        with pytest.raises(NotFoundError):
            await follow_service.unfollow(db_session, alice, bob.id)

    @pytest.mark.asyncio
    async def test_follower_lists(self, db_session, make_user):
        star = await make_user("Star")
        fans = [await make_user(f"Fan{i}") for i in range(2)]
        for fan in fans:
            await follow_service.follow(db_session, fan, star.id)

        followers = await follow_service.list_followers(db_session, star.id)
        following = await follow_service.list_following(db_session, fans[0].id)

        assert followers.count == 2
        assert {u.id for u in followers.users} == {f.id for f in fans}
        assert [u.id for u in following.users] == [star.id]
        with pytest.raises(NotFoundError):
            await follow_service.list_followers(db_session, 4242)


class TestFollowRequests:

    @pytest.mark.asyncio
    async def test_request_then_accept(self, db_session, make_user):
        alice = await make_user("Alice")
        vault = await make_user("Vera", "Vault", is_public=False)

        result = await follow_service.follow(db_session, alice, vault.id)
        assert result.status == "request_sent"
        assert result.request_id is not None

        status = await follow_service.get_status(db_session, alice.id, vault.id)
        assert (status.is_following, status.follow_request_sent) == (False, True)

        incoming = await follow_service.list_incoming_requests(db_session, vault)
        assert [r.requester.id for r in incoming.requests] == [alice.id]

        await follow_service.accept_request(db_session, vault, result.request_id)

        assert await follow_service.is_following(db_session, alice.id, vault.id)
        assert await db_session.get(FollowRequest, result.request_id) is None
        accepted = await db_session.scalar(
            select(Notification).where(
                Notification.receiver_id == alice.id, Notification.type == "follow_accepted"
            )
        )
        assert accepted.content == "Vera Vault accepted your follow request"

    @pytest.mark.asyncio
    async def test_request_answered_by_someone_else(self, db_session, make_user):
        alice = await make_user("Alice")
        vault = await make_user("Vera", is_public=False)
        intruder = await make_user("Ivan")
        result = await follow_service.follow(db_session, alice, vault.id)

        with pytest.raises(ForbiddenError):
            await follow_service.accept_request(db_session, intruder, result.request_id)
        with pytest.raises(NotFoundError):
            await follow_service.reject_request(db_session, vault, result.request_id + 50)

    @pytest.mark.asyncio
    async def test_reject_and_cancel(self, db_session, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        vault = await make_user("Vera", is_public=False)
        first = await follow_service.follow(db_session, alice, vault.id)
        await follow_service.follow(db_session, bob, vault.id)

        await follow_service.reject_request(db_session, vault, first.request_id)
        await follow_service.cancel_request(db_session, bob, vault.id)

        assert not await follow_service.request_exists(db_session, alice.id, vault.id)
        assert not await follow_service.request_exists(db_session, bob.id, vault.id)
        with pytest.raises(NotFoundError):
            await follow_service.cancel_request(db_session, bob, vault.id)

    @pytest.mark.asyncio
    async def test_going_public_approves_pending_requests(self, db_session, make_user):
        vault = await make_user("Vera", is_public=False)
        fans = [await make_user(f"Fan{i}") for i in range(3)]
        for fan in fans:
            await follow_service.follow(db_session, fan, vault.id)

        updated = await user_service.update_profile(db_session, vault, ProfileUpdateRequest(is_public=True))

        assert updated.is_public is True
        assert updated.follower_count == 3
        assert (await follow_service.list_incoming_requests(db_session, vault)).requests == []


class TestProfileVisibility:

    @pytest.mark.asyncio
    async def test_private_details_need_a_follow(self, db_session, make_user):
        viewer = await make_user("Alice")
        vault = await make_user("Vera", is_public=False, about_me="secret life")

        hidden = await user_service.get_profile(db_session, viewer, vault.id)
        assert hidden.can_view_details is False
        assert hidden.email is None and hidden.about_me is None

        request = await follow_service.follow(db_session, viewer, vault.id)
        pending = await user_service.get_profile(db_session, viewer, vault.id)
        assert pending.follow_request_sent is True

        await follow_service.accept_request(db_session, vault, request.request_id)
        shown = await user_service.get_profile(db_session, viewer, vault.id)
        assert shown.can_view_details is True
        assert shown.about_me == "secret life"

    @pytest.mark.asyncio
    async def test_own_profile_is_always_visible(self, db_session, make_user):
        vault = await make_user("Vera", is_public=False)
        profile = await user_service.get_profile(db_session, vault, vault.id)
        assert profile.is_own_profile and profile.can_view_details
