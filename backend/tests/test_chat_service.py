"""
S-Network Backend — Chat Service Tests
========================================

What:  Direct conversations, unread tracking, group conversations and the
       group message board.

What we test:
    ✅ messaging permission: public profile or a follow in either direction
    ✅ the same pair always gets the same direct conversation
    ✅ unread counts, mark_read, soft deletion by the sender only
    ✅ direct messages notify the other participant
    ✅ group conversation follows membership; board is members-only
"""

import pytest
from sqlalchemy import select

from snetwork.exceptions import ForbiddenError, NotFoundError, ValidationError
from snetwork.models.notification import Notification
from snetwork.schemas.group import GroupCreateRequest
from snetwork.services.chat_service import chat_service
from snetwork.services.follow_service import follow_service
from snetwork.services.group_service import group_service


class TestDirectConversations:

    @pytest.mark.asyncio
    async def test_permission_rules(self, db_session, make_user):
        alice = await make_user("Alice")
        vault = await make_user("Vera", is_public=False)
        fan = await make_user("Fan")

        assert await chat_service.can_message(db_session, vault, alice)
        assert not await chat_service.can_message(db_session, alice, vault)

        # A follow in either direction opens the channel
        await follow_service.follow(db_session, vault, fan.id)
        assert await chat_service.can_message(db_session, fan, vault)

        with pytest.raises(ForbiddenError):
            await chat_service.get_or_create_direct_conversation(db_session, alice, vault.id)
        with pytest.raises(ValidationError):
            await chat_service.get_or_create_direct_conversation(db_session, alice, alice.id)
        with pytest.raises(NotFoundError):
            await chat_service.get_or_create_direct_conversation(db_session, alice, 999)

    @pytest.mark.asyncio
    async def test_conversation_is_reused_for_the_pair(self, db_session, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        carol = await make_user("Carol")

        first = await chat_service.get_or_create_direct_conversation(db_session, alice, bob.id)
        from_bob = await chat_service.get_or_create_direct_conversation(db_session, bob, alice.id)
        with_carol = await chat_service.get_or_create_direct_conversation(db_session, alice, carol.id)

        assert first.id == from_bob.id
        assert with_carol.id != first.id
        assert {p.id for p in first.participants} == {alice.id, bob.id}

    @pytest.mark.asyncio
    async def test_messages_and_unread_counts(self, db_session, make_user):
        alice = await make_user("Alice", "Smith")
        bob = await make_user("Bob")
        conversation = await chat_service.get_or_create_direct_conversation(db_session, alice, bob.id)

        await chat_service.send_message(db_session, alice, conversation.id, "hi")
        await chat_service.send_message(db_session, alice, conversation.id, "are you there?")

        assert await chat_service.unread_count(db_session, conversation.id, bob.id) == 2
        assert await chat_service.unread_count(db_session, conversation.id, alice.id) == 0

        await chat_service.mark_read(db_session, bob, conversation.id)
        assert await chat_service.unread_count(db_session, conversation.id, bob.id) == 0

        reply = await chat_service.send_message(db_session, bob, conversation.id, "yes")
        messages = await chat_service.list_messages(db_session, alice, conversation.id)
        assert [m.content for m in messages.messages] == ["hi", "are you there?", "yes"]

        listing = await chat_service.list_conversations(db_session, alice)
        assert listing.conversations[0].last_message.id == reply.id
        assert listing.conversations[0].unread_count == 1

        notes = (
            await db_session.execute(
                select(Notification.content).where(
                    Notification.receiver_id == bob.id, Notification.type == "message"
                )
            )
        ).scalars().all()
        assert notes == ["Alice Smith sent you a message"] * 2

    @pytest.mark.asyncio
    async def test_soft_delete_by_sender_only(self, db_session, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        conversation = await chat_service.get_or_create_direct_conversation(db_session, alice, bob.id)
        message = await chat_service.send_message(db_session, alice, conversation.id, "oops")

        with pytest.raises(ForbiddenError):
            await chat_service.delete_message(db_session, bob, conversation.id, message.id)

        await chat_service.delete_message(db_session, alice, conversation.id, message.id)

        assert (await chat_service.list_messages(db_session, bob, conversation.id)).messages == []
        with pytest.raises(NotFoundError):
            await chat_service.delete_message(db_session, alice, conversation.id, message.id)

    @pytest.mark.asyncio
    async def test_outsider_cannot_read(self, db_session, make_user):
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        eve = await make_user("Eve")
        conversation = await chat_service.get_or_create_direct_conversation(db_session, alice, bob.id)

        with pytest.raises(ForbiddenError):
            await chat_service.list_messages(db_session, eve, conversation.id)
        with pytest.raises(ForbiddenError):
            await chat_service.send_message(db_session, eve, conversation.id, "hello")


class TestGroupChat:

    @pytest.mark.asyncio
    async def test_group_conversation_tracks_membership(self, db_session, make_user):
        owner = await make_user("Olga")
        member = await make_user("Mia")
        late = await make_user("Larry")
        group = await group_service.create_group(
            db_session, owner, GroupCreateRequest(name="Runners", member_ids=[member.id])
        )

        conversation = await chat_service.get_or_create_group_conversation(db_session, owner, group.id)
        assert conversation.name == "Runners Chat"
        assert conversation.is_group and conversation.group_id == group.id
        assert {p.id for p in conversation.participants} == {owner.id, member.id}

        await group_service.join_group(db_session, late, group.id)
        again = await chat_service.get_or_create_group_conversation(db_session, late, group.id)
        assert again.id == conversation.id
        assert late.id in {p.id for p in again.participants}

        # Group chats do not create message notifications
        await chat_service.send_message(db_session, late, conversation.id, "hello all")
        assert await db_session.scalar(select(Notification.id).where(Notification.type == "message")) is None

    @pytest.mark.asyncio
    async def test_group_message_board(self, db_session, make_user):
        owner = await make_user("Olga")
        outsider = await make_user("Otto")
        group = await group_service.create_group(db_session, owner, GroupCreateRequest(name="Runners"))

        assert await chat_service.latest_group_message(db_session, owner, group.id) is None

        await chat_service.send_group_message(db_session, owner, group.id, "first")
        last = await chat_service.send_group_message(db_session, owner, group.id, "second")

        board = await chat_service.list_group_messages(db_session, owner, group.id)
        assert [m.content for m in board.messages] == ["first", "second"]
        assert (await chat_service.latest_group_message(db_session, owner, group.id)).id == last.id

        await chat_service.delete_group_message(db_session, owner, group.id, last.id)
        assert (await chat_service.latest_group_message(db_session, owner, group.id)).content == "first"

        with pytest.raises(ForbiddenError):
            await chat_service.list_group_messages(db_session, outsider, group.id)
        with pytest.raises(ValidationError):
            await chat_service.send_group_message(db_session, owner, group.id, "   ")
