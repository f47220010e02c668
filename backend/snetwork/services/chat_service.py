"""
S-Network Backend — Chat Service
==================================

What:  Direct conversations, the per-group conversation, and the flat
       group message board.
Who:   Chat routes; GroupService calls add/remove_group_participant so the
       group conversation follows membership changes.

Conversation kinds:
    direct  → is_group = false, exactly two participants, found again by
              participant set rather than by name
    group   → is_group = true, group_id set (UNIQUE), named "<group> Chat",
              participants mirror group_members

Unread messages for a participant:
    id > last_read_message_id (every message when NULL)
    AND NOT is_deleted AND sender_id != participant
"""

import logging
from typing import Optional

from sqlalchemy import and_, case, delete, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import utcnow
from snetwork.exceptions import ForbiddenError, NotFoundError, ValidationError
from snetwork.models.chat import ChatConversation, ChatMessage, ChatParticipant, GroupMessage
from snetwork.models.follow import Follower
from snetwork.models.group import Group, GroupMember
from snetwork.models.user import User
from snetwork.schemas.chat import (
    ChatMessageListResponse,
    ChatMessageResponse,
    ConversationListResponse,
    ConversationResponse,
    GroupMessageListResponse,
    GroupMessageResponse,
)
from snetwork.services.base import require_text, translate_db_errors, user_summary
from snetwork.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class ChatService:
    """
    Business logic for chat.

    Responsibilities:
        - can_message(): messaging permission between two users
        - direct and group conversations, their messages and read markers
        - the group message board (group_messages)
    """

    # ── Permissions ───────────────────────────────────────────────────────

    async def can_message(self, db: AsyncSession, sender: User, recipient: User) -> bool:
        """Recipient's profile is public, or either user follows the other."""
        if recipient.is_public:
            return True
        edge = await db.scalar(
            select(Follower.follower_id).where(
                or_(
                    and_(Follower.follower_id == sender.id, Follower.following_id == recipient.id),
                    and_(Follower.follower_id == recipient.id, Follower.following_id == sender.id),
                )
            ).limit(1)
        )
        return edge is not None

    # ── Direct conversations ──────────────────────────────────────────────

    async def get_or_create_direct_conversation(
        self, db: AsyncSession, viewer: User, other_id: int
    ) -> ConversationResponse:
        """
        Raises:
            ValidationError: conversation with yourself
            NotFoundError: unknown user
            ForbiddenError: messaging not allowed between the two users
        """
        if other_id == viewer.id:
            raise ValidationError(message="You cannot start a conversation with yourself", field="user_id")
        other = await db.get(User, other_id)
        if other is None:
            raise NotFoundError(resource="user", resource_id=other_id)
        if not await self.can_message(db, viewer, other):
            raise ForbiddenError(
                message="You can only message public profiles or people you follow or who follow you",
                context={"user_id": other_id},
            )

        conversation_id = await self._find_direct_conversation(db, viewer.id, other_id)
        if conversation_id is not None:
            conversation = await db.get(ChatConversation, conversation_id)
        else:
            with translate_db_errors("start the conversation", user_id=viewer.id, other_id=other_id):
                conversation = ChatConversation(is_group=False)
                db.add(conversation)
                await db.flush()
                db.add(ChatParticipant(conversation_id=conversation.id, user_id=viewer.id))
                db.add(ChatParticipant(conversation_id=conversation.id, user_id=other_id))
                await db.flush()
            logger.info("Conversation %s created between users %s and %s", conversation.id, viewer.id, other_id)

        return await self._to_response(db, conversation, viewer.id)

    async def list_conversations(self, db: AsyncSession, viewer: User) -> ConversationListResponse:
        result = await db.execute(
            select(ChatConversation)
            .join(ChatParticipant, ChatParticipant.conversation_id == ChatConversation.id)
            .where(ChatParticipant.user_id == viewer.id)
            .order_by(desc(ChatConversation.updated_at), desc(ChatConversation.id))
        )
        return ConversationListResponse(
            conversations=[
                await self._to_response(db, conversation, viewer.id)
                for conversation in result.scalars().all()
            ]
        )

    async def get_conversation(self, db: AsyncSession, viewer: User, conversation_id: int) -> ConversationResponse:
        conversation, _ = await self._require_participant(db, viewer.id, conversation_id)
        return await self._to_response(db, conversation, viewer.id)

    # ── Messages ──────────────────────────────────────────────────────────

    async def list_messages(
        self, db: AsyncSession, viewer: User, conversation_id: int, limit: int = 50, offset: int = 0
    ) -> ChatMessageListResponse:
        await self._require_participant(db, viewer.id, conversation_id)
        result = await db.execute(
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation_id, ChatMessage.is_deleted.is_(False))
            .order_by(ChatMessage.id)
            .offset(offset)
            .limit(limit)
        )
        return ChatMessageListResponse(
            messages=[self._message_response(m) for m in result.scalars().all()],
            limit=limit,
            offset=offset,
        )

    async def send_message(
        self, db: AsyncSession, viewer: User, conversation_id: int, content: str
    ) -> ChatMessageResponse:
        """
        Store a message, bump the conversation, and mark it read for the
        sender. Direct conversations notify the other participant.
        """
        conversation, participant = await self._require_participant(db, viewer.id, conversation_id)
        text = require_text(content, "content", message="Message content is required")

        with translate_db_errors("send the message", conversation_id=conversation_id):
            message = ChatMessage(conversation_id=conversation_id, sender_id=viewer.id, content=text)
            db.add(message)
            await db.flush()
            conversation.updated_at = utcnow()
            participant.last_read_message_id = message.id
            await db.flush()
            await db.refresh(message)

            if not conversation.is_group:
                recipients = await db.execute(
                    select(ChatParticipant.user_id).where(
                        ChatParticipant.conversation_id == conversation_id,
                        ChatParticipant.user_id != viewer.id,
                    )
                )
                for recipient_id in recipients.scalars().all():
                    await notification_service.notify_message(db, recipient_id, viewer, conversation_id)

        logger.debug("Message %s sent to conversation %s", message.id, conversation_id)
        return self._message_response(message)

    async def delete_message(
        self, db: AsyncSession, viewer: User, conversation_id: int, message_id: int
    ) -> None:
        await self._require_participant(db, viewer.id, conversation_id)
        message = await db.get(ChatMessage, message_id)
        if message is None or message.conversation_id != conversation_id or message.is_deleted:
            raise NotFoundError(resource="message", resource_id=message_id)
        if message.sender_id != viewer.id:
            raise ForbiddenError(message="You can only delete your own messages", context={"message_id": message_id})
        message.is_deleted = True
        await db.flush()

    async def mark_read(self, db: AsyncSession, viewer: User, conversation_id: int) -> None:
        _, participant = await self._require_participant(db, viewer.id, conversation_id)
        newest = await db.scalar(
            select(func.max(ChatMessage.id)).where(ChatMessage.conversation_id == conversation_id)
        )
        if newest is not None:
            participant.last_read_message_id = newest
            await db.flush()

    async def unread_count(self, db: AsyncSession, conversation_id: int, user_id: int) -> int:
        participant = await db.get(ChatParticipant, (conversation_id, user_id))
        if participant is None:
            return 0
        query = select(func.count(ChatMessage.id)).where(
            ChatMessage.conversation_id == conversation_id,
            ChatMessage.is_deleted.is_(False),
            ChatMessage.sender_id != user_id,
        )
        if participant.last_read_message_id is not None:
            query = query.where(ChatMessage.id > participant.last_read_message_id)
        return int(await db.scalar(query) or 0)

    # ── Group conversation ────────────────────────────────────────────────

    async def get_or_create_group_conversation(
        self, db: AsyncSession, viewer: User, group_id: int
    ) -> ConversationResponse:
        group = await self._require_group_member(db, viewer.id, group_id)
        conversation = await db.scalar(
            select(ChatConversation).where(ChatConversation.group_id == group_id)
        )
        if conversation is None:
            with translate_db_errors("create the group conversation", group_id=group_id):
                conversation = ChatConversation(name=f"{group.name} Chat", is_group=True, group_id=group_id)
                db.add(conversation)
                await db.flush()
                members = await db.execute(
                    select(GroupMember.user_id).where(GroupMember.group_id == group_id)
                )
                for user_id in members.scalars().all():
                    db.add(ChatParticipant(conversation_id=conversation.id, user_id=user_id))
                await db.flush()
            logger.info("Group conversation %s created for group %s", conversation.id, group_id)
        return await self._to_response(db, conversation, viewer.id)

    async def add_group_participant(self, db: AsyncSession, group_id: int, user_id: int) -> None:
        """Add a new group member to the group conversation, if one exists."""
        conversation_id = await db.scalar(
            select(ChatConversation.id).where(ChatConversation.group_id == group_id)
        )
        if conversation_id is None:
            return
        if await db.get(ChatParticipant, (conversation_id, user_id)) is None:
            db.add(ChatParticipant(conversation_id=conversation_id, user_id=user_id))
            await db.flush()

    async def remove_group_participant(self, db: AsyncSession, group_id: int, user_id: int) -> None:
        conversation_id = await db.scalar(
            select(ChatConversation.id).where(ChatConversation.group_id == group_id)
        )
        if conversation_id is None:
            return
        await db.execute(
            delete(ChatParticipant).where(
                ChatParticipant.conversation_id == conversation_id,
                ChatParticipant.user_id == user_id,
            )
        )

    # ── Group message board ───────────────────────────────────────────────

    async def send_group_message(
        self, db: AsyncSession, viewer: User, group_id: int, content: str
    ) -> GroupMessageResponse:
        await self._require_group_member(db, viewer.id, group_id)
        text = require_text(content, "content", message="Message content is required")
        with translate_db_errors("send the group message", group_id=group_id):
            message = GroupMessage(group_id=group_id, sender_id=viewer.id, content=text)
            db.add(message)
            await db.flush()
            await db.refresh(message)
        return self._group_message_response(message, viewer)

    async def list_group_messages(
        self, db: AsyncSession, viewer: User, group_id: int, limit: int = 50, offset: int = 0
    ) -> GroupMessageListResponse:
        await self._require_group_member(db, viewer.id, group_id)
        result = await db.execute(
            select(GroupMessage, User)
            .join(User, User.id == GroupMessage.sender_id)
            .where(GroupMessage.group_id == group_id, GroupMessage.is_deleted.is_(False))
            .order_by(GroupMessage.created_at, GroupMessage.id)
            .offset(offset)
            .limit(limit)
        )
        return GroupMessageListResponse(
            messages=[self._group_message_response(m, sender) for m, sender in result.all()],
            limit=limit,
            offset=offset,
        )

    async def latest_group_message(
        self, db: AsyncSession, viewer: User, group_id: int
    ) -> Optional[GroupMessageResponse]:
        await self._require_group_member(db, viewer.id, group_id)
        row = (
            await db.execute(
                select(GroupMessage, User)
                .join(User, User.id == GroupMessage.sender_id)
                .where(GroupMessage.group_id == group_id, GroupMessage.is_deleted.is_(False))
                .order_by(desc(GroupMessage.id))
                .limit(1)
            )
        ).first()
        if row is None:
            return None
        message, sender = row
        return self._group_message_response(message, sender)

    async def delete_group_message(
        self, db: AsyncSession, viewer: User, group_id: int, message_id: int
    ) -> None:
        await self._require_group_member(db, viewer.id, group_id)
        message = await db.get(GroupMessage, message_id)
        if message is None or message.group_id != group_id or message.is_deleted:
            raise NotFoundError(resource="message", resource_id=message_id)
        if message.sender_id != viewer.id:
            raise ForbiddenError(message="You can only delete your own messages", context={"message_id": message_id})
        message.is_deleted = True
        await db.flush()

    # ── Internals ─────────────────────────────────────────────────────────

    async def _find_direct_conversation(self, db: AsyncSession, user_a: int, user_b: int) -> Optional[int]:
        """Non-group conversation whose participants are exactly {user_a, user_b}."""
        both = func.sum(case((ChatParticipant.user_id.in_((user_a, user_b)), 1), else_=0))
        return await db.scalar(
            select(ChatConversation.id)
            .join(ChatParticipant, ChatParticipant.conversation_id == ChatConversation.id)
            .where(ChatConversation.is_group.is_(False))
            .group_by(ChatConversation.id)
            .having(func.count(ChatParticipant.user_id) == 2, both == 2)
            .order_by(ChatConversation.id)
            .limit(1)
        )

    async def _require_participant(self, db: AsyncSession, user_id: int, conversation_id: int):
        conversation = await db.get(ChatConversation, conversation_id)
        if conversation is None:
            raise NotFoundError(resource="conversation", resource_id=conversation_id)
        participant = await db.get(ChatParticipant, (conversation_id, user_id))
        if participant is None:
            raise ForbiddenError(
                message="You are not a participant of this conversation",
                context={"conversation_id": conversation_id},
            )
        return conversation, participant

    async def _require_group_member(self, db: AsyncSession, user_id: int, group_id: int) -> Group:
        group = await db.get(Group, group_id)
        if group is None:
            raise NotFoundError(resource="group", resource_id=group_id)
        if await db.get(GroupMember, (group_id, user_id)) is None:
            raise ForbiddenError(message="You must be a member of this group", context={"group_id": group_id})
        return group

    async def _to_response(
        self, db: AsyncSession, conversation: ChatConversation, viewer_id: int
    ) -> ConversationResponse:
        users = await db.execute(
            select(User)
            .join(ChatParticipant, ChatParticipant.user_id == User.id)
            .where(ChatParticipant.conversation_id == conversation.id)
            .order_by(ChatParticipant.joined_at, User.id)
        )
        last = await db.scalar(
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation.id, ChatMessage.is_deleted.is_(False))
            .order_by(desc(ChatMessage.id))
            .limit(1)
        )
        return ConversationResponse(
            id=conversation.id,
            name=conversation.name,
            is_group=conversation.is_group,
            group_id=conversation.group_id,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            participants=[user_summary(u) for u in users.scalars().all()],
            last_message=self._message_response(last) if last else None,
            unread_count=await self.unread_count(db, conversation.id, viewer_id),
        )

    @staticmethod
    def _message_response(message: ChatMessage) -> ChatMessageResponse:
        return ChatMessageResponse(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            content=message.content,
            created_at=message.created_at,
        )

    @staticmethod
    def _group_message_response(message: GroupMessage, sender: User) -> GroupMessageResponse:
        return GroupMessageResponse(
            id=message.id,
            group_id=message.group_id,
            sender=user_summary(sender),
            content=message.content,
            created_at=message.created_at,
        )


chat_service = ChatService()
