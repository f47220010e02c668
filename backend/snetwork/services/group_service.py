"""
S-Network Backend — Group Service
===================================

What:  Groups and their memberships.
Who:   Group routes; GroupInvitationService and GroupContentService use the
       membership helpers (is_member, get_role, require_member).

Roles:
    creator  → stored as `admin`, cannot leave or be removed, only one who can
               delete the group, add or remove members, and answer join requests
    admin    → may edit the group
    member   → may read and post inside the group

Every membership change is mirrored into the group conversation (if one has
been opened) through ChatService.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from snetwork.models.chat import ChatConversation
from snetwork.models.group import Group, GroupMember
from snetwork.models.group_content import GroupPost, GroupPostComment
from snetwork.models.user import User
from snetwork.schemas.group import (
    GroupCreateRequest,
    GroupListResponse,
    GroupMemberListResponse,
    GroupMemberResponse,
    GroupResponse,
    GroupUpdateRequest,
)
from snetwork.services.base import require_text, translate_db_errors, user_summary
from snetwork.services.chat_service import chat_service
from snetwork.services.notification_service import notification_service
from snetwork.services.vote_service import vote_service

logger = logging.getLogger(__name__)


class GroupService:
    """Business logic for groups and group membership."""

    # ── Membership helpers ────────────────────────────────────────────────

    async def require_group(self, db: AsyncSession, group_id: int) -> Group:
        group = await db.get(Group, group_id)
        if group is None:
            raise NotFoundError(resource="group", resource_id=group_id)
        return group

    async def get_role(self, db: AsyncSession, group_id: int, user_id: int) -> Optional[str]:
        member = await db.get(GroupMember, (group_id, user_id))
        return member.role if member else None

    async def is_member(self, db: AsyncSession, group_id: int, user_id: int) -> bool:
        return await self.get_role(db, group_id, user_id) is not None

    async def require_member(self, db: AsyncSession, group_id: int, user_id: int) -> Group:
        """Load the group and check membership. Missing → 404, outsider → 403."""
        group = await self.require_group(db, group_id)
        if not await self.is_member(db, group_id, user_id):
            raise ForbiddenError(message="You must be a member of this group", context={"group_id": group_id})
        return group

    async def require_creator(self, db: AsyncSession, group_id: int, user_id: int, action: str) -> Group:
        group = await self.require_group(db, group_id)
        if group.creator_id != user_id:
            raise ForbiddenError(
                message=f"Only the group creator can {action}",
                context={"group_id": group_id},
            )
        return group

    async def add_membership(self, db: AsyncSession, group_id: int, user_id: int, role: str = "member") -> None:
        """Insert a membership row and join the group conversation."""
        db.add(GroupMember(group_id=group_id, user_id=user_id, role=role))
        await db.flush()
        await chat_service.add_group_participant(db, group_id, user_id)

    # ── Create / read ─────────────────────────────────────────────────────

    async def create_group(self, db: AsyncSession, creator: User, data: GroupCreateRequest) -> GroupResponse:
        name = require_text(data.name, "name", message="Group name is required")
        member_ids = [uid for uid in dict.fromkeys(data.member_ids) if uid != creator.id]
        if member_ids:
            found = set((await db.execute(select(User.id).where(User.id.in_(member_ids)))).scalars().all())
            missing = [uid for uid in member_ids if uid not in found]
            if missing:
                raise NotFoundError(resource="user", resource_id=missing[0])

        with translate_db_errors("create the group", creator_id=creator.id):
            group = Group(
                name=name,
                description=(data.description or "").strip(),
                creator_id=creator.id,
                avatar=data.avatar,
                privacy=data.privacy,
            )
            db.add(group)
            await db.flush()
            await self.add_membership(db, group.id, creator.id, role="admin")
            for user_id in member_ids:
                await self.add_membership(db, group.id, user_id)
                await notification_service.notify_group_member_added(db, user_id, creator, group.id, group.name)
            await db.refresh(group)

        logger.info("Group %s (%s) created by user %s with %d members", group.id, group.privacy, creator.id, len(member_ids) + 1)
        return await self.get_group(db, creator, group.id)

    async def get_group(self, db: AsyncSession, viewer: User, group_id: int) -> GroupResponse:
        group = await self.require_group(db, group_id)
        role = await self.get_role(db, group_id, viewer.id)
        if group.privacy == "private" and role is None:
            raise ForbiddenError(message="This group is private", context={"group_id": group_id})
        return self._to_response(group, await self._member_count(db, group_id), role)

    async def list_groups(self, db: AsyncSession, viewer: User, limit: int = 20, offset: int = 0) -> GroupListResponse:
        return await self._list(db, viewer, limit, offset)

    async def list_public_groups(
        self, db: AsyncSession, viewer: User, limit: int = 20, offset: int = 0
    ) -> GroupListResponse:
        return await self._list(db, viewer, limit, offset, public_only=True)

    async def list_my_groups(self, db: AsyncSession, viewer: User, limit: int = 20, offset: int = 0) -> GroupListResponse:
        return await self._list(db, viewer, limit, offset, member_only=True)

    # ── Update / delete ───────────────────────────────────────────────────

    async def update_group(
        self, db: AsyncSession, viewer: User, group_id: int, data: GroupUpdateRequest
    ) -> GroupResponse:
        group = await self.require_group(db, group_id)
        if await self.get_role(db, group_id, viewer.id) != "admin":
            raise ForbiddenError(message="Only group admins can edit the group", context={"group_id": group_id})

        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if "name" in changes:
            changes["name"] = require_text(changes["name"], "name", message="Group name is required")

        with translate_db_errors("update the group", group_id=group_id):
            for field, value in changes.items():
                setattr(group, field, value)
            if "name" in changes:
                conversation = await db.scalar(
                    select(ChatConversation).where(ChatConversation.group_id == group_id)
                )
                if conversation is not None:
                    conversation.name = f"{group.name} Chat"
            await db.flush()
            await db.refresh(group)

        logger.info("Group %s updated by user %s: %s", group_id, viewer.id, sorted(changes))
        return await self.get_group(db, viewer, group_id)

    async def delete_group(self, db: AsyncSession, viewer: User, group_id: int) -> None:
        """
        Creator only. Foreign keys cascade through every group table; votes
        have no foreign key to their target and are removed first.
        """
        await self.require_creator(db, group_id, viewer.id, "delete the group")
        with translate_db_errors("delete the group", group_id=group_id):
            post_ids = (
                await db.execute(select(GroupPost.id).where(GroupPost.group_id == group_id))
            ).scalars().all()
            comment_ids: List[int] = []
            if post_ids:
                comment_ids = (
                    await db.execute(select(GroupPostComment.id).where(GroupPostComment.post_id.in_(post_ids)))
                ).scalars().all()
            await vote_service.purge_votes(db, "group_post_comment", comment_ids)
            await vote_service.purge_votes(db, "group_post", post_ids)
            await db.execute(delete(Group).where(Group.id == group_id))
        logger.info("Group %s deleted by user %s", group_id, viewer.id)

    # ── Join / leave ──────────────────────────────────────────────────────

    async def join_group(self, db: AsyncSession, viewer: User, group_id: int) -> None:
        group = await self.require_group(db, group_id)
        if group.privacy != "public":
            raise ForbiddenError(
                message="This group is private. Ask for an invitation or send a join request",
                context={"group_id": group_id},
            )
        if await self.is_member(db, group_id, viewer.id):
            raise ConflictError(message="You are already a member of this group", context={"group_id": group_id})
        with translate_db_errors("join the group", group_id=group_id):
            await self.add_membership(db, group_id, viewer.id)
        logger.info("User %s joined group %s", viewer.id, group_id)

    async def leave_group(self, db: AsyncSession, viewer: User, group_id: int) -> None:
        group = await self.require_group(db, group_id)
        if not await self.is_member(db, group_id, viewer.id):
            raise ValidationError(message="You are not a member of this group", field="group_id")
        if group.creator_id == viewer.id:
            raise ValidationError(message="The group creator cannot leave the group", field="group_id")
        await self._drop_membership(db, group_id, viewer.id)
        logger.info("User %s left group %s", viewer.id, group_id)

    # ── Members ───────────────────────────────────────────────────────────

    async def list_members(self, db: AsyncSession, viewer: User, group_id: int) -> GroupMemberListResponse:
        await self.require_member(db, group_id, viewer.id)
        result = await db.execute(
            select(GroupMember, User)
            .join(User, User.id == GroupMember.user_id)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at, User.id)
        )
        return GroupMemberListResponse(
            members=[
                GroupMemberResponse(user=user_summary(user), role=member.role, joined_at=member.joined_at)
                for member, user in result.all()
            ]
        )

    async def add_members(
        self, db: AsyncSession, viewer: User, group_id: int, user_ids: Iterable[int]
    ) -> GroupMemberListResponse:
        """Creator only. Users who are already members are skipped."""
        group = await self.require_creator(db, group_id, viewer.id, "add members")
        with translate_db_errors("add group members", group_id=group_id):
            for user_id in dict.fromkeys(user_ids):
                if await db.get(User, user_id) is None:
                    raise NotFoundError(resource="user", resource_id=user_id)
                if await self.is_member(db, group_id, user_id):
                    continue
                await self.add_membership(db, group_id, user_id)
                await notification_service.notify_group_member_added(db, user_id, viewer, group_id, group.name)
        return await self.list_members(db, viewer, group_id)

    async def remove_member(self, db: AsyncSession, viewer: User, group_id: int, member_id: int) -> None:
        group = await self.require_creator(db, group_id, viewer.id, "remove members")
        if member_id == group.creator_id:
            raise ValidationError(message="The group creator cannot be removed", field="user_id")
        if not await self.is_member(db, group_id, member_id):
            raise ValidationError(message="This user is not a member of the group", field="user_id")
        await self._drop_membership(db, group_id, member_id)
        logger.info("User %s removed from group %s by %s", member_id, group_id, viewer.id)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _drop_membership(self, db: AsyncSession, group_id: int, user_id: int) -> None:
        with translate_db_errors("remove the membership", group_id=group_id, user_id=user_id):
            await db.execute(
                delete(GroupMember).where(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
            )
            await chat_service.remove_group_participant(db, group_id, user_id)

    async def _member_count(self, db: AsyncSession, group_id: int) -> int:
        count = await db.scalar(select(func.count()).select_from(GroupMember).where(GroupMember.group_id == group_id))
        return int(count or 0)

    async def _list(
        self,
        db: AsyncSession,
        viewer: User,
        limit: int,
        offset: int,
        public_only: bool = False,
        member_only: bool = False,
    ) -> GroupListResponse:
        member_count = (
            select(func.count())
            .select_from(GroupMember)
            .where(GroupMember.group_id == Group.id)
            .correlate(Group)
            .scalar_subquery()
        )
        viewer_role = (
            select(GroupMember.role)
            .where(GroupMember.group_id == Group.id, GroupMember.user_id == viewer.id)
            .correlate(Group)
            .scalar_subquery()
        )
        query = select(Group, member_count, viewer_role)
        if public_only:
            query = query.where(Group.privacy == "public")
        if member_only:
            query = query.join(
                GroupMember,
                (GroupMember.group_id == Group.id) & (GroupMember.user_id == viewer.id),
            ).order_by(Group.name, Group.id)
        else:
            query = query.order_by(desc(Group.created_at), desc(Group.id))

        with translate_db_errors("load groups", viewer_id=viewer.id):
            rows = (await db.execute(query.offset(offset).limit(limit))).all()
        return GroupListResponse(
            groups=[self._to_response(group, int(count or 0), role) for group, count, role in rows],
            limit=limit,
            offset=offset,
        )

    @staticmethod
    def _to_response(group: Group, member_count: int, role: Optional[str]) -> GroupResponse:
        return GroupResponse(
            id=group.id,
            name=group.name,
            description=group.description,
            creator_id=group.creator_id,
            avatar=group.avatar,
            privacy=group.privacy,
            created_at=group.created_at,
            member_count=member_count,
            is_joined=role is not None,
            user_role=role,
        )


group_service = GroupService()
