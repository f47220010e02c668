"""
S-Network Backend — Group Invitation & Join Request Service
=============================================================

What:  The two indirect ways into a group.

    invitation:    member invites user ──▶ invitee accepts / declines
    join request:  user asks to join  ──▶ group creator accepts / rejects

Both tables are UNIQUE per (group, user). An answered row is re-opened
(status back to pending) when the same user is invited or asks again, so
the constraint never blocks a second attempt.
"""

import logging

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.exceptions import ConflictError, ForbiddenError, NotFoundError
from snetwork.models.group import Group, GroupInvitation, GroupJoinRequest
from snetwork.models.user import User
from snetwork.schemas.group import (
    InvitationListResponse,
    InvitationResponse,
    JoinRequestListResponse,
    JoinRequestResponse,
)
from snetwork.services.base import translate_db_errors
from snetwork.services.group_service import group_service
from snetwork.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class GroupInvitationService:
    """Business logic for group invitations and join requests."""

    # ── Invitations ───────────────────────────────────────────────────────

    async def has_pending_invitation(self, db: AsyncSession, group_id: int, user_id: int) -> bool:
        invitation_id = await db.scalar(
            select(GroupInvitation.id).where(
                GroupInvitation.group_id == group_id,
                GroupInvitation.invitee_id == user_id,
                GroupInvitation.status == "pending",
            )
        )
        return invitation_id is not None

    async def invite(self, db: AsyncSession, inviter: User, group_id: int, invitee_id: int) -> InvitationResponse:
        """
        Raises:
            NotFoundError: unknown group or invitee
            ForbiddenError: inviter is not a member
            ConflictError: invitee is already a member or already invited
        """
        group = await group_service.require_member(db, group_id, inviter.id)
        invitee = await db.get(User, invitee_id)
        if invitee is None:
            raise NotFoundError(resource="user", resource_id=invitee_id)
        if await group_service.is_member(db, group_id, invitee_id):
            raise ConflictError(message="User is already a member of this group", context={"user_id": invitee_id})

        invitation = await db.scalar(
            select(GroupInvitation).where(
                GroupInvitation.group_id == group_id, GroupInvitation.invitee_id == invitee_id
            )
        )
        if invitation is not None and invitation.status == "pending":
            raise ConflictError(message="User already has a pending invitation", context={"user_id": invitee_id})

        with translate_db_errors("send the invitation", group_id=group_id, invitee_id=invitee_id):
            if invitation is None:
                invitation = GroupInvitation(group_id=group_id, inviter_id=inviter.id, invitee_id=invitee_id)
                db.add(invitation)
            else:
                invitation.inviter_id = inviter.id
                invitation.status = "pending"
            await db.flush()
            await db.refresh(invitation)
            await notification_service.notify_group_invitation(db, invitee_id, inviter, group_id, group.name)

        logger.info("User %s invited user %s to group %s", inviter.id, invitee_id, group_id)
        return self._invitation_response(invitation, group, inviter)

    async def list_my_invitations(self, db: AsyncSession, viewer: User) -> InvitationListResponse:
        result = await db.execute(
            select(GroupInvitation, Group, User)
            .join(Group, Group.id == GroupInvitation.group_id)
            .join(User, User.id == GroupInvitation.inviter_id)
            .where(GroupInvitation.invitee_id == viewer.id, GroupInvitation.status == "pending")
            .order_by(desc(GroupInvitation.created_at), desc(GroupInvitation.id))
        )
        return InvitationListResponse(
            invitations=[self._invitation_response(inv, group, inviter) for inv, group, inviter in result.all()]
        )

    async def accept_invitation(self, db: AsyncSession, viewer: User, invitation_id: int) -> None:
        invitation = await self._require_own_invitation(db, viewer, invitation_id)
        with translate_db_errors("accept the invitation", invitation_id=invitation_id):
            invitation.status = "accepted"
            if not await group_service.is_member(db, invitation.group_id, viewer.id):
                await group_service.add_membership(db, invitation.group_id, viewer.id)
            await notification_service.delete_by_reference(
                db, viewer.id, "group_invitation", invitation.group_id
            )
            await db.flush()
        logger.info("User %s accepted invitation %s to group %s", viewer.id, invitation_id, invitation.group_id)

    async def decline_invitation(self, db: AsyncSession, viewer: User, invitation_id: int) -> None:
        invitation = await self._require_own_invitation(db, viewer, invitation_id)
        with translate_db_errors("decline the invitation", invitation_id=invitation_id):
            invitation.status = "declined"
            await notification_service.delete_by_reference(
                db, viewer.id, "group_invitation", invitation.group_id
            )
            await db.flush()
        logger.info("User %s declined invitation %s", viewer.id, invitation_id)

    # ── Join requests ─────────────────────────────────────────────────────

    async def request_to_join(
        self, db: AsyncSession, viewer: User, group_id: int, message: str | None = None
    ) -> JoinRequestResponse:
        group = await group_service.require_group(db, group_id)
        if await group_service.is_member(db, group_id, viewer.id):
            raise ConflictError(message="You are already a member of this group", context={"group_id": group_id})

        request = await db.scalar(
            select(GroupJoinRequest).where(
                GroupJoinRequest.group_id == group_id, GroupJoinRequest.user_id == viewer.id
            )
        )
        if request is not None and request.status == "pending":
            raise ConflictError(message="You already have a pending join request", context={"group_id": group_id})

        text = (message or "").strip() or None
        with translate_db_errors("send the join request", group_id=group_id):
            if request is None:
                request = GroupJoinRequest(group_id=group_id, user_id=viewer.id, message=text)
                db.add(request)
            else:
                request.status = "pending"
                request.message = text
            await db.flush()
            await db.refresh(request)
            await notification_service.notify_group_join_request(db, group.creator_id, viewer, group_id, group.name)

        logger.info("User %s requested to join group %s", viewer.id, group_id)
        return self._join_request_response(request, viewer)

    async def list_join_requests(self, db: AsyncSession, viewer: User, group_id: int) -> JoinRequestListResponse:
        await group_service.require_creator(db, group_id, viewer.id, "view join requests")
        result = await db.execute(
            select(GroupJoinRequest, User)
            .join(User, User.id == GroupJoinRequest.user_id)
            .where(GroupJoinRequest.group_id == group_id, GroupJoinRequest.status == "pending")
            .order_by(GroupJoinRequest.created_at, GroupJoinRequest.id)
        )
        return JoinRequestListResponse(
            requests=[self._join_request_response(req, user) for req, user in result.all()]
        )

    async def accept_join_request(self, db: AsyncSession, viewer: User, request_id: int) -> None:
        request, group = await self._require_answerable_request(db, viewer, request_id)
        with translate_db_errors("accept the join request", request_id=request_id):
            request.status = "accepted"
            if not await group_service.is_member(db, group.id, request.user_id):
                await group_service.add_membership(db, group.id, request.user_id)
            await notification_service.notify_group_join_accepted(db, request.user_id, viewer, group.id, group.name)
            await db.flush()
        logger.info("Join request %s to group %s accepted", request_id, group.id)

    async def reject_join_request(self, db: AsyncSession, viewer: User, request_id: int) -> None:
        request, group = await self._require_answerable_request(db, viewer, request_id)
        request.status = "rejected"
        await db.flush()
        logger.info("Join request %s to group %s rejected", request_id, group.id)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _require_own_invitation(self, db: AsyncSession, viewer: User, invitation_id: int) -> GroupInvitation:
        invitation = await db.get(GroupInvitation, invitation_id)
        if invitation is None or invitation.invitee_id != viewer.id or invitation.status != "pending":
            raise NotFoundError(resource="invitation", resource_id=invitation_id)
        return invitation

    async def _require_answerable_request(self, db: AsyncSession, viewer: User, request_id: int):
        request = await db.get(GroupJoinRequest, request_id)
        if request is None or request.status != "pending":
            raise NotFoundError(resource="join_request", resource_id=request_id)
        group = await group_service.require_group(db, request.group_id)
        if group.creator_id != viewer.id:
            raise ForbiddenError(
                message="Only the group creator can answer join requests",
                context={"request_id": request_id},
            )
        return request, group

    @staticmethod
    def _invitation_response(invitation: GroupInvitation, group: Group, inviter: User) -> InvitationResponse:
        return InvitationResponse(
            id=invitation.id,
            group_id=group.id,
            group_name=group.name,
            inviter_id=inviter.id,
            inviter_name=inviter.full_name,
            invitee_id=invitation.invitee_id,
            status=invitation.status,
            created_at=invitation.created_at,
        )

    @staticmethod
    def _join_request_response(request: GroupJoinRequest, user: User) -> JoinRequestResponse:
        return JoinRequestResponse(
            id=request.id,
            group_id=request.group_id,
            user_id=user.id,
            user_name=user.full_name,
            user_avatar=user.avatar,
            message=request.message,
            status=request.status,
            created_at=request.created_at,
        )


group_invitation_service = GroupInvitationService()
