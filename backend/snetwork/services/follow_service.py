"""
S-Network Backend — Follow Service
====================================

What:  Follow edges, follow requests to private profiles, and the lists and
       counters derived from them.
Who:   Follow routes, UserService (profile flags, auto-approval), PostService
       (almost_private visibility) and ChatService (messaging permission).

Follow state machine for viewer V and target T:

    T public:   follow ──▶ followers(V, T) + "follow" notification
    T private:  follow ──▶ follow_requests(V → T, pending)
                              ├─ accept by T ──▶ followers(V, T), request deleted,
                              │                 "follow_accepted" to V
                              ├─ reject by T ──▶ request deleted
                              └─ cancel by V ──▶ request deleted

    T flips private → public: every pending request is accepted at once.
"""

import logging
from typing import List

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from snetwork.models.follow import Follower, FollowRequest
from snetwork.models.user import User
from snetwork.schemas.follow import (
    FollowActionResponse,
    FollowListResponse,
    FollowRequestListResponse,
    FollowRequestResponse,
    FollowStatusResponse,
)
from snetwork.services.base import translate_db_errors, user_summary
from snetwork.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class FollowService:
    """
    Business logic for follows and follow requests.

    All methods take the acting User (already resolved from X-User-ID) or a
    plain user id for read-only lookups.
    """

    # ── Queries ───────────────────────────────────────────────────────────

    async def is_following(self, db: AsyncSession, follower_id: int, following_id: int) -> bool:
        row = await db.get(Follower, (follower_id, following_id))
        return row is not None

    async def request_exists(self, db: AsyncSession, requester_id: int, requested_id: int) -> bool:
        request_id = await db.scalar(
            select(FollowRequest.id).where(
                FollowRequest.requester_id == requester_id,
                FollowRequest.requested_id == requested_id,
                FollowRequest.status == "pending",
            )
        )
        return request_id is not None

    async def follower_count(self, db: AsyncSession, user_id: int) -> int:
        count = await db.scalar(
            select(func.count()).select_from(Follower).where(Follower.following_id == user_id)
        )
        return int(count or 0)

    async def following_count(self, db: AsyncSession, user_id: int) -> int:
        count = await db.scalar(
            select(func.count()).select_from(Follower).where(Follower.follower_id == user_id)
        )
        return int(count or 0)

    async def get_status(self, db: AsyncSession, viewer_id: int, target_id: int) -> FollowStatusResponse:
        return FollowStatusResponse(
            is_following=await self.is_following(db, viewer_id, target_id),
            follow_request_sent=await self.request_exists(db, viewer_id, target_id),
        )

    async def list_followers(self, db: AsyncSession, user_id: int) -> FollowListResponse:
        await self._require_user(db, user_id)
        result = await db.execute(
            select(User)
            .join(Follower, Follower.follower_id == User.id)
            .where(Follower.following_id == user_id)
            .order_by(desc(Follower.created_at), User.id)
        )
        users = [user_summary(u) for u in result.scalars().all()]
        return FollowListResponse(users=users, count=len(users))

    async def list_following(self, db: AsyncSession, user_id: int) -> FollowListResponse:
        await self._require_user(db, user_id)
        result = await db.execute(
            select(User)
            .join(Follower, Follower.following_id == User.id)
            .where(Follower.follower_id == user_id)
            .order_by(desc(Follower.created_at), User.id)
        )
        users = [user_summary(u) for u in result.scalars().all()]
        return FollowListResponse(users=users, count=len(users))

    # ── Follow / unfollow ─────────────────────────────────────────────────

    async def follow(self, db: AsyncSession, viewer: User, target_id: int) -> FollowActionResponse:
        """
        Follow a public profile directly, or ask to follow a private one.

        Raises:
            ValidationError: following yourself
            NotFoundError: unknown target
            ConflictError: already following
        """
        if viewer.id == target_id:
            raise ValidationError(message="You cannot follow yourself", field="user_id")

        target = await self._require_user(db, target_id)
        if await self.is_following(db, viewer.id, target_id):
            raise ConflictError(
                message="You are already following this user",
                context={"user_id": target_id},
            )

        with translate_db_errors("follow the user", follower_id=viewer.id, following_id=target_id):
            if target.is_public:
                db.add(Follower(follower_id=viewer.id, following_id=target_id))
                await db.flush()
                await notification_service.notify_follow(db, viewer, target_id)
                logger.info("User %s followed user %s", viewer.id, target_id)
                return FollowActionResponse(
                    status="followed",
                    message=f"You are now following {target.full_name}",
                )

            request = await db.scalar(
                select(FollowRequest).where(
                    FollowRequest.requester_id == viewer.id,
                    FollowRequest.requested_id == target_id,
                )
            )
            if request is None:
                request = FollowRequest(requester_id=viewer.id, requested_id=target_id)
                db.add(request)
            else:
                request.status = "pending"
            await db.flush()

        logger.info("User %s requested to follow user %s (request %s)", viewer.id, target_id, request.id)
        return FollowActionResponse(
            status="request_sent",
            message=f"Follow request sent to {target.full_name}",
            request_id=request.id,
        )

    async def unfollow(self, db: AsyncSession, viewer: User, target_id: int) -> None:
        with translate_db_errors("unfollow the user", follower_id=viewer.id, following_id=target_id):
            result = await db.execute(
                delete(Follower).where(
                    Follower.follower_id == viewer.id, Follower.following_id == target_id
                )
            )
        if not result.rowcount:
            raise NotFoundError(
                message="You are not following this user",
                resource="follow",
                resource_id=target_id,
            )
        logger.info("User %s unfollowed user %s", viewer.id, target_id)

    async def remove_follower(self, db: AsyncSession, viewer: User, follower_id: int) -> None:
        with translate_db_errors("remove the follower", follower_id=follower_id):
            result = await db.execute(
                delete(Follower).where(
                    Follower.follower_id == follower_id, Follower.following_id == viewer.id
                )
            )
        if not result.rowcount:
            raise NotFoundError(
                message="This user is not following you",
                resource="follower",
                resource_id=follower_id,
            )

    # ── Follow requests ───────────────────────────────────────────────────

    async def list_incoming_requests(self, db: AsyncSession, viewer: User) -> FollowRequestListResponse:
        result = await db.execute(
            select(FollowRequest, User)
            .join(User, User.id == FollowRequest.requester_id)
            .where(FollowRequest.requested_id == viewer.id, FollowRequest.status == "pending")
            .order_by(desc(FollowRequest.created_at), desc(FollowRequest.id))
        )
        return FollowRequestListResponse(
            requests=[
                FollowRequestResponse(
                    id=request.id,
                    requester=user_summary(requester),
                    requested_id=request.requested_id,
                    status=request.status,
                    created_at=request.created_at,
                )
                for request, requester in result.all()
            ]
        )

    async def accept_request(self, db: AsyncSession, viewer: User, request_id: int) -> None:
        request = await self._get_request_for(db, viewer, request_id)
        with translate_db_errors("accept the follow request", request_id=request_id):
            await self._approve(db, viewer, request)
        logger.info("User %s accepted follow request %s", viewer.id, request_id)

    async def reject_request(self, db: AsyncSession, viewer: User, request_id: int) -> None:
        request = await self._get_request_for(db, viewer, request_id)
        with translate_db_errors("reject the follow request", request_id=request_id):
            await db.delete(request)
            await db.flush()
        logger.info("User %s rejected follow request %s", viewer.id, request_id)

    async def cancel_request(self, db: AsyncSession, viewer: User, target_id: int) -> None:
        with translate_db_errors("cancel the follow request", requested_id=target_id):
            result = await db.execute(
                delete(FollowRequest).where(
                    FollowRequest.requester_id == viewer.id,
                    FollowRequest.requested_id == target_id,
                    FollowRequest.status == "pending",
                )
            )
        if not result.rowcount:
            raise NotFoundError(
                message="No pending follow request to this user",
                resource="follow_request",
                resource_id=target_id,
            )

    async def auto_approve_requests(self, db: AsyncSession, user: User) -> int:
        """Accept every pending request addressed to `user` (profile went public)."""
        result = await db.execute(
            select(FollowRequest).where(
                FollowRequest.requested_id == user.id, FollowRequest.status == "pending"
            )
        )
        requests: List[FollowRequest] = list(result.scalars().all())
        with translate_db_errors("approve pending follow requests", user_id=user.id):
            for request in requests:
                await self._approve(db, user, request)
        if requests:
            logger.info("Auto-approved %d follow requests for user %s", len(requests), user.id)
        return len(requests)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _approve(self, db: AsyncSession, accepter: User, request: FollowRequest) -> None:
        requester_id = request.requester_id
        if not await self.is_following(db, requester_id, accepter.id):
            db.add(Follower(follower_id=requester_id, following_id=accepter.id))
        await db.delete(request)
        await db.flush()
        await notification_service.notify_follow_accepted(db, accepter, requester_id)

    async def _get_request_for(self, db: AsyncSession, viewer: User, request_id: int) -> FollowRequest:
        request = await db.get(FollowRequest, request_id)
        if request is None or request.status != "pending":
            raise NotFoundError(resource="follow_request", resource_id=request_id)
        if request.requested_id != viewer.id:
            raise ForbiddenError(
                message="This follow request is not addressed to you",
                context={"request_id": request_id},
            )
        return request

    async def _require_user(self, db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user


follow_service = FollowService()
