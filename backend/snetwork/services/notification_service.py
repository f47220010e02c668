"""
S-Network Backend — Notification Service
==========================================

What:  Stores notifications, lists them, tracks read state.
Who:   Called by the notification routes and, through the notify_* helpers,
       by every service that produces an event (follows, posts, groups, chat).

Synthetic follow-request notifications:
    Pending follow requests live in `follow_requests`, not in
    `notifications`. The listing merges both sources:

        stored notifications (receiver = me)  ─┐
                                               ├─▶ sort created_at DESC ─▶ offset/limit
        pending follow_requests (to me)       ─┘   (as type "follow_request")

    A stored follow_request notification whose reference_id equals a request
    id suppresses the synthetic item for that request. The unread counter is
    unread stored notifications + pending follow requests, so the badge
    matches what the list shows.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.exceptions import NotFoundError
from snetwork.models.follow import FollowRequest
from snetwork.models.notification import Notification
from snetwork.models.user import User
from snetwork.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
)
from snetwork.services.base import translate_db_errors, user_summary

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Business logic for notifications.

    Responsibilities:
        - create() and the notify_* helpers that fix each type's wording
        - list_notifications(): merged stored + synthetic listing
        - unread_count(), mark_read(), mark_all_read(), delete(), delete_all()
    """

    # ── Creation ──────────────────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        receiver_id: int,
        type: str,
        content: str,
        sender_id: Optional[int] = None,
        reference_id: Optional[int] = None,
    ) -> Notification:
        with translate_db_errors("create the notification", receiver_id=receiver_id, type=type):
            notification = Notification(
                receiver_id=receiver_id,
                sender_id=sender_id,
                type=type,
                content=content,
                reference_id=reference_id,
                is_read=False,
            )
            db.add(notification)
            await db.flush()
        logger.debug("Notification %s (%s) created for user %s", notification.id, type, receiver_id)
        return notification

    async def notify_follow(self, db: AsyncSession, follower: User, followed_id: int) -> Notification:
        return await self.create(
            db,
            receiver_id=followed_id,
            sender_id=follower.id,
            type="follow",
            content=f"{follower.full_name} started following you",
            reference_id=follower.id,
        )

    async def notify_follow_accepted(self, db: AsyncSession, accepter: User, requester_id: int) -> Notification:
        return await self.create(
            db,
            receiver_id=requester_id,
            sender_id=accepter.id,
            type="follow_accepted",
            content=f"{accepter.full_name} accepted your follow request",
            reference_id=accepter.id,
        )

    async def notify_message(
        self, db: AsyncSession, receiver_id: int, sender: User, conversation_id: int
    ) -> Notification:
        return await self.create(
            db,
            receiver_id=receiver_id,
            sender_id=sender.id,
            type="message",
            content=f"{sender.full_name} sent you a message",
            reference_id=conversation_id,
        )

    async def notify_post_like(self, db: AsyncSession, author_id: int, liker: User, post_id: int) -> Notification:
        return await self.create(
            db,
            receiver_id=author_id,
            sender_id=liker.id,
            type="post_like",
            content=f"{liker.full_name} liked your post",
            reference_id=post_id,
        )

    async def notify_post_comment(
        self, db: AsyncSession, author_id: int, commenter: User, post_id: int
    ) -> Notification:
        return await self.create(
            db,
            receiver_id=author_id,
            sender_id=commenter.id,
            type="post_comment",
            content=f"{commenter.full_name} commented on your post",
            reference_id=post_id,
        )

    async def notify_group_invitation(
        self, db: AsyncSession, invitee_id: int, inviter: User, group_id: int, group_name: str
    ) -> Notification:
        return await self.create(
            db,
            receiver_id=invitee_id,
            sender_id=inviter.id,
            type="group_invitation",
            content=f"{inviter.full_name} invited you to join {group_name}",
            reference_id=group_id,
        )

    async def notify_group_member_added(
        self, db: AsyncSession, member_id: int, adder: User, group_id: int, group_name: str
    ) -> Notification:
        return await self.create(
            db,
            receiver_id=member_id,
            sender_id=adder.id,
            type="group_member_added",
            content=f"{adder.full_name} added you to {group_name}",
            reference_id=group_id,
        )

    async def notify_group_join_request(
        self, db: AsyncSession, creator_id: int, requester: User, group_id: int, group_name: str
    ) -> Notification:
        return await self.create(
            db,
            receiver_id=creator_id,
            sender_id=requester.id,
            type="group_join_request",
            content=f"{requester.full_name} requested to join {group_name}",
            reference_id=group_id,
        )

    async def notify_group_join_accepted(
        self, db: AsyncSession, requester_id: int, accepter: User, group_id: int, group_name: str
    ) -> Notification:
        return await self.create(
            db,
            receiver_id=requester_id,
            sender_id=accepter.id,
            type="group_join_accepted",
            content=f"Your request to join {group_name} was accepted",
            reference_id=group_id,
        )

    async def notify_event_created(
        self, db: AsyncSession, member_id: int, creator: User, group_id: int, group_name: str, title: str
    ) -> Notification:
        return await self.create(
            db,
            receiver_id=member_id,
            sender_id=creator.id,
            type="event_created",
            content=f'{creator.full_name} created a new event "{title}" in {group_name}',
            reference_id=group_id,
        )

    async def notify_system(self, db: AsyncSession, receiver_id: int, content: str) -> Notification:
        return await self.create(db, receiver_id=receiver_id, type="system", content=content)

    # ── Listing ───────────────────────────────────────────────────────────

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: int,
        type_filter: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
        mark_as_read: bool = False,
    ) -> NotificationListResponse:
        """
        Merged, paginated notification list for one receiver.

        Both sources are fetched up to offset+limit rows (sorted newest first),
        merged, and the requested window is sliced from the merge. This keeps
        pagination stable without loading a user's entire history.
        """
        window = offset + limit
        with translate_db_errors("list notifications", user_id=user_id):
            query = select(Notification).where(Notification.receiver_id == user_id)
            if type_filter:
                query = query.where(Notification.type == type_filter)
            query = query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(window)
            stored = list((await db.execute(query)).scalars().all())

            pending: List[FollowRequest] = []
            if type_filter in (None, "", "follow_request"):
                covered = await self._stored_request_ids(db, user_id)
                pending = await self._pending_follow_requests(db, user_id, limit=window, exclude=covered)

            sender_ids = {n.sender_id for n in stored if n.sender_id is not None}
            sender_ids.update(r.requester_id for r in pending)
            senders = await self._load_users(db, sender_ids)

        items: List[NotificationResponse] = [self._to_response(n, senders) for n in stored]
        for request in pending:
            requester = senders.get(request.requester_id)
            if requester is None:
                continue
            items.append(
                NotificationResponse(
                    id=None,
                    type="follow_request",
                    content=f"{requester.full_name} wants to follow you",
                    reference_id=request.id,
                    is_read=False,
                    created_at=request.created_at,
                    sender=user_summary(requester),
                )
            )

        items.sort(key=lambda item: item.created_at, reverse=True)
        page = items[offset:offset + limit]

        if mark_as_read:
            await self.mark_all_read(db, user_id)

        unread = await self.unread_count(db, user_id)
        return NotificationListResponse(
            notifications=page,
            unread_count=unread,
            total=len(page),
            limit=limit,
            offset=offset,
        )

    async def unread_count(self, db: AsyncSession, user_id: int) -> int:
        """Unread stored notifications plus pending follow requests."""
        with translate_db_errors("count unread notifications", user_id=user_id):
            unread = await db.scalar(
                select(func.count(Notification.id)).where(
                    Notification.receiver_id == user_id,
                    Notification.is_read.is_(False),
                )
            )
            pending = await db.scalar(
                select(func.count(FollowRequest.id)).where(
                    FollowRequest.requested_id == user_id,
                    FollowRequest.status == "pending",
                )
            )
        return int(unread or 0) + int(pending or 0)

    # ── Read state & deletion ─────────────────────────────────────────────

    async def get_for_receiver(self, db: AsyncSession, user_id: int, notification_id: int) -> Notification:
        notification = await db.get(Notification, notification_id)
        # Someone else's notification is reported as missing
        if notification is None or notification.receiver_id != user_id:
            raise NotFoundError(resource="notification", resource_id=notification_id)
        return notification

    async def mark_read(self, db: AsyncSession, user_id: int, notification_id: int) -> None:
        with translate_db_errors("mark the notification as read", notification_id=notification_id):
            notification = await self.get_for_receiver(db, user_id, notification_id)
            notification.is_read = True
            await db.flush()

    async def mark_all_read(self, db: AsyncSession, user_id: int) -> int:
        with translate_db_errors("mark notifications as read", user_id=user_id):
            result = await db.execute(
                update(Notification)
                .where(Notification.receiver_id == user_id, Notification.is_read.is_(False))
                .values(is_read=True)
            )
        return result.rowcount or 0

    async def delete(self, db: AsyncSession, user_id: int, notification_id: int) -> None:
        with translate_db_errors("delete the notification", notification_id=notification_id):
            notification = await self.get_for_receiver(db, user_id, notification_id)
            await db.delete(notification)
            await db.flush()

    async def delete_all(self, db: AsyncSession, user_id: int) -> int:
        with translate_db_errors("delete notifications", user_id=user_id):
            result = await db.execute(delete(Notification).where(Notification.receiver_id == user_id))
        logger.info("Deleted %d notifications for user %s", result.rowcount or 0, user_id)
        return result.rowcount or 0

    async def delete_by_reference(
        self, db: AsyncSession, receiver_id: int, type: str, reference_id: int
    ) -> None:
        """Drop notifications that became stale (e.g. an answered group invitation)."""
        with translate_db_errors("clean up notifications", receiver_id=receiver_id, type=type):
            await db.execute(
                delete(Notification).where(
                    Notification.receiver_id == receiver_id,
                    Notification.type == type,
                    Notification.reference_id == reference_id,
                )
            )

    # ── Internals ─────────────────────────────────────────────────────────

    async def _pending_follow_requests(
        self, db: AsyncSession, user_id: int, limit: int, exclude: Set[int]
    ) -> List[FollowRequest]:
        query = select(FollowRequest).where(
            FollowRequest.requested_id == user_id, FollowRequest.status == "pending"
        )
        if exclude:
            query = query.where(FollowRequest.id.not_in(exclude))
        result = await db.execute(
            query
            .order_by(desc(FollowRequest.created_at), desc(FollowRequest.id))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def _stored_request_ids(self, db: AsyncSession, user_id: int) -> Set[int]:
        """Request ids that already have a stored follow_request notification, at any age."""
        result = await db.execute(
            select(Notification.reference_id).where(
                Notification.receiver_id == user_id,
                Notification.type == "follow_request",
                Notification.reference_id.is_not(None),
            )
        )
        return set(result.scalars().all())

    async def _load_users(self, db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, User]:
        ids = set(user_ids)
        if not ids:
            return {}
        result = await db.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    @staticmethod
    def _to_response(notification: Notification, senders: Dict[int, User]) -> NotificationResponse:
        sender = senders.get(notification.sender_id) if notification.sender_id is not None else None
        return NotificationResponse(
            id=notification.id,
            type=notification.type,
            content=notification.content,
            reference_id=notification.reference_id,
            is_read=notification.is_read,
            created_at=notification.created_at,
            sender=user_summary(sender) if sender else None,
        )


notification_service = NotificationService()
