"""
S-Network Backend — Group Content Service
===========================================

What:  Posts, comments, votes and events inside a group. Everything here
       is members-only.
Who:   Group content routes.

Deletion rights:
    group post      → its author or the group creator
    group comment   → its author or the author of the post
    group event     → its creator or the group creator

group_posts.comments_count moves with every comment insert/delete in the
same transaction.
"""

import logging
from datetime import timezone
from typing import Dict, List, Tuple

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.exceptions import ForbiddenError, NotFoundError, ValidationError
from snetwork.models.group import Group, GroupMember
from snetwork.models.group_content import EventRSVP, GroupEvent, GroupPost, GroupPostComment
from snetwork.models.user import User
from snetwork.schemas.common import VoteResponse
from snetwork.schemas.group import (
    GroupCommentCreateRequest,
    GroupCommentListResponse,
    GroupCommentResponse,
    GroupEventCreateRequest,
    GroupEventListResponse,
    GroupEventResponse,
    GroupPostCreateRequest,
    GroupPostListResponse,
    GroupPostResponse,
)
from snetwork.services.base import require_text, translate_db_errors
from snetwork.services.group_service import group_service
from snetwork.services.notification_service import notification_service
from snetwork.services.vote_service import vote_service

logger = logging.getLogger(__name__)


class GroupContentService:
    """Business logic for group posts, comments and events."""

    # ── Posts ─────────────────────────────────────────────────────────────

    async def create_post(
        self, db: AsyncSession, viewer: User, group_id: int, data: GroupPostCreateRequest
    ) -> GroupPostResponse:
        await group_service.require_member(db, group_id, viewer.id)
        content = require_text(data.content, "content", message="Post content is required")
        with translate_db_errors("create the group post", group_id=group_id):
            post = GroupPost(
                group_id=group_id,
                author_id=viewer.id,
                content=content,
                image_path=(data.image_path or "").strip() or None,
            )
            db.add(post)
            await db.flush()
            await db.refresh(post)
        logger.info("Group post %s created in group %s by user %s", post.id, group_id, viewer.id)
        return self._post_response(post, viewer, user_vote=0)

    async def list_posts(
        self, db: AsyncSession, viewer: User, group_id: int, limit: int = 20, offset: int = 0
    ) -> GroupPostListResponse:
        await group_service.require_member(db, group_id, viewer.id)
        result = await db.execute(
            select(GroupPost, User)
            .join(User, User.id == GroupPost.author_id)
            .where(GroupPost.group_id == group_id)
            .order_by(desc(GroupPost.created_at), desc(GroupPost.id))
            .offset(offset)
            .limit(limit)
        )
        rows = result.all()
        votes = await vote_service.get_user_votes(db, viewer.id, "group_post", [p.id for p, _ in rows])
        return GroupPostListResponse(
            posts=[self._post_response(post, author, votes.get(post.id, 0)) for post, author in rows],
            limit=limit,
            offset=offset,
        )

    async def get_post(self, db: AsyncSession, viewer: User, post_id: int) -> GroupPostResponse:
        post, _ = await self._require_post(db, viewer, post_id)
        author = await db.get(User, post.author_id)
        user_vote = await vote_service.get_user_vote(db, viewer.id, "group_post", post_id)
        return self._post_response(post, author, user_vote)

    async def delete_post(self, db: AsyncSession, viewer: User, post_id: int) -> None:
        post, group = await self._require_post(db, viewer, post_id)
        if viewer.id not in (post.author_id, group.creator_id):
            raise ForbiddenError(
                message="Only the author or the group creator can delete this post",
                context={"post_id": post_id},
            )
        with translate_db_errors("delete the group post", post_id=post_id):
            comment_ids = (
                await db.execute(select(GroupPostComment.id).where(GroupPostComment.post_id == post_id))
            ).scalars().all()
            await vote_service.purge_votes(db, "group_post_comment", comment_ids)
            await vote_service.purge_votes(db, "group_post", [post_id])
            await db.execute(delete(GroupPostComment).where(GroupPostComment.post_id == post_id))
            await db.delete(post)
            await db.flush()
        logger.info("Group post %s deleted by user %s", post_id, viewer.id)

    async def vote_post(self, db: AsyncSession, viewer: User, post_id: int, vote_type: int) -> VoteResponse:
        await self._require_post(db, viewer, post_id)
        response, _ = await vote_service.cast_vote(db, viewer.id, "group_post", post_id, vote_type)
        return response

    # ── Comments ──────────────────────────────────────────────────────────

    async def create_comment(
        self, db: AsyncSession, viewer: User, post_id: int, data: GroupCommentCreateRequest
    ) -> GroupCommentResponse:
        post, _ = await self._require_post(db, viewer, post_id)
        content = (data.content or "").strip()
        image_path = (data.image_path or "").strip() or None
        if not content and not image_path:
            raise ValidationError(message="Comment content or image is required", field="content")

        with translate_db_errors("add the comment", post_id=post_id):
            comment = GroupPostComment(post_id=post.id, author_id=viewer.id, content=content, image_path=image_path)
            db.add(comment)
            await db.execute(
                update(GroupPost)
                .where(GroupPost.id == post.id)
                .values(comments_count=GroupPost.comments_count + 1)
            )
            await db.flush()
            await db.refresh(comment)
        return self._comment_response(comment, viewer, user_vote=0)

    async def list_comments(self, db: AsyncSession, viewer: User, post_id: int) -> GroupCommentListResponse:
        await self._require_post(db, viewer, post_id)
        result = await db.execute(
            select(GroupPostComment, User)
            .join(User, User.id == GroupPostComment.author_id)
            .where(GroupPostComment.post_id == post_id)
            .order_by(GroupPostComment.created_at, GroupPostComment.id)
        )
        rows = result.all()
        votes = await vote_service.get_user_votes(db, viewer.id, "group_post_comment", [c.id for c, _ in rows])
        return GroupCommentListResponse(
            comments=[self._comment_response(c, author, votes.get(c.id, 0)) for c, author in rows]
        )

    async def delete_comment(self, db: AsyncSession, viewer: User, post_id: int, comment_id: int) -> None:
        post, _ = await self._require_post(db, viewer, post_id)
        comment = await self._require_comment(db, post_id, comment_id)
        if viewer.id not in (comment.author_id, post.author_id):
            raise ForbiddenError(
                message="Only the comment author or the post author can delete this comment",
                context={"comment_id": comment_id},
            )
        with translate_db_errors("delete the comment", comment_id=comment_id):
            await vote_service.purge_votes(db, "group_post_comment", [comment_id])
            await db.delete(comment)
            await db.execute(
                update(GroupPost)
                .where(GroupPost.id == post_id, GroupPost.comments_count > 0)
                .values(comments_count=GroupPost.comments_count - 1)
            )
            await db.flush()

    async def vote_comment(
        self, db: AsyncSession, viewer: User, post_id: int, comment_id: int, vote_type: int
    ) -> VoteResponse:
        await self._require_post(db, viewer, post_id)
        await self._require_comment(db, post_id, comment_id)
        response, _ = await vote_service.cast_vote(db, viewer.id, "group_post_comment", comment_id, vote_type)
        return response

    # ── Events ────────────────────────────────────────────────────────────

    async def create_event(
        self, db: AsyncSession, viewer: User, group_id: int, data: GroupEventCreateRequest
    ) -> GroupEventResponse:
        """Create an event and tell every other member about it."""
        group = await group_service.require_member(db, group_id, viewer.id)
        title = require_text(data.title, "title", message="Event title is required")
        event_date = data.event_date
        if event_date.tzinfo is not None:
            event_date = event_date.astimezone(timezone.utc).replace(tzinfo=None)

        with translate_db_errors("create the event", group_id=group_id):
            event = GroupEvent(
                group_id=group_id,
                creator_id=viewer.id,
                title=title,
                description=(data.description or "").strip(),
                event_date=event_date,
            )
            db.add(event)
            await db.flush()
            await db.refresh(event)

            members = await db.execute(
                select(GroupMember.user_id).where(
                    GroupMember.group_id == group_id, GroupMember.user_id != viewer.id
                )
            )
            for member_id in members.scalars().all():
                await notification_service.notify_event_created(db, member_id, viewer, group_id, group.name, title)

        logger.info("Event %s created in group %s by user %s", event.id, group_id, viewer.id)
        return self._event_response(event, {}, None)

    async def list_events(self, db: AsyncSession, viewer: User, group_id: int) -> GroupEventListResponse:
        await group_service.require_member(db, group_id, viewer.id)
        events = list(
            (
                await db.execute(
                    select(GroupEvent)
                    .where(GroupEvent.group_id == group_id)
                    .order_by(GroupEvent.event_date, GroupEvent.id)
                )
            ).scalars().all()
        )
        tallies, mine = await self._responses_for(db, viewer.id, [e.id for e in events])
        return GroupEventListResponse(
            events=[self._event_response(e, tallies.get(e.id, {}), mine.get(e.id)) for e in events]
        )

    async def respond(self, db: AsyncSession, viewer: User, event_id: int, response: str) -> GroupEventResponse:
        """going / not_going upsert the viewer's answer; remove deletes it."""
        event = await self._require_event(db, viewer, event_id)
        existing = await db.scalar(
            select(EventRSVP).where(EventRSVP.event_id == event_id, EventRSVP.user_id == viewer.id)
        )
        with translate_db_errors("record the response", event_id=event_id):
            if response == "remove":
                if existing is not None:
                    await db.delete(existing)
            elif existing is None:
                db.add(EventRSVP(event_id=event_id, user_id=viewer.id, response=response))
            else:
                existing.response = response
            await db.flush()

        tallies, mine = await self._responses_for(db, viewer.id, [event_id])
        return self._event_response(event, tallies.get(event_id, {}), mine.get(event_id))

    async def delete_event(self, db: AsyncSession, viewer: User, event_id: int) -> None:
        event = await self._require_event(db, viewer, event_id)
        group = await db.get(Group, event.group_id)
        if viewer.id not in (event.creator_id, group.creator_id):
            raise ForbiddenError(
                message="Only the event creator or the group creator can delete this event",
                context={"event_id": event_id},
            )
        with translate_db_errors("delete the event", event_id=event_id):
            await db.delete(event)
            await db.flush()
        logger.info("Event %s deleted by user %s", event_id, viewer.id)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _require_post(self, db: AsyncSession, viewer: User, post_id: int) -> Tuple[GroupPost, Group]:
        post = await db.get(GroupPost, post_id)
        if post is None:
            raise NotFoundError(resource="group_post", resource_id=post_id)
        group = await group_service.require_member(db, post.group_id, viewer.id)
        return post, group

    async def _require_comment(self, db: AsyncSession, post_id: int, comment_id: int) -> GroupPostComment:
        comment = await db.get(GroupPostComment, comment_id)
        if comment is None or comment.post_id != post_id:
            raise NotFoundError(resource="comment", resource_id=comment_id)
        return comment

    async def _require_event(self, db: AsyncSession, viewer: User, event_id: int) -> GroupEvent:
        event = await db.get(GroupEvent, event_id)
        if event is None:
            raise NotFoundError(resource="event", resource_id=event_id)
        await group_service.require_member(db, event.group_id, viewer.id)
        return event

    async def _responses_for(
        self, db: AsyncSession, viewer_id: int, event_ids: List[int]
    ) -> Tuple[Dict[int, Dict[str, int]], Dict[int, str]]:
        """Per-event answer tallies and the viewer's own answers."""
        if not event_ids:
            return {}, {}
        tallies: Dict[int, Dict[str, int]] = {}
        result = await db.execute(
            select(EventRSVP.event_id, EventRSVP.response, func.count())
            .where(EventRSVP.event_id.in_(event_ids))
            .group_by(EventRSVP.event_id, EventRSVP.response)
        )
        for event_id, response, count in result.all():
            tallies.setdefault(event_id, {})[response] = count
        mine_rows = await db.execute(
            select(EventRSVP.event_id, EventRSVP.response).where(
                EventRSVP.event_id.in_(event_ids), EventRSVP.user_id == viewer_id
            )
        )
        return tallies, {event_id: response for event_id, response in mine_rows.all()}

    @staticmethod
    def _post_response(post: GroupPost, author: User, user_vote: int) -> GroupPostResponse:
        return GroupPostResponse(
            id=post.id,
            group_id=post.group_id,
            author_id=post.author_id,
            author_name=author.full_name,
            author_avatar=author.avatar,
            content=post.content,
            image_path=post.image_path,
            comments_count=post.comments_count,
            upvotes=post.upvotes,
            downvotes=post.downvotes,
            user_vote=user_vote,
            created_at=post.created_at,
        )

    @staticmethod
    def _comment_response(comment: GroupPostComment, author: User, user_vote: int) -> GroupCommentResponse:
        return GroupCommentResponse(
            id=comment.id,
            post_id=comment.post_id,
            author_id=comment.author_id,
            author_name=author.full_name,
            author_avatar=author.avatar,
            content=comment.content,
            image_path=comment.image_path,
            vote_count=comment.vote_count,
            upvotes=comment.upvotes,
            downvotes=comment.downvotes,
            user_vote=user_vote,
            created_at=comment.created_at,
        )

    @staticmethod
    def _event_response(event: GroupEvent, tally: Dict[str, int], user_response) -> GroupEventResponse:
        return GroupEventResponse(
            id=event.id,
            group_id=event.group_id,
            creator_id=event.creator_id,
            title=event.title,
            description=event.description,
            event_date=event.event_date,
            created_at=event.created_at,
            going_count=tally.get("going", 0),
            not_going_count=tally.get("not_going", 0),
            user_response=user_response,
        )


group_content_service = GroupContentService()
