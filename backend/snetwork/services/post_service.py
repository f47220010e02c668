"""
S-Network Backend — Post Service
==================================

What:  Creating, listing, reading, deleting and voting on feed posts.
Who:   Post routes and the user posts endpoint.

Visibility (viewer V, post P by author A) is one SQL clause so the feed,
the per-user list and single reads agree:

    P.privacy = 'public'
    OR P.user_id = V
    OR (P.privacy = 'almost_private' AND V follows A)
    OR (P.privacy = 'private' AND post_access(P, V) exists)

Feed ordering: created_at DESC, id DESC (id breaks same-second ties).
"""

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, delete, desc, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.exceptions import ForbiddenError, NotFoundError, ValidationError
from snetwork.models.follow import Follower
from snetwork.models.post import Comment, Post, PostAccess
from snetwork.models.user import User
from snetwork.schemas.common import VoteResponse
from snetwork.schemas.post import PostCreateRequest, PostListResponse, PostResponse
from snetwork.services.base import require_text, translate_db_errors, user_summary
from snetwork.services.notification_service import notification_service
from snetwork.services.vote_service import vote_service

logger = logging.getLogger(__name__)


def visible_to(viewer_id: int):
    """SQL condition: the post row is visible to `viewer_id`."""
    follows_author = exists().where(
        Follower.follower_id == viewer_id,
        Follower.following_id == Post.user_id,
    )
    has_access = exists().where(
        PostAccess.post_id == Post.id,
        PostAccess.follower_id == viewer_id,
    )
    return or_(
        Post.privacy == "public",
        Post.user_id == viewer_id,
        and_(Post.privacy == "almost_private", follows_author),
        and_(Post.privacy == "private", has_access),
    )


class PostService:
    """
    Business logic for feed posts.

    Responsibilities:
        - create_post(): post + private access list in one transaction
        - list_feed() / list_user_posts(): visible posts, newest first
        - get_post() / require_visible(): single reads with 404/403
        - delete_post(): post, comments and every related vote
        - vote(): toggle vote plus the post_like notification
    """

    async def create_post(self, db: AsyncSession, author: User, data: PostCreateRequest) -> PostResponse:
        """
        Raises:
            ValidationError: blank content, or a private post listing a
                             user who does not follow the author
        """
        content = require_text(data.content, "content", message="Post content is required")
        allowed: List[int] = []
        if data.privacy == "private":
            allowed = sorted(set(data.allowed_followers))
            if allowed:
                result = await db.execute(
                    select(Follower.follower_id).where(
                        Follower.following_id == author.id,
                        Follower.follower_id.in_(allowed),
                    )
                )
                followers = set(result.scalars().all())
                strangers = [uid for uid in allowed if uid not in followers]
                if strangers:
                    raise ValidationError(
                        message="Private posts can only be shared with your followers",
                        field="allowed_followers",
                        context={"invalid_ids": strangers},
                    )

        with translate_db_errors("create the post", user_id=author.id):
            post = Post(
                user_id=author.id,
                title=(data.title or "").strip() or None,
                content=content,
                image_url=data.image_url,
                privacy=data.privacy,
            )
            db.add(post)
            await db.flush()
            for follower_id in allowed:
                db.add(PostAccess(post_id=post.id, follower_id=follower_id))
            await db.flush()
            await db.refresh(post)

        logger.info("Post %s created by user %s (%s)", post.id, author.id, post.privacy)
        return self._to_response(post, author, viewer_id=author.id, comment_count=0, user_vote=0)

    async def list_feed(
        self, db: AsyncSession, viewer: User, limit: int = 20, offset: int = 0
    ) -> PostListResponse:
        return await self._list(db, viewer, limit, offset)

    async def list_user_posts(
        self, db: AsyncSession, viewer: User, user_id: int, limit: int = 20, offset: int = 0
    ) -> PostListResponse:
        if await db.get(User, user_id) is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return await self._list(db, viewer, limit, offset, author_id=user_id)

    async def get_post(self, db: AsyncSession, viewer: User, post_id: int) -> PostResponse:
        post = await self.require_visible(db, viewer, post_id)
        author = await db.get(User, post.user_id)
        comment_count = await db.scalar(
            select(func.count(Comment.id)).where(Comment.post_id == post.id)
        )
        user_vote = await vote_service.get_user_vote(db, viewer.id, "post", post.id)
        return self._to_response(post, author, viewer.id, int(comment_count or 0), user_vote)

    async def require_visible(self, db: AsyncSession, viewer: User, post_id: int) -> Post:
        """Load a post the viewer may see. Missing → 404, hidden → 403."""
        post = await db.get(Post, post_id)
        if post is None:
            raise NotFoundError(resource="post", resource_id=post_id)
        visible = await db.scalar(
            select(Post.id).where(Post.id == post_id, visible_to(viewer.id))
        )
        if visible is None:
            raise ForbiddenError(
                message="You do not have permission to view this post",
                context={"post_id": post_id},
            )
        return post

    async def delete_post(self, db: AsyncSession, viewer: User, post_id: int) -> None:
        post = await db.get(Post, post_id)
        if post is None:
            raise NotFoundError(resource="post", resource_id=post_id)
        if post.user_id != viewer.id:
            raise ForbiddenError(message="You can only delete your own posts", context={"post_id": post_id})

        with translate_db_errors("delete the post", post_id=post_id):
            comment_ids = (
                await db.execute(select(Comment.id).where(Comment.post_id == post_id))
            ).scalars().all()
            await vote_service.purge_votes(db, "comment", comment_ids)
            await vote_service.purge_votes(db, "post", [post_id])
            await db.execute(delete(Comment).where(Comment.post_id == post_id))
            result = await db.execute(delete(Post).where(Post.id == post_id))
        if not result.rowcount:
            raise NotFoundError(resource="post", resource_id=post_id)
        logger.info("Post %s deleted by user %s (%d comments)", post_id, viewer.id, len(comment_ids))

    async def vote(self, db: AsyncSession, viewer: User, post_id: int, vote_type: int) -> VoteResponse:
        post = await self.require_visible(db, viewer, post_id)
        response, previous = await vote_service.cast_vote(db, viewer.id, "post", post_id, vote_type)
        if previous == 0 and response.user_vote == 1 and post.user_id != viewer.id:
            await notification_service.notify_post_like(db, post.user_id, viewer, post_id)
        return response

    # ── Internals ─────────────────────────────────────────────────────────

    async def _list(
        self,
        db: AsyncSession,
        viewer: User,
        limit: int,
        offset: int,
        author_id: Optional[int] = None,
    ) -> PostListResponse:
        comment_count = (
            select(func.count(Comment.id))
            .where(Comment.post_id == Post.id)
            .correlate(Post)
            .scalar_subquery()
        )
        query = (
            select(Post, User, comment_count)
            .join(User, User.id == Post.user_id)
            .where(visible_to(viewer.id))
        )
        if author_id is not None:
            query = query.where(Post.user_id == author_id)

        # One extra row tells whether another page exists
        query = (
            query.order_by(desc(Post.created_at), desc(Post.id))
            .offset(offset)
            .limit(limit + 1)
        )
        with translate_db_errors("load posts", viewer_id=viewer.id):
            rows: Sequence[Tuple[Post, User, int]] = (await db.execute(query)).all()
            has_more = len(rows) > limit
            rows = rows[:limit]
            votes = await vote_service.get_user_votes(db, viewer.id, "post", [p.id for p, _, _ in rows])

        return PostListResponse(
            posts=[
                self._to_response(post, author, viewer.id, int(count or 0), votes.get(post.id, 0))
                for post, author, count in rows
            ],
            page=offset // limit + 1,
            limit=limit,
            offset=offset,
            has_more=has_more,
        )

    @staticmethod
    def _to_response(
        post: Post, author: User, viewer_id: int, comment_count: int, user_vote: int
    ) -> PostResponse:
        return PostResponse(
            id=post.id,
            user_id=post.user_id,
            title=post.title,
            content=post.content,
            image_url=post.image_url,
            privacy=post.privacy,
            upvotes=post.upvotes,
            downvotes=post.downvotes,
            created_at=post.created_at,
            updated_at=post.updated_at,
            author=user_summary(author),
            comment_count=comment_count,
            user_vote=user_vote,
            is_author=post.user_id == viewer_id,
        )


post_service = PostService()
