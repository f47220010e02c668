"""
S-Network Backend — Comment Service
=====================================

What:  Comments on feed posts and votes on those comments.
Who:   Post routes. Every operation first checks the parent post is visible
       to the caller (through PostService.require_visible).
"""

import logging

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.exceptions import ForbiddenError, NotFoundError, ValidationError
from snetwork.models.post import Comment, Post
from snetwork.models.user import User
from snetwork.schemas.common import VoteResponse
from snetwork.schemas.post import CommentCreateRequest, CommentListResponse, CommentResponse
from snetwork.services.base import translate_db_errors, user_summary
from snetwork.services.notification_service import notification_service
from snetwork.services.post_service import post_service
from snetwork.services.vote_service import vote_service

logger = logging.getLogger(__name__)


class CommentService:

    async def add_comment(
        self, db: AsyncSession, viewer: User, post_id: int, data: CommentCreateRequest
    ) -> CommentResponse:
        post = await post_service.require_visible(db, viewer, post_id)
        content = (data.content or "").strip()
        image_url = (data.image_url or "").strip() or None
        if not content and not image_url:
            raise ValidationError(message="Comment content or image is required", field="content")

        with translate_db_errors("add the comment", post_id=post_id):
            comment = Comment(post_id=post.id, user_id=viewer.id, content=content, image_url=image_url)
            db.add(comment)
            await db.flush()
            await db.refresh(comment)

            if post.user_id != viewer.id:
                await notification_service.notify_post_comment(db, post.user_id, viewer, post.id)

        logger.info("Comment %s added to post %s by user %s", comment.id, post_id, viewer.id)
        return self._to_response(comment, viewer, user_vote=0)

    async def list_comments(self, db: AsyncSession, viewer: User, post_id: int) -> CommentListResponse:
        await post_service.require_visible(db, viewer, post_id)
        result = await db.execute(
            select(Comment, User)
            .join(User, User.id == Comment.user_id)
            .where(Comment.post_id == post_id)
            .order_by(desc(Comment.created_at), desc(Comment.id))
        )
        rows = result.all()
        votes = await vote_service.get_user_votes(db, viewer.id, "comment", [c.id for c, _ in rows])
        return CommentListResponse(
            comments=[self._to_response(c, author, votes.get(c.id, 0)) for c, author in rows]
        )

    async def delete_comment(self, db: AsyncSession, viewer: User, post_id: int, comment_id: int) -> None:
        """Allowed for the comment's author and for the post's author."""
        comment = await self._require_comment(db, post_id, comment_id)
        post = await db.get(Post, post_id)
        if viewer.id not in (comment.user_id, post.user_id):
            raise ForbiddenError(
                message="You can only delete your own comments or comments on your posts",
                context={"comment_id": comment_id},
            )
        with translate_db_errors("delete the comment", comment_id=comment_id):
            await vote_service.purge_votes(db, "comment", [comment_id])
            await db.delete(comment)
            await db.flush()
        logger.info("Comment %s deleted by user %s", comment_id, viewer.id)

    async def vote(
        self, db: AsyncSession, viewer: User, post_id: int, comment_id: int, vote_type: int
    ) -> VoteResponse:
        await post_service.require_visible(db, viewer, post_id)
        await self._require_comment(db, post_id, comment_id)
        response, _ = await vote_service.cast_vote(db, viewer.id, "comment", comment_id, vote_type)
        return response

    async def _require_comment(self, db: AsyncSession, post_id: int, comment_id: int) -> Comment:
        comment = await db.get(Comment, comment_id)
        if comment is None or comment.post_id != post_id:
            raise NotFoundError(resource="comment", resource_id=comment_id)
        return comment

    @staticmethod
    def _to_response(comment: Comment, author: User, user_vote: int) -> CommentResponse:
        return CommentResponse(
            id=comment.id,
            post_id=comment.post_id,
            user_id=comment.user_id,
            content=comment.content,
            image_url=comment.image_url,
            vote_count=comment.vote_count,
            created_at=comment.created_at,
            author=user_summary(author),
            user_vote=user_vote,
        )


comment_service = CommentService()
