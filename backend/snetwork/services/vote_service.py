"""
S-Network Backend — Vote Service
==================================

What:  Toggle-style voting on posts, comments, group posts and group post
       comments, with the denormalized counters kept in step.
Who:   Called by PostService, CommentService and GroupContentService after
       they have checked that the caller may see the target.

Toggle rule (p = previous vote or 0, v = requested vote):

    p == 0    → INSERT          new state n = v
    p == v    → DELETE          new state n = 0    (clicking again removes it)
    p == -v   → UPDATE          new state n = v    (switching sides)

Counter deltas are derived from (p, n) so every case uses one formula:

    upvotes    += [n == 1]  - [p == 1]
    downvotes  += [n == -1] - [p == -1]
    vote_count += n - p

Only the counter columns a target actually has are touched:

    post                → upvotes, downvotes
    comment             → vote_count
    group_post          → upvotes, downvotes
    group_post_comment  → upvotes, downvotes, vote_count
"""

import logging
from typing import Dict, Iterable, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.exceptions import NotFoundError, ValidationError
from snetwork.models.group_content import GroupPost, GroupPostComment
from snetwork.models.post import Comment, Post
from snetwork.models.vote import Vote
from snetwork.schemas.common import VoteResponse
from snetwork.services.base import translate_db_errors

logger = logging.getLogger(__name__)

# content_type → (model, counter columns present on it)
TARGETS = {
    "post": (Post, ("upvotes", "downvotes")),
    "comment": (Comment, ("vote_count",)),
    "group_post": (GroupPost, ("upvotes", "downvotes")),
    "group_post_comment": (GroupPostComment, ("upvotes", "downvotes", "vote_count")),
}


def counter_deltas(previous: int, new: int) -> Dict[str, int]:
    """Counter movement for a transition from `previous` to `new` (each -1, 0 or 1)."""
    return {
        "upvotes": int(new == 1) - int(previous == 1),
        "downvotes": int(new == -1) - int(previous == -1),
        "vote_count": new - previous,
    }


class VoteService:
    """
    Business logic for votes.

    Responsibilities:
        - cast_vote(): apply the toggle rule and return the fresh counters
        - get_user_vote() / get_user_votes(): the viewer's current votes
        - purge_votes(): remove votes of deleted targets (no FK on content_id)
    """

    async def cast_vote(
        self,
        db: AsyncSession,
        user_id: int,
        content_type: str,
        content_id: int,
        vote_type: int,
    ) -> Tuple[VoteResponse, int]:
        """
        Apply one vote click.

        Returns:
            (VoteResponse with the target's counters after the change,
             the previous vote: -1, 0 or 1)

        Raises:
            ValidationError: unknown content type or vote value
            NotFoundError: target row does not exist
        """
        if content_type not in TARGETS:
            raise ValidationError(message=f"Unknown content type: {content_type}", field="content_type")
        if vote_type not in (-1, 1):
            raise ValidationError(message="vote_type must be 1 or -1", field="vote_type")

        model, counters = TARGETS[content_type]

        with translate_db_errors("record the vote", content_type=content_type, content_id=content_id):
            target = await db.get(model, content_id)
            if target is None:
                raise NotFoundError(resource=content_type, resource_id=content_id)

            existing = await db.scalar(
                select(Vote).where(
                    Vote.user_id == user_id,
                    Vote.content_type == content_type,
                    Vote.content_id == content_id,
                )
            )
            previous = existing.vote_type if existing else 0

            if existing is None:
                db.add(Vote(
                    user_id=user_id,
                    content_type=content_type,
                    content_id=content_id,
                    vote_type=vote_type,
                ))
                new = vote_type
            elif previous == vote_type:
                await db.delete(existing)
                new = 0
            else:
                existing.vote_type = vote_type
                new = vote_type

            deltas = counter_deltas(previous, new)
            values = {
                name: getattr(model, name) + deltas[name]
                for name in counters
                if deltas[name]
            }
            if values:
                await db.execute(update(model).where(model.id == content_id).values(**values))
            await db.flush()
            await db.refresh(target)

        logger.info(
            "Vote by user %s on %s %s: %d → %d", user_id, content_type, content_id, previous, new
        )

        response = VoteResponse(content_type=content_type, content_id=content_id, user_vote=new)
        for name in counters:
            setattr(response, name, getattr(target, name))
        return response, previous

    async def get_user_vote(
        self, db: AsyncSession, user_id: int, content_type: str, content_id: int
    ) -> int:
        vote_type = await db.scalar(
            select(Vote.vote_type).where(
                Vote.user_id == user_id,
                Vote.content_type == content_type,
                Vote.content_id == content_id,
            )
        )
        return vote_type or 0

    async def get_user_votes(
        self, db: AsyncSession, user_id: int, content_type: str, content_ids: Iterable[int]
    ) -> Dict[int, int]:
        """Viewer's votes for a page of targets, keyed by content id (missing = 0)."""
        ids = list(content_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(Vote.content_id, Vote.vote_type).where(
                Vote.user_id == user_id,
                Vote.content_type == content_type,
                Vote.content_id.in_(ids),
            )
        )
        return {content_id: vote_type for content_id, vote_type in result.all()}

    async def purge_votes(self, db: AsyncSession, content_type: str, content_ids: Iterable[int]) -> None:
        ids = list(content_ids)
        if not ids:
            return
        await db.execute(
            delete(Vote).where(Vote.content_type == content_type, Vote.content_id.in_(ids))
        )


vote_service = VoteService()
