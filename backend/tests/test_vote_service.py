"""
S-Network Backend — Vote Service Tests
========================================

What:  The toggle rule and the denormalized counters it maintains.
How:   Real in-memory SQLite; targets are created through the services.

What we test:
    ✅ counter_deltas for insert, toggle-off and switch transitions
    ✅ cast_vote on a post: insert → same again removes → opposite switches
    ✅ comments only carry vote_count, group post comments carry all three
    ✅ unknown content type / vote value rejected, missing target is 404
    ✅ purge_votes removes a deleted target's votes
"""

import pytest
from sqlalchemy import func, select

from snetwork.exceptions import NotFoundError, ValidationError
from snetwork.models.vote import Vote
from snetwork.schemas.group import (
    GroupCommentCreateRequest,
    GroupCreateRequest,
    GroupPostCreateRequest,
)
from snetwork.schemas.post import CommentCreateRequest, PostCreateRequest
from snetwork.services.comment_service import comment_service
from snetwork.services.group_content_service import group_content_service
from snetwork.services.group_service import group_service
from snetwork.services.post_service import post_service
from snetwork.services.vote_service import counter_deltas, vote_service


class TestCounterDeltas:

    def test_new_upvote(self):
        assert counter_deltas(0, 1) == {"upvotes": 1, "downvotes": 0, "vote_count": 1}

    def test_removing_a_downvote(self):
        assert counter_deltas(-1, 0) == {"upvotes": 0, "downvotes": -1, "vote_count": 1}

    def test_switching_up_to_down_moves_net_by_two(self):
        assert counter_deltas(1, -1) == {"upvotes": -1, "downvotes": 1, "vote_count": -2}


class TestCastVote:

    @pytest.mark.asyncio
    async def test_post_vote_toggle_sequence(self, db_session, make_user):
        author = await make_user("Ada")
        voter = await make_user("Bob")
        post = await post_service.create_post(db_session, author, PostCreateRequest(content="hello"))

        first, previous = await vote_service.cast_vote(db_session, voter.id, "post", post.id, 1)
        assert previous == 0
        assert (first.user_vote, first.upvotes, first.downvotes) == (1, 1, 0)
        assert first.vote_count is None

        # Same direction again removes the vote
        second, previous = await vote_service.cast_vote(db_session, voter.id, "post", post.id, 1)
        assert previous == 1
        assert (second.user_vote, second.upvotes, second.downvotes) == (0, 0, 0)
        assert await vote_service.get_user_vote(db_session, voter.id, "post", post.id) == 0

        await vote_service.cast_vote(db_session, voter.id, "post", post.id, 1)
        switched, previous = await vote_service.cast_vote(db_session, voter.id, "post", post.id, -1)
        assert previous == 1
        assert (switched.user_vote, switched.upvotes, switched.downvotes) == (-1, 0, 1)

        rows = await db_session.scalar(select(func.count(Vote.id)).where(Vote.content_id == post.id))
        assert rows == 1

    @pytest.mark.asyncio
    async def test_comment_vote_only_tracks_net_count(self, db_session, make_user):
        author = await make_user("Ada")
        post = await post_service.create_post(db_session, author, PostCreateRequest(content="hello"))
        comment = await comment_service.add_comment(
            db_session, author, post.id, CommentCreateRequest(content="first")
        )
        voters = [await make_user(f"Voter{i}") for i in range(3)]

        for voter in voters[:2]:
            await vote_service.cast_vote(db_session, voter.id, "comment", comment.id, 1)
        response, _ = await vote_service.cast_vote(db_session, voters[2].id, "comment", comment.id, -1)

        assert response.vote_count == 1
        assert response.upvotes is None and response.downvotes is None

    @pytest.mark.asyncio
    async def test_group_post_comment_tracks_all_counters(self, db_session, make_user):
        owner = await make_user("Ada")
        group = await group_service.create_group(db_session, owner, GroupCreateRequest(name="Chess"))
        post = await group_content_service.create_post(
            db_session, owner, group.id, GroupPostCreateRequest(content="Tournament on Friday")
        )
        comment = await group_content_service.create_comment(
            db_session, owner, post.id, GroupCommentCreateRequest(content="Count me in")
        )

        response, _ = await vote_service.cast_vote(
            db_session, owner.id, "group_post_comment", comment.id, -1
        )
        assert (response.upvotes, response.downvotes, response.vote_count) == (0, 1, -1)

    @pytest.mark.asyncio
    async def test_viewer_votes_for_a_page(self, db_session, make_user):
        author = await make_user("Ada")
        posts = [
            await post_service.create_post(db_session, author, PostCreateRequest(content=f"post {i}"))
            for i in range(3)
        ]
        await vote_service.cast_vote(db_session, author.id, "post", posts[0].id, 1)
        await vote_service.cast_vote(db_session, author.id, "post", posts[2].id, -1)

        votes = await vote_service.get_user_votes(db_session, author.id, "post", [p.id for p in posts])
        assert votes == {posts[0].id: 1, posts[2].id: -1}


class TestVoteValidation:

    @pytest.mark.asyncio
    async def test_unknown_content_type(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ValidationError, match="Unknown content type"):
            await vote_service.cast_vote(db_session, user.id, "photo", 1, 1)

    @pytest.mark.asyncio
    async def test_vote_value_out_of_range(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ValidationError):
            await vote_service.cast_vote(db_session, user.id, "post", 1, 2)

    @pytest.mark.asyncio
    async def test_missing_target(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(NotFoundError):
            await vote_service.cast_vote(db_session, user.id, "post", 999, 1)


class TestPurgeVotes:

    @pytest.mark.asyncio
    async def test_only_the_given_targets_are_purged(self, db_session, make_user):
        author = await make_user("Ada")
        keep = await post_service.create_post(db_session, author, PostCreateRequest(content="keep"))
        drop = await post_service.create_post(db_session, author, PostCreateRequest(content="drop"))
        await vote_service.cast_vote(db_session, author.id, "post", keep.id, 1)
        await vote_service.cast_vote(db_session, author.id, "post", drop.id, 1)

        await vote_service.purge_votes(db_session, "post", [drop.id])

        remaining = (await db_session.execute(select(Vote.content_id))).scalars().all()
        assert remaining == [keep.id]
