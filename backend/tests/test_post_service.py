"""
S-Network Backend — Post & Comment Service Tests
==================================================

What:  Post privacy, feed paging, deletion and comments.

What we test:
    ✅ public / almost_private / private visibility for author, follower, stranger
    ✅ private posts only accept current followers as viewers
    ✅ feed is newest first with a has_more flag; any offset is honoured
    ✅ deleting a post removes its comments and votes; only the author may
    ✅ upvoting someone else's post notifies them once
    ✅ comment rules: content or image required, who may delete
"""

import pytest
from sqlalchemy import func, select

from snetwork.exceptions import ForbiddenError, NotFoundError, ValidationError
from snetwork.models.notification import Notification
from snetwork.models.post import Comment
from snetwork.models.vote import Vote
from snetwork.schemas.post import CommentCreateRequest, PostCreateRequest
from snetwork.services.comment_service import comment_service
from snetwork.services.follow_service import follow_service
from snetwork.services.post_service import post_service


async def notifications_of(db, user_id, type_):
    result = await db.execute(
        select(Notification).where(Notification.receiver_id == user_id, Notification.type == type_)
    )
    return list(result.scalars().all())


class TestPostVisibility:

    @pytest.mark.asyncio
    async def test_privacy_levels(self, db_session, make_user):
        author = await make_user("Ada")
        follower = await make_user("Bob")
        listed = await make_user("Cleo")
        stranger = await make_user("Dan")
        await follow_service.follow(db_session, follower, author.id)
        await follow_service.follow(db_session, listed, author.id)

        public = await post_service.create_post(db_session, author, PostCreateRequest(content="public"))
        followers_only = await post_service.create_post(
            db_session, author, PostCreateRequest(content="followers", privacy="almost_private")
        )
        private = await post_service.create_post(
            db_session,
            author,
            PostCreateRequest(content="private", privacy="private", allowed_followers=[listed.id]),
        )

        async def feed_ids(viewer):
            page = await post_service.list_feed(db_session, viewer)
            return {p.id for p in page.posts}

        assert await feed_ids(author) == {public.id, followers_only.id, private.id}
        assert await feed_ids(follower) == {public.id, followers_only.id}
        assert await feed_ids(listed) == {public.id, followers_only.id, private.id}
        assert await feed_ids(stranger) == {public.id}

    @pytest.mark.asyncio
    async def test_hidden_post_is_forbidden_and_missing_post_is_not_found(self, db_session, make_user):
        author = await make_user("Ada")
        stranger = await make_user("Dan")
        post = await post_service.create_post(
            db_session, author, PostCreateRequest(content="followers", privacy="almost_private")
        )

        with pytest.raises(ForbiddenError):
            await post_service.get_post(db_session, stranger, post.id)
        with pytest.raises(NotFoundError):
            await post_service.get_post(db_session, stranger, post.id + 100)

    @pytest.mark.asyncio
    async def test_private_post_rejects_non_followers(self, db_session, make_user):
        author = await make_user("Ada")
        stranger = await make_user("Dan")

        with pytest.raises(ValidationError) as exc_info:
            await post_service.create_post(
                db_session,
                author,
                PostCreateRequest(content="secret", privacy="private", allowed_followers=[stranger.id]),
            )
        assert exc_info.value.context["invalid_ids"] == [stranger.id]

    @pytest.mark.asyncio
    async def test_blank_content_rejected(self, db_session, make_user):
        author = await make_user("Ada")
        with pytest.raises(ValidationError):
            await post_service.create_post(db_session, author, PostCreateRequest(content="   "))


class TestFeedPaging:

    @pytest.mark.asyncio
    async def test_newest_first_with_has_more(self, db_session, make_user):
        author = await make_user("Ada")
        created = [
            await post_service.create_post(db_session, author, PostCreateRequest(content=f"post {i}"))
            for i in range(5)
        ]

        first = await post_service.list_feed(db_session, author, limit=2)
        last = await post_service.list_feed(db_session, author, limit=2, offset=4)

        assert [p.id for p in first.posts] == [created[4].id, created[3].id]
        assert first.has_more is True
        assert [p.id for p in last.posts] == [created[0].id]
        assert last.has_more is False
        assert (last.page, last.offset) == (3, 4)

    @pytest.mark.asyncio
    async def test_offset_need_not_align_with_limit(self, db_session, make_user):
        author = await make_user("Ada")
        created = [
            await post_service.create_post(db_session, author, PostCreateRequest(content=f"post {i}"))
            for i in range(4)
        ]

        window = await post_service.list_feed(db_session, author, limit=2, offset=1)

        assert [p.id for p in window.posts] == [created[2].id, created[1].id]
        assert window.offset == 1 and window.has_more is True

    @pytest.mark.asyncio
    async def test_user_posts_of_unknown_user(self, db_session, make_user):
        viewer = await make_user()
        with pytest.raises(NotFoundError):
            await post_service.list_user_posts(db_session, viewer, 12345)


class TestPostDeletionAndVotes:

    @pytest.mark.asyncio
    async def test_delete_removes_comments_and_votes(self, db_session, make_user):
        author = await make_user("Ada")
        reader = await make_user("Bob")
        post = await post_service.create_post(db_session, author, PostCreateRequest(content="bye"))
        comment = await comment_service.add_comment(
            db_session, reader, post.id, CommentCreateRequest(content="nice")
        )
        await post_service.vote(db_session, reader, post.id, 1)
        await comment_service.vote(db_session, author, post.id, comment.id, 1)

        with pytest.raises(ForbiddenError):
            await post_service.delete_post(db_session, reader, post.id)

        await post_service.delete_post(db_session, author, post.id)

        assert await db_session.scalar(select(func.count(Comment.id))) == 0
        assert await db_session.scalar(select(func.count(Vote.id))) == 0

    @pytest.mark.asyncio
    async def test_upvote_notifies_author_once(self, db_session, make_user):
        author = await make_user("Ada", "Lovelace")
        fan = await make_user("Bob", "Builder")
        post = await post_service.create_post(db_session, author, PostCreateRequest(content="hi"))

        response = await post_service.vote(db_session, fan, post.id, 1)
        await post_service.vote(db_session, fan, post.id, 1)  # toggled off
        await post_service.vote(db_session, fan, post.id, -1)
        await post_service.vote(db_session, author, post.id, 1)  # own post

        assert response.upvotes == 1
        likes = await notifications_of(db_session, author.id, "post_like")
        assert len(likes) == 1
        assert likes[0].content == "Bob Builder liked your post"
        assert likes[0].reference_id == post.id


class TestComments:

    @pytest.mark.asyncio
    async def test_comment_needs_content_or_image(self, db_session, make_user):
        author = await make_user("Ada")
        post = await post_service.create_post(db_session, author, PostCreateRequest(content="hi"))

        with pytest.raises(ValidationError):
            await comment_service.add_comment(db_session, author, post.id, CommentCreateRequest(content=" "))

        image_only = await comment_service.add_comment(
            db_session, author, post.id, CommentCreateRequest(image_url="/img/cat.png")
        )
        assert image_only.content == ""

    @pytest.mark.asyncio
    async def test_commenting_notifies_post_author(self, db_session, make_user):
        author = await make_user("Ada")
        reader = await make_user("Bob", "Builder")
        post = await post_service.create_post(db_session, author, PostCreateRequest(content="hi"))

        await comment_service.add_comment(db_session, reader, post.id, CommentCreateRequest(content="hey"))
        await comment_service.add_comment(db_session, author, post.id, CommentCreateRequest(content="thanks"))

        notes = await notifications_of(db_session, author.id, "post_comment")
        assert [n.content for n in notes] == ["Bob Builder commented on your post"]

        listing = await comment_service.list_comments(db_session, reader, post.id)
        assert [c.content for c in listing.comments] == ["thanks", "hey"]

    @pytest.mark.asyncio
    async def test_who_may_delete_a_comment(self, db_session, make_user):
        author = await make_user("Ada")
        commenter = await make_user("Bob")
        bystander = await make_user("Cleo")
        post = await post_service.create_post(db_session, author, PostCreateRequest(content="hi"))
        first = await comment_service.add_comment(db_session, commenter, post.id, CommentCreateRequest(content="1"))
        second = await comment_service.add_comment(db_session, commenter, post.id, CommentCreateRequest(content="2"))

        with pytest.raises(ForbiddenError):
            await comment_service.delete_comment(db_session, bystander, post.id, first.id)

        await comment_service.delete_comment(db_session, commenter, post.id, first.id)
        await comment_service.delete_comment(db_session, author, post.id, second.id)

        with pytest.raises(NotFoundError):
            await comment_service.delete_comment(db_session, author, post.id, second.id)
