"""
S-Network Backend — API Endpoint Tests
========================================

What:  End-to-end checks through the HTTP layer.
How:   HTTPX AsyncClient against the ASGI app; every request commits to the
       per-test in-memory database (see conftest.py).

What we test:
    ✅ health endpoint
    ✅ register / login status codes
    ✅ X-User-ID identity: missing, malformed, unknown
    ✅ error body shape and request id propagation
    ✅ fixed paths win over {id} paths (/users/search, /groups/mine)
    ✅ post listings honour both offset and page
    ✅ a follow → post → vote → notification round through the API
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import TEST_PASSWORD, as_user, register
from snetwork import database


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_database_outage_is_503(self, test_client):
        broken = MagicMock()
        broken.connect.side_effect = SQLAlchemyError("database is locked")
        with patch.object(database, "engine", broken):
            response = await test_client.get("/health")
        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"


class TestAuth:

    @pytest.mark.asyncio
    async def test_register_and_login(self, test_client):
        created = await register(test_client, "Grace")
        assert "password" not in created and "password_hash" not in created

        ok = await test_client.post("/api/login", json={"email": "GRACE@example.com", "password": TEST_PASSWORD})
        bad = await test_client.post("/api/login", json={"email": "grace@example.com", "password": "wrong"})

        assert ok.status_code == 200 and ok.json()["id"] == created["id"]
        assert bad.status_code == 401
        assert bad.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, test_client):
        await register(test_client, "Grace")
        response = await test_client.post(
            "/api/register",
            json={
                "email": "grace@example.com",
                "password": TEST_PASSWORD,
                "first_name": "Other",
                "last_name": "Person",
                "date_of_birth": "1990-01-01",
            },
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_schema_errors_are_422(self, test_client):
        response = await test_client.post("/api/register", json={"email": "x@example.com"})
        assert response.status_code == 422


class TestIdentityHeader:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"X-User-ID": "abc"}, {"X-User-ID": "0"}, {"X-User-ID": "999"}])
    async def test_rejected_identities(self, test_client, headers):
        response = await test_client.get("/api/profile", headers=headers)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_error_body_shape(self, test_client):
        response = await test_client.get("/api/profile", headers={"X-Request-ID": "trace-42"})
        body = response.json()
        assert set(body) == {"error", "message", "details", "request_id"}
        assert body["request_id"] == "trace-42"
        assert response.headers["X-Request-ID"] == "trace-42"

    @pytest.mark.asyncio
    async def test_own_profile(self, test_client):
        grace = await register(test_client, "Grace")
        response = await test_client.get("/api/profile", headers=as_user(grace["id"]))
        assert response.status_code == 200
        assert response.json()["email"] == "grace@example.com"


class TestRouting:

    @pytest.mark.asyncio
    async def test_fixed_user_paths(self, test_client):
        grace = await register(test_client, "Grace", nickname="amazing")
        headers = as_user(grace["id"])

        search = await test_client.get("/api/users/search", params={"q": "gra"}, headers=headers)
        nickname = await test_client.get("/api/users/nickname-available", params={"nickname": "amazing"})
        missing = await test_client.get("/api/users/4242", headers=headers)

        assert search.status_code == 200 and len(search.json()["users"]) == 1
        assert nickname.json() == {"nickname": "amazing", "available": False}
        assert missing.status_code == 404
        assert missing.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_groups_mine_and_public(self, test_client):
        grace = await register(test_client, "Grace")
        headers = as_user(grace["id"])
        created = await test_client.post("/api/groups", json={"name": "Navy"}, headers=headers)
        assert created.status_code == 201

        mine = await test_client.get("/api/groups/mine", headers=headers)
        public = await test_client.get("/api/groups/public", headers=headers)

        assert [g["name"] for g in mine.json()["groups"]] == ["Navy"]
        assert [g["name"] for g in public.json()["groups"]] == ["Navy"]

    @pytest.mark.asyncio
    async def test_post_listing_offset_and_page(self, test_client):
        alice = await register(test_client, "Alice")
        headers = as_user(alice["id"])
        for i in range(1, 5):
            await test_client.post("/api/posts", json={"content": f"p{i}"}, headers=headers)

        async def contents(path, **params):
            response = await test_client.get(path, params=params, headers=headers)
            assert response.status_code == 200
            return [p["content"] for p in response.json()["posts"]]

        assert await contents("/api/posts", limit=2, offset=0) == ["p4", "p3"]
        assert await contents("/api/posts", limit=2, offset=1) == ["p3", "p2"]
        assert await contents("/api/posts", limit=2, page=2) == ["p2", "p1"]
        assert await contents(f"/api/users/{alice['id']}/posts", limit=2, offset=3) == ["p1"]

    @pytest.mark.asyncio
    async def test_unknown_notification_type(self, test_client):
        grace = await register(test_client, "Grace")
        response = await test_client.get(
            "/api/notifications", params={"type": "poke"}, headers=as_user(grace["id"])
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "type"


class TestSocialFlow:

    @pytest.mark.asyncio
    async def test_follow_post_vote_notify(self, test_client):
        author = await register(test_client, "Ada", is_public=False)
        fan = await register(test_client, "Bob")
        as_author, as_fan = as_user(author["id"]), as_user(fan["id"])

        requested = await test_client.post(f"/api/follow/{author['id']}", headers=as_fan)
        assert requested.json()["status"] == "request_sent"

        unread = await test_client.get("/api/notifications/unread", headers=as_author)
        assert unread.json() == {"unread_count": 1}

        request_id = requested.json()["request_id"]
        accepted = await test_client.post(f"/api/follow/requests/{request_id}/accept", headers=as_author)
        assert accepted.status_code == 200

        post = await test_client.post(
            "/api/posts", json={"content": "followers only", "privacy": "almost_private"}, headers=as_author
        )
        assert post.status_code == 201
        post_id = post.json()["id"]

        feed = await test_client.get("/api/posts", headers=as_fan)
        assert [p["id"] for p in feed.json()["posts"]] == [post_id]

        vote = await test_client.post(f"/api/posts/{post_id}/vote", json={"vote_type": 1}, headers=as_fan)
        assert vote.json()["upvotes"] == 1 and vote.json()["user_vote"] == 1

        listing = await test_client.get("/api/notifications", params={"type": "post_like"}, headers=as_author)
        assert [n["reference_id"] for n in listing.json()["notifications"]] == [post_id]

    @pytest.mark.asyncio
    async def test_hidden_post_is_403(self, test_client):
        author = await register(test_client, "Ada")
        stranger = await register(test_client, "Eve")
        post = await test_client.post(
            "/api/posts", json={"content": "friends", "privacy": "almost_private"}, headers=as_user(author["id"])
        )

        response = await test_client.get(f"/api/posts/{post.json()['id']}", headers=as_user(stranger["id"]))
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_invalid_vote_value_is_422(self, test_client):
        author = await register(test_client, "Ada")
        headers = as_user(author["id"])
        post = await test_client.post("/api/posts", json={"content": "hi"}, headers=headers)

        response = await test_client.post(f"/api/posts/{post.json()['id']}/vote", json={"vote_type": 5}, headers=headers)
        assert response.status_code == 422
