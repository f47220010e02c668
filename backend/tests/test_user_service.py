"""
S-Network Backend — User Service Tests
========================================

What:  Registration, login, profile updates and user search.

What we test:
    ✅ register normalizes email, hashes the password, rejects duplicates
    ✅ login accepts the right password only, with one error message
    ✅ partial profile update leaves unspecified fields alone
    ✅ search is case-insensitive and ranks exact matches first
    ✅ LIKE wildcards in a query match only themselves
    ✅ password hashes verify and resist tampering
"""

from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from snetwork.exceptions import AuthenticationError, ConflictError, ValidationError
from snetwork.models.user import User
from snetwork.schemas.user import ProfileUpdateRequest, RegisterRequest
from snetwork.security import hash_password, verify_password
from snetwork.services.user_service import user_service


def registration(**overrides) -> RegisterRequest:
    data = {
        "email": "Grace@Example.com",
        "password": "hopper-1906",
        "first_name": "Grace",
        "last_name": "Hopper",
        "date_of_birth": date(1906, 12, 9),
    }
    data.update(overrides)
    return RegisterRequest(**data)


class TestRegistration:

    @pytest.mark.asyncio
    async def test_register_and_login(self, db_session):
        created = await user_service.register(db_session, registration(nickname="amazing"))

        assert created.email == "grace@example.com"
        assert created.nickname == "amazing"
        assert created.follower_count == 0

        stored = await db_session.get(User, created.id)
        assert stored.password_hash != "hopper-1906"

        logged_in = await user_service.authenticate(db_session, "GRACE@example.com", "hopper-1906")
        assert logged_in.id == created.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, db_session):
        await user_service.register(db_session, registration())

        with pytest.raises(AuthenticationError) as wrong_password:
            await user_service.authenticate(db_session, "grace@example.com", "nope")
        with pytest.raises(AuthenticationError) as unknown_email:
            await user_service.authenticate(db_session, "nobody@example.com", "hopper-1906")
        assert wrong_password.value.message == unknown_email.value.message

    @pytest.mark.asyncio
    async def test_duplicates_rejected(self, db_session):
        await user_service.register(db_session, registration(nickname="amazing"))

        with pytest.raises(ConflictError):
            await user_service.register(db_session, registration(email="GRACE@example.com"))
        with pytest.raises(ConflictError):
            await user_service.register(db_session, registration(email="other@example.com", nickname="amazing"))

    @pytest.mark.asyncio
    async def test_short_password_and_blank_name(self, db_session):
        with pytest.raises(ValidationError):
            await user_service.register(db_session, registration(password="123"))
        with pytest.raises(ValidationError):
            await user_service.register(db_session, registration(first_name="  "))

    def test_email_without_at_sign_fails_schema_validation(self):
        with pytest.raises(ValueError):
            registration(email="grace.example.com")


class TestProfileUpdate:

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, make_user):
        user = await make_user("Ada", "Lovelace", about_me="Analyst")

        updated = await user_service.update_profile(
            db_session, user, ProfileUpdateRequest(nickname="  countess ")
        )

        assert updated.nickname == "countess"
        assert updated.about_me == "Analyst"
        assert updated.first_name == "Ada"

    @pytest.mark.asyncio
    async def test_nickname_taken_by_someone_else(self, db_session, make_user):
        await make_user("Ada", nickname="countess")
        other = await make_user("Bob")

        with pytest.raises(ConflictError):
            await user_service.update_profile(db_session, other, ProfileUpdateRequest(nickname="countess"))

        availability = await user_service.nickname_available(db_session, "countess")
        assert availability.available is False

    @pytest.mark.asyncio
    async def test_constraint_failure_at_flush_is_conflict(self, db_session, make_user):
        await make_user("Ada", nickname="countess")
        other = await make_user("Bob")
        other_id = other.id

        # Another request claimed the nickname after the availability check
        with patch.object(user_service, "_nickname_free", AsyncMock(return_value=True)):
            with pytest.raises(ConflictError) as exc_info:
                await user_service.update_profile(db_session, other, ProfileUpdateRequest(nickname="countess"))

        assert exc_info.value.message.startswith("Could not update the profile")
        assert exc_info.value.context["user_id"] == other_id


class TestSearch:

    @pytest.mark.asyncio
    async def test_exact_match_ranks_first(self, db_session, make_user):
        await make_user("Annabel", "Lee")
        await make_user("Ann", "Zed")
        await make_user("Bob", "Marley")

        result = await user_service.search(db_session, "ANN")

        assert [u.first_name for u in result.users] == ["Ann", "Annabel"]

    @pytest.mark.asyncio
    async def test_full_name_and_nickname(self, db_session, make_user):
        await make_user("Grace", "Hopper", nickname="amazing")

        by_name = await user_service.search(db_session, "grace hop")
        by_nickname = await user_service.search(db_session, "Amaz")

        assert len(by_name.users) == 1
        assert by_nickname.users[0].nickname == "amazing"

    @pytest.mark.asyncio
    async def test_wildcards_match_literally(self, db_session, make_user):
        await make_user("Alice", "Smith")
        await make_user("Bob", "Jones")
        await make_user("Percy", "Full100%")
        await make_user("Una", "Score", nickname="under_score")

        percent = await user_service.search(db_session, "%")
        underscore = await user_service.search(db_session, "_")
        backslash = await user_service.search(db_session, "\\")

        assert [u.first_name for u in percent.users] == ["Percy"]
        assert [u.first_name for u in underscore.users] == ["Una"]
        assert backslash.users == []

    @pytest.mark.asyncio
    async def test_blank_query_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await user_service.search(db_session, "  ")


class TestPasswordHashing:

    def test_roundtrip_and_salt(self):
        first = hash_password("correct horse", iterations=1000)
        second = hash_password("correct horse", iterations=1000)

        assert first != second
        assert first.startswith("pbkdf2:sha256:1000$")
        assert verify_password("correct horse", first)
        assert not verify_password("battery staple", first)

    def test_malformed_hash_never_verifies(self):
        assert not verify_password("anything", "not-a-hash")
        assert not verify_password("anything", "md5$1000$00$00")
