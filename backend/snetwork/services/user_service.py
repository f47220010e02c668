"""
S-Network Backend — User Service
==================================

What:  Registration, login, profile reads/updates, search, nickname checks.
Who:   Auth and user routes; `get_current_user` resolves identities through
       get_user().

Profile visibility:
    owner or public profile or follower  → every field
    anyone else on a private profile     → name, nickname, avatar, counters;
                                           email / date_of_birth / about_me null
"""

import logging
from typing import Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.config import settings
from snetwork.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from snetwork.models.user import User
from snetwork.schemas.user import (
    NicknameAvailabilityResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
    UserSearchResponse,
)
from snetwork.security import hash_password, verify_password
from snetwork.services.base import require_text, translate_db_errors, user_summary
from snetwork.services.follow_service import follow_service

logger = logging.getLogger(__name__)

# Same message for unknown email and wrong password
INVALID_CREDENTIALS = "Invalid email or password"


class UserService:
    """Business logic for accounts and profiles."""

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_user(self, db: AsyncSession, user_id: int) -> Optional[User]:
        return await db.get(User, user_id)

    async def require_user(self, db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user

    # ── Registration & login ──────────────────────────────────────────────

    async def register(self, db: AsyncSession, data: RegisterRequest) -> UserResponse:
        """
        Create an account.

        Raises:
            ValidationError: blank required field or short password
            ConflictError: email or nickname already taken
        """
        first_name = require_text(data.first_name, "first_name")
        last_name = require_text(data.last_name, "last_name")
        if len(data.password) < settings.password_min_length:
            raise ValidationError(
                message=f"Password must be at least {settings.password_min_length} characters",
                field="password",
            )
        nickname = (data.nickname or "").strip() or None

        if await db.scalar(select(User.id).where(User.email == data.email)) is not None:
            raise ConflictError(message="Email is already registered", context={"field": "email"})
        if nickname and not await self._nickname_free(db, nickname):
            raise ConflictError(message="Nickname is already taken", context={"field": "nickname"})

        with translate_db_errors("create the account", email=data.email):
            user = User(
                email=data.email,
                password_hash=hash_password(data.password),
                first_name=first_name,
                last_name=last_name,
                date_of_birth=data.date_of_birth,
                nickname=nickname,
                about_me=data.about_me,
                avatar=data.avatar,
                is_public=data.is_public,
            )
            db.add(user)
            await db.flush()

        logger.info("User registered: %s (id=%s)", user.email, user.id)
        return await self.to_user_response(db, user)

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> UserResponse:
        user = await db.scalar(select(User).where(User.email == email.strip().lower()))
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %s", email)
            raise AuthenticationError(message=INVALID_CREDENTIALS)
        logger.info("User %s logged in", user.id)
        return await self.to_user_response(db, user)

    # ── Profiles ──────────────────────────────────────────────────────────

    async def to_user_response(self, db: AsyncSession, user: User) -> UserResponse:
        return UserResponse(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            date_of_birth=user.date_of_birth,
            nickname=user.nickname,
            about_me=user.about_me,
            avatar=user.avatar,
            is_public=user.is_public,
            created_at=user.created_at,
            follower_count=await follow_service.follower_count(db, user.id),
            following_count=await follow_service.following_count(db, user.id),
        )

    async def get_profile(self, db: AsyncSession, viewer: User, user_id: int) -> ProfileResponse:
        user = await self.require_user(db, user_id)
        is_own = viewer.id == user.id
        is_following = False if is_own else await follow_service.is_following(db, viewer.id, user.id)
        request_sent = False if is_own else await follow_service.request_exists(db, viewer.id, user.id)
        can_view = is_own or user.is_public or is_following

        return ProfileResponse(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            nickname=user.nickname,
            avatar=user.avatar,
            is_public=user.is_public,
            created_at=user.created_at,
            email=user.email if can_view else None,
            date_of_birth=user.date_of_birth if can_view else None,
            about_me=user.about_me if can_view else None,
            follower_count=await follow_service.follower_count(db, user.id),
            following_count=await follow_service.following_count(db, user.id),
            is_following=is_following,
            follow_request_sent=request_sent,
            is_own_profile=is_own,
            can_view_details=can_view,
        )

    async def update_profile(
        self, db: AsyncSession, user: User, data: ProfileUpdateRequest
    ) -> UserResponse:
        """
        Apply a partial update.

        Switching from private to public accepts every pending follow request
        in the same transaction.
        """
        changes = data.model_dump(exclude_unset=True)
        was_public = user.is_public

        for field in ("first_name", "last_name"):
            if field in changes:
                changes[field] = require_text(changes[field], field)
        if "is_public" in changes and changes["is_public"] is None:
            del changes["is_public"]
        if "date_of_birth" in changes and changes["date_of_birth"] is None:
            del changes["date_of_birth"]
        if "nickname" in changes:
            nickname = (changes["nickname"] or "").strip() or None
            if nickname and not await self._nickname_free(db, nickname, exclude_user_id=user.id):
                raise ConflictError(message="Nickname is already taken", context={"field": "nickname"})
            changes["nickname"] = nickname

        with translate_db_errors("update the profile", user_id=user.id):
            for field, value in changes.items():
                setattr(user, field, value)
            await db.flush()

        if not was_public and user.is_public:
            await follow_service.auto_approve_requests(db, user)

        logger.info("User %s updated profile fields: %s", user.id, sorted(changes))
        return await self.to_user_response(db, user)

    # ── Search ────────────────────────────────────────────────────────────

    async def search(self, db: AsyncSession, query: str) -> UserSearchResponse:
        """
        Case-insensitive substring search over names, nickname and email.

        Exact matches on any of those come first, then alphabetical by
        first name and last name.
        """
        term = require_text(query, "q", message="Search query is required").lower()
        full_name = func.lower(User.first_name + " " + User.last_name)
        nickname = func.lower(func.coalesce(User.nickname, ""))

        exact = case(
            (
                or_(
                    func.lower(User.first_name) == term,
                    func.lower(User.last_name) == term,
                    full_name == term,
                    nickname == term,
                    func.lower(User.email) == term,
                ),
                0,
            ),
            else_=1,
        )
        result = await db.execute(
            select(User)
            .where(
                or_(
                    func.lower(User.first_name).contains(term, autoescape=True),
                    func.lower(User.last_name).contains(term, autoescape=True),
                    full_name.contains(term, autoescape=True),
                    nickname.contains(term, autoescape=True),
                    func.lower(User.email).contains(term, autoescape=True),
                )
            )
            .order_by(exact, User.first_name, User.last_name)
            .limit(settings.user_search_limit)
        )
        return UserSearchResponse(
            query=query,
            users=[user_summary(u) for u in result.scalars().all()],
        )

    async def nickname_available(self, db: AsyncSession, nickname: str) -> NicknameAvailabilityResponse:
        cleaned = require_text(nickname, "nickname")
        return NicknameAvailabilityResponse(
            nickname=cleaned,
            available=await self._nickname_free(db, cleaned),
        )

    async def _nickname_free(
        self, db: AsyncSession, nickname: str, exclude_user_id: Optional[int] = None
    ) -> bool:
        query = select(User.id).where(User.nickname == nickname)
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        return await db.scalar(query) is None


user_service = UserService()
