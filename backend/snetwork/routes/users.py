"""
S-Network Backend — Profile & User Routes
===========================================

What:  The caller's own profile, other users' profiles, search, and the
       per-user post/follower/following lists.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import get_db_session
from snetwork.dependencies import Pagination, get_current_user
from snetwork.models.user import User
from snetwork.schemas.common import CountResponse, ErrorResponse
from snetwork.schemas.follow import FollowListResponse
from snetwork.schemas.post import PostListResponse
from snetwork.schemas.user import (
    NicknameAvailabilityResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    UserResponse,
    UserSearchResponse,
)
from snetwork.services.follow_service import follow_service
from snetwork.services.post_service import post_service
from snetwork.services.user_service import user_service

router = APIRouter(prefix="/api", tags=["Users"])


@router.get("/profile", response_model=UserResponse, summary="The caller's own account")
async def get_my_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.to_user_response(db, user)


@router.patch(
    "/profile",
    response_model=UserResponse,
    responses={409: {"description": "Nickname already taken", "model": ErrorResponse}},
    summary="Update profile fields",
    description=(
        "Only fields present in the body change. Making a private profile public "
        "accepts all pending follow requests."
    ),
)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.update_profile(db, user, body)


# Fixed paths are declared before /users/{user_id}
@router.get("/users/search", response_model=UserSearchResponse, summary="Search users")
async def search_users(
    q: str = Query(default="", max_length=100, description="Name, nickname or email fragment"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserSearchResponse:
    return await user_service.search(db, q)


@router.get("/users/nickname-available", response_model=NicknameAvailabilityResponse)
async def nickname_available(
    nickname: str = Query(max_length=50),
    db: AsyncSession = Depends(get_db_session),
) -> NicknameAvailabilityResponse:
    return await user_service.nickname_available(db, nickname)


@router.get(
    "/users/{user_id}",
    response_model=ProfileResponse,
    responses={404: {"description": "Unknown user", "model": ErrorResponse}},
    summary="A profile as seen by the caller",
)
async def get_profile(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await user_service.get_profile(db, user, user_id)


@router.get("/users/{user_id}/posts", response_model=PostListResponse, summary="Posts of one author visible to the caller")
async def get_user_posts(
    user_id: int,
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostListResponse:
    return await post_service.list_user_posts(db, user, user_id, limit=pagination.limit, offset=pagination.offset)


@router.get("/users/{user_id}/followers", response_model=FollowListResponse)
async def get_user_followers(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowListResponse:
    return await follow_service.list_followers(db, user_id)


@router.get("/users/{user_id}/following", response_model=FollowListResponse)
async def get_user_following(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowListResponse:
    return await follow_service.list_following(db, user_id)


@router.get("/users/{user_id}/followers/count", response_model=CountResponse)
async def count_user_followers(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse:
    await user_service.require_user(db, user_id)
    return CountResponse(count=await follow_service.follower_count(db, user_id))


@router.get("/users/{user_id}/following/count", response_model=CountResponse)
async def count_user_following(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse:
    await user_service.require_user(db, user_id)
    return CountResponse(count=await follow_service.following_count(db, user_id))
