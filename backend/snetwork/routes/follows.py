"""
S-Network Backend — Follow Routes
===================================

What:  Following, unfollowing, follow requests and the caller's own
       follower/following lists.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import get_db_session
from snetwork.dependencies import get_current_user
from snetwork.models.user import User
from snetwork.schemas.common import ActionResponse, ErrorResponse
from snetwork.schemas.follow import (
    FollowActionResponse,
    FollowListResponse,
    FollowRequestListResponse,
    FollowStatusResponse,
)
from snetwork.services.follow_service import follow_service

router = APIRouter(prefix="/api", tags=["Follows"])


# Fixed paths are declared before /follow/{user_id}
@router.get("/follow/requests", response_model=FollowRequestListResponse, summary="Pending requests to the caller")
async def list_follow_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowRequestListResponse:
    return await follow_service.list_incoming_requests(db, user)


@router.post(
    "/follow/requests/{request_id}/accept",
    response_model=ActionResponse,
    responses={
        403: {"description": "Request not addressed to the caller", "model": ErrorResponse},
        404: {"description": "Unknown request", "model": ErrorResponse},
    },
)
async def accept_follow_request(
    request_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await follow_service.accept_request(db, user, request_id)
    return ActionResponse(message="Follow request accepted")


@router.post("/follow/requests/{request_id}/reject", response_model=ActionResponse)
async def reject_follow_request(
    request_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await follow_service.reject_request(db, user, request_id)
    return ActionResponse(message="Follow request rejected")


@router.get("/follow/status/{user_id}", response_model=FollowStatusResponse)
async def follow_status(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowStatusResponse:
    return await follow_service.get_status(db, user.id, user_id)


@router.post(
    "/follow/{user_id}",
    response_model=FollowActionResponse,
    responses={
        400: {"description": "Following yourself", "model": ErrorResponse},
        404: {"description": "Unknown user", "model": ErrorResponse},
        409: {"description": "Already following", "model": ErrorResponse},
    },
    summary="Follow a user (or request to, for private profiles)",
)
async def follow(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowActionResponse:
    return await follow_service.follow(db, user, user_id)


@router.delete("/follow/{user_id}", response_model=ActionResponse)
async def unfollow(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await follow_service.unfollow(db, user, user_id)
    return ActionResponse(message="Unfollowed")


@router.post("/follow/{user_id}/cancel", response_model=ActionResponse)
async def cancel_follow_request(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await follow_service.cancel_request(db, user, user_id)
    return ActionResponse(message="Follow request cancelled")


@router.get("/followers", response_model=FollowListResponse)
async def my_followers(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowListResponse:
    return await follow_service.list_followers(db, user.id)


@router.get("/following", response_model=FollowListResponse)
async def my_following(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowListResponse:
    return await follow_service.list_following(db, user.id)


@router.delete("/followers/{follower_id}", response_model=ActionResponse)
async def remove_follower(
    follower_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await follow_service.remove_follower(db, user, follower_id)
    return ActionResponse(message="Follower removed")
