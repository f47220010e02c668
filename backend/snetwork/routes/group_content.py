"""
S-Network Backend — Group Content Routes
==========================================

What:  Posts, comments, votes and events inside groups. Members only.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import get_db_session
from snetwork.dependencies import Pagination, get_current_user
from snetwork.models.user import User
from snetwork.schemas.common import ActionResponse, ErrorResponse, VoteRequest, VoteResponse
from snetwork.schemas.group import (
    EventRespondRequest,
    GroupCommentCreateRequest,
    GroupCommentListResponse,
    GroupCommentResponse,
    GroupEventCreateRequest,
    GroupEventListResponse,
    GroupEventResponse,
    GroupPostCreateRequest,
    GroupPostListResponse,
    GroupPostResponse,
)
from snetwork.services.group_content_service import group_content_service

router = APIRouter(prefix="/api", tags=["Group Content"])

MEMBERS_ONLY = {
    403: {"description": "Caller is not a member of the group", "model": ErrorResponse},
    404: {"description": "Group or item not found", "model": ErrorResponse},
}


# ── Posts ─────────────────────────────────────────────────────────────────


@router.get("/groups/{group_id}/posts", response_model=GroupPostListResponse, responses=MEMBERS_ONLY)
async def list_group_posts(
    group_id: int,
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupPostListResponse:
    return await group_content_service.list_posts(db, user, group_id, limit=pagination.limit, offset=pagination.offset)


@router.post(
    "/groups/{group_id}/posts",
    response_model=GroupPostResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MEMBERS_ONLY,
)
async def create_group_post(
    group_id: int,
    body: GroupPostCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupPostResponse:
    return await group_content_service.create_post(db, user, group_id, body)


@router.get("/groups/posts/{post_id}", response_model=GroupPostResponse, responses=MEMBERS_ONLY)
async def get_group_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupPostResponse:
    return await group_content_service.get_post(db, user, post_id)


@router.delete("/groups/posts/{post_id}", response_model=ActionResponse, responses=MEMBERS_ONLY)
async def delete_group_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_content_service.delete_post(db, user, post_id)
    return ActionResponse(message="Post deleted")


@router.post("/groups/posts/{post_id}/vote", response_model=VoteResponse, responses=MEMBERS_ONLY)
async def vote_group_post(
    post_id: int,
    body: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await group_content_service.vote_post(db, user, post_id, body.vote_type)


# ── Comments ──────────────────────────────────────────────────────────────


@router.get("/groups/posts/{post_id}/comments", response_model=GroupCommentListResponse, responses=MEMBERS_ONLY)
async def list_group_comments(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupCommentListResponse:
    return await group_content_service.list_comments(db, user, post_id)


@router.post(
    "/groups/posts/{post_id}/comments",
    response_model=GroupCommentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MEMBERS_ONLY,
)
async def create_group_comment(
    post_id: int,
    body: GroupCommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupCommentResponse:
    return await group_content_service.create_comment(db, user, post_id, body)


@router.delete("/groups/posts/{post_id}/comments/{comment_id}", response_model=ActionResponse)
async def delete_group_comment(
    post_id: int,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_content_service.delete_comment(db, user, post_id, comment_id)
    return ActionResponse(message="Comment deleted")


@router.post("/groups/posts/{post_id}/comments/{comment_id}/vote", response_model=VoteResponse)
async def vote_group_comment(
    post_id: int,
    comment_id: int,
    body: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await group_content_service.vote_comment(db, user, post_id, comment_id, body.vote_type)


# ── Events ────────────────────────────────────────────────────────────────


@router.get("/groups/{group_id}/events", response_model=GroupEventListResponse, responses=MEMBERS_ONLY)
async def list_events(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupEventListResponse:
    return await group_content_service.list_events(db, user, group_id)


@router.post(
    "/groups/{group_id}/events",
    response_model=GroupEventResponse,
    status_code=status.HTTP_201_CREATED,
    responses=MEMBERS_ONLY,
)
async def create_event(
    group_id: int,
    body: GroupEventCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupEventResponse:
    return await group_content_service.create_event(db, user, group_id, body)


@router.post("/groups/events/{event_id}/respond", response_model=GroupEventResponse, responses=MEMBERS_ONLY)
async def respond_to_event(
    event_id: int,
    body: EventRespondRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupEventResponse:
    return await group_content_service.respond(db, user, event_id, body.response)


@router.delete("/groups/events/{event_id}", response_model=ActionResponse, responses=MEMBERS_ONLY)
async def delete_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_content_service.delete_event(db, user, event_id)
    return ActionResponse(message="Event deleted")
