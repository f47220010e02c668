"""
S-Network Backend — Feed Post Routes
======================================

What:  Feed posts, their comments, and votes on both.
Who:   Every handler acts as the X-User-ID user; visibility and ownership
       rules are enforced by PostService / CommentService.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import get_db_session
from snetwork.dependencies import Pagination, get_current_user
from snetwork.models.user import User
from snetwork.schemas.common import ActionResponse, ErrorResponse, VoteRequest, VoteResponse
from snetwork.schemas.post import (
    CommentCreateRequest,
    CommentListResponse,
    CommentResponse,
    PostCreateRequest,
    PostListResponse,
    PostResponse,
)
from snetwork.services.comment_service import comment_service
from snetwork.services.post_service import post_service

router = APIRouter(prefix="/api", tags=["Posts"])

NOT_VISIBLE = {
    403: {"description": "Post not visible to the caller", "model": ErrorResponse},
    404: {"description": "Post not found", "model": ErrorResponse},
}


@router.get("/posts", response_model=PostListResponse, summary="Feed of posts visible to the caller")
async def list_feed(
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostListResponse:
    return await post_service.list_feed(db, user, limit=pagination.limit, offset=pagination.offset)


@router.post(
    "/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Blank content or invalid allowed_followers", "model": ErrorResponse}},
    summary="Create a post",
)
async def create_post(
    body: PostCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.create_post(db, user, body)


@router.get("/posts/{post_id}", response_model=PostResponse, responses=NOT_VISIBLE)
async def get_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.get_post(db, user, post_id)


@router.delete("/posts/{post_id}", response_model=ActionResponse, responses=NOT_VISIBLE)
async def delete_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await post_service.delete_post(db, user, post_id)
    return ActionResponse(message="Post deleted")


@router.post("/posts/{post_id}/vote", response_model=VoteResponse, responses=NOT_VISIBLE)
async def vote_post(
    post_id: int,
    body: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    """Same vote twice removes it; the opposite vote switches it."""
    return await post_service.vote(db, user, post_id, body.vote_type)


# ── Comments ──────────────────────────────────────────────────────────────


@router.get("/posts/{post_id}/comments", response_model=CommentListResponse, responses=NOT_VISIBLE)
async def list_comments(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentListResponse:
    return await comment_service.list_comments(db, user, post_id)


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_VISIBLE,
)
async def add_comment(
    post_id: int,
    body: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await comment_service.add_comment(db, user, post_id, body)


@router.delete("/posts/{post_id}/comments/{comment_id}", response_model=ActionResponse)
async def delete_comment(
    post_id: int,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await comment_service.delete_comment(db, user, post_id, comment_id)
    return ActionResponse(message="Comment deleted")


@router.post("/posts/{post_id}/comments/{comment_id}/vote", response_model=VoteResponse)
async def vote_comment(
    post_id: int,
    comment_id: int,
    body: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await comment_service.vote(db, user, post_id, comment_id, body.vote_type)
