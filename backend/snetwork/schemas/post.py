"""
S-Network Backend — Post & Comment Schemas
============================================

What:  Contracts for the main feed: creating posts, listing the feed,
       commenting.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from snetwork.schemas.common import UserSummary


class PostCreateRequest(BaseModel):
    """
    New post.

    allowed_followers is only read for privacy="private"; every id must be a
    current follower of the author.
    """
    title: Optional[str] = Field(default=None, max_length=255)
    content: str
    image_url: Optional[str] = Field(default=None, max_length=500)
    privacy: Literal["public", "almost_private", "private"] = "public"
    allowed_followers: List[int] = Field(default_factory=list)


class PostResponse(BaseModel):
    id: int
    user_id: int
    title: Optional[str] = None
    content: str
    image_url: Optional[str] = None
    privacy: str
    upvotes: int
    downvotes: int
    created_at: datetime
    updated_at: datetime
    author: UserSummary
    comment_count: int = 0
    user_vote: int = Field(default=0, description="Viewer's vote: -1, 0 or 1")
    is_author: bool = False


class PostListResponse(BaseModel):
    posts: List[PostResponse]
    page: int
    limit: int
    offset: int
    has_more: bool


class CommentCreateRequest(BaseModel):
    """Either content or image_url must be non-empty."""
    content: str = ""
    image_url: Optional[str] = Field(default=None, max_length=500)


class CommentResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    content: str
    image_url: Optional[str] = None
    vote_count: int
    created_at: datetime
    author: UserSummary
    user_vote: int = 0


class CommentListResponse(BaseModel):
    comments: List[CommentResponse]
