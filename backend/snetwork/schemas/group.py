"""
S-Network Backend — Group Schemas
===================================

What:  Contracts for groups, memberships, invitations, join requests and the
       content that lives inside a group (posts, comments, events).
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from snetwork.schemas.common import UserSummary


# ══════════════════════════════════════════════════════════════════════════
# Groups & Membership
# ══════════════════════════════════════════════════════════════════════════


class GroupCreateRequest(BaseModel):
    name: str = Field(max_length=255)
    description: str = ""
    privacy: Literal["public", "private"] = "public"
    avatar: Optional[str] = Field(default=None, max_length=500)
    member_ids: List[int] = Field(default_factory=list, description="Users added directly on creation")


class GroupUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    privacy: Optional[Literal["public", "private"]] = None
    avatar: Optional[str] = Field(default=None, max_length=500)


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str
    creator_id: int
    avatar: Optional[str] = None
    privacy: str
    created_at: datetime
    member_count: int
    is_joined: bool
    user_role: Optional[str] = Field(default=None, description="admin, member, or null")


class GroupListResponse(BaseModel):
    groups: List[GroupResponse]
    limit: int
    offset: int


class GroupMemberResponse(BaseModel):
    user: UserSummary
    role: str
    joined_at: datetime


class GroupMemberListResponse(BaseModel):
    members: List[GroupMemberResponse]


class AddMembersRequest(BaseModel):
    user_ids: List[int] = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Invitations & Join Requests
# ══════════════════════════════════════════════════════════════════════════


class InviteRequest(BaseModel):
    user_id: int


class InvitationResponse(BaseModel):
    id: int
    group_id: int
    group_name: str
    inviter_id: int
    inviter_name: str
    invitee_id: int
    status: str
    created_at: datetime


class InvitationListResponse(BaseModel):
    invitations: List[InvitationResponse]


class JoinRequestCreate(BaseModel):
    message: Optional[str] = None


class JoinRequestResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    user_name: str
    user_avatar: Optional[str] = None
    message: Optional[str] = None
    status: str
    created_at: datetime


class JoinRequestListResponse(BaseModel):
    requests: List[JoinRequestResponse]


# ══════════════════════════════════════════════════════════════════════════
# Group Posts & Comments
# ══════════════════════════════════════════════════════════════════════════


class GroupPostCreateRequest(BaseModel):
    content: str
    image_path: Optional[str] = Field(default=None, max_length=500)


class GroupPostResponse(BaseModel):
    id: int
    group_id: int
    author_id: int
    author_name: str
    author_avatar: Optional[str] = None
    content: str
    image_path: Optional[str] = None
    comments_count: int
    upvotes: int
    downvotes: int
    user_vote: int = 0
    created_at: datetime


class GroupPostListResponse(BaseModel):
    posts: List[GroupPostResponse]
    limit: int
    offset: int


class GroupCommentCreateRequest(BaseModel):
    """Either content or image_path must be non-empty."""
    content: str = ""
    image_path: Optional[str] = Field(default=None, max_length=500)


class GroupCommentResponse(BaseModel):
    id: int
    post_id: int
    author_id: int
    author_name: str
    author_avatar: Optional[str] = None
    content: str
    image_path: Optional[str] = None
    vote_count: int
    upvotes: int
    downvotes: int
    user_vote: int = 0
    created_at: datetime


class GroupCommentListResponse(BaseModel):
    comments: List[GroupCommentResponse]


# ══════════════════════════════════════════════════════════════════════════
# Events
# ══════════════════════════════════════════════════════════════════════════


class GroupEventCreateRequest(BaseModel):
    title: str = Field(max_length=255)
    description: str = ""
    event_date: datetime


class EventRespondRequest(BaseModel):
    """'remove' withdraws a previous answer."""
    response: Literal["going", "not_going", "remove"]


class GroupEventResponse(BaseModel):
    id: int
    group_id: int
    creator_id: int
    title: str
    description: str
    event_date: datetime
    created_at: datetime
    going_count: int = 0
    not_going_count: int = 0
    user_response: Optional[str] = Field(default=None, description="going, not_going, or null")


class GroupEventListResponse(BaseModel):
    events: List[GroupEventResponse]
