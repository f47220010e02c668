"""
S-Network Backend — Follow Schemas
====================================
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from snetwork.schemas.common import UserSummary


class FollowActionResponse(BaseModel):
    """
    Result of POST /api/follow/{id}.

    status="followed" for public profiles, "request_sent" (with request_id)
    for private ones.
    """
    status: Literal["followed", "request_sent"]
    message: str
    request_id: Optional[int] = None


class FollowStatusResponse(BaseModel):
    is_following: bool
    follow_request_sent: bool


class FollowListResponse(BaseModel):
    users: List[UserSummary]
    count: int


class FollowRequestResponse(BaseModel):
    id: int
    requester: UserSummary
    requested_id: int
    status: str
    created_at: datetime


class FollowRequestListResponse(BaseModel):
    requests: List[FollowRequestResponse]
