"""
S-Network Backend — Shared Pydantic Schemas
=============================================

What:  Response/request models reused across several feature modules.
Who:   Error responses for OpenAPI docs, the health check, user summaries
       embedded in posts/comments/notifications, and vote payloads.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Embedded Models
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(BaseModel):
    """
    Compact author/sender representation.

    Embedded wherever another object points at a user (post author, comment
    author, notification sender, follower lists, chat participants).
    """
    id: int = Field(description="User ID")
    first_name: str
    last_name: str
    avatar: Optional[str] = None
    nickname: Optional[str] = None

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Votes
# ══════════════════════════════════════════════════════════════════════════


class VoteRequest(BaseModel):
    """Body of every vote endpoint. Re-sending the same value removes the vote."""
    vote_type: Literal[-1, 1] = Field(description="1 = upvote, -1 = downvote")


class VoteResponse(BaseModel):
    """Counters of the target after the vote was applied."""
    content_type: str
    content_id: int
    user_vote: int = Field(description="Caller's vote after the toggle: -1, 0 or 1")
    upvotes: Optional[int] = Field(default=None, description="Null for targets without an upvote counter")
    downvotes: Optional[int] = Field(default=None, description="Null for targets without a downvote counter")
    vote_count: Optional[int] = Field(default=None, description="Net total for comment targets")


# ══════════════════════════════════════════════════════════════════════════
# Generic Responses
# ══════════════════════════════════════════════════════════════════════════


class ActionResponse(BaseModel):
    """Acknowledgement for commands that have nothing else to return."""
    message: str
    success: bool = True


class CountResponse(BaseModel):
    count: int


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "forbidden",
            "message": "Only the group creator can remove members",
            "details": {"group_id": 7},
            "request_id": "550e8400"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
