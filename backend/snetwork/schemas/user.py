"""
S-Network Backend — User & Profile Schemas
============================================

What:  Registration, login, profile update and profile view contracts.

Profile views come in two shapes:
    UserResponse     → the caller's own account (everything except the hash)
    ProfileResponse  → someone else's profile, with private details withheld
                       unless the viewer is allowed to see them
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from snetwork.schemas.common import UserSummary


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    email: str = Field(max_length=255)
    password: str = Field(max_length=128)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    date_of_birth: date
    nickname: Optional[str] = Field(default=None, max_length=50)
    about_me: Optional[str] = None
    avatar: Optional[str] = Field(default=None, max_length=500, description="Avatar URL")
    is_public: bool = True

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are compared case-insensitively, so store them lower-cased."""
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    """
    Partial profile update. Only the fields present in the JSON body are
    applied (the service reads `model_dump(exclude_unset=True)`).
    """
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    nickname: Optional[str] = Field(default=None, max_length=50)
    about_me: Optional[str] = None
    avatar: Optional[str] = Field(default=None, max_length=500)
    date_of_birth: Optional[date] = None
    is_public: Optional[bool] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    """The caller's own account."""
    id: int
    email: str
    first_name: str
    last_name: str
    date_of_birth: date
    nickname: Optional[str] = None
    about_me: Optional[str] = None
    avatar: Optional[str] = None
    is_public: bool
    created_at: datetime
    follower_count: int = 0
    following_count: int = 0


class ProfileResponse(BaseModel):
    """
    Another user's profile as seen by the viewer.

    email, date_of_birth and about_me are null when `can_view_details` is
    false (private profile, viewer is neither the owner nor a follower).
    """
    id: int
    first_name: str
    last_name: str
    nickname: Optional[str] = None
    avatar: Optional[str] = None
    is_public: bool
    created_at: datetime
    email: Optional[str] = None
    date_of_birth: Optional[date] = None
    about_me: Optional[str] = None
    follower_count: int
    following_count: int
    is_following: bool
    follow_request_sent: bool
    is_own_profile: bool
    can_view_details: bool


class UserSearchResponse(BaseModel):
    query: str
    users: List[UserSummary]


class NicknameAvailabilityResponse(BaseModel):
    nickname: str
    available: bool
