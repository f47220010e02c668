"""
S-Network Backend — Follow Relationship Models
================================================

What:  `followers` (accepted follow edges) and `follow_requests` (pending
       requests to private profiles).

Lifecycle of a follow on a private profile:
    follow_requests row (pending) ── accept ──▶ followers row, request deleted
                                  └─ reject / cancel ──▶ request deleted
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from snetwork.database import Base, utcnow


class Follower(Base):
    """follower_id follows following_id."""

    __tablename__ = "followers"

    follower_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    following_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Follower({self.follower_id} -> {self.following_id})>"


class FollowRequest(Base):
    """A pending request from requester_id to follow requested_id."""

    __tablename__ = "follow_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    requester_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    requested_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", server_default=text("'pending'")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("requester_id", "requested_id", name="uq_follow_requests_pair"),
    )

    def __repr__(self) -> str:
        return (
            f"<FollowRequest(id={self.id}, {self.requester_id} -> {self.requested_id}, "
            f"status='{self.status}')>"
        )
