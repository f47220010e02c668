"""
S-Network Backend — Vote Model
================================

What:  ORM model for the polymorphic `votes` table.
How:   (content_type, content_id) points at a post, comment, group post or
       group post comment. There is no foreign key on content_id, so deleting
       a target must delete its votes explicitly (see VoteService.purge_votes).

Constraints:
    UNIQUE(user_id, content_id, content_type)  → one vote per user per target
    vote_type IN (-1, 1)
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from snetwork.database import Base, utcnow

VOTE_CONTENT_TYPES = ("post", "comment", "group_post", "group_post_comment")


class Vote(Base):
    __tablename__ = "votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content_id: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str] = mapped_column(String(30), nullable=False)
    vote_type: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "content_id", "content_type", name="uq_votes_user_target"),
        CheckConstraint(
            "content_type IN ('post', 'comment', 'group_post', 'group_post_comment')",
            name="ck_votes_content_type",
        ),
        CheckConstraint("vote_type IN (-1, 1)", name="ck_votes_vote_type"),
        Index("idx_votes_target", "content_type", "content_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Vote(user_id={self.user_id}, {self.content_type}={self.content_id}, "
            f"vote_type={self.vote_type})>"
        )
