"""
S-Network Backend — Notification Model
========================================

What:  ORM model for the `notifications` table.

reference_id meaning depends on type:
    follow / follow_accepted         → the other user's id
    message                          → conversation id
    post_like / post_comment         → post id
    group_* / event_created          → group id
    follow_request (synthetic only)  → follow request id

sender_id is SET NULL when the sender account is deleted; system
notifications have no sender at all.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from snetwork.database import Base, utcnow

NOTIFICATION_TYPES = (
    "follow",
    "follow_request",
    "follow_accepted",
    "message",
    "post_like",
    "post_comment",
    "group_invitation",
    "group_member_added",
    "group_join_request",
    "group_join_accepted",
    "event_created",
    "system",
)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    receiver_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    reference_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_notifications_receiver", "receiver_id", "is_read"),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, receiver_id={self.receiver_id}, "
            f"type='{self.type}', is_read={self.is_read})>"
        )
