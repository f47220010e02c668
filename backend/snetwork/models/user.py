"""
S-Network Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   Queried by almost every service (author summaries, follow checks,
       notification sender names).

Table Design:
    - email: UNIQUE, stored lower-cased so lookups are case-insensitive
    - nickname: UNIQUE but nullable (SQLite allows many NULLs in a UNIQUE column)
    - password_hash: werkzeug PBKDF2 string produced by snetwork.security, never returned
    - is_public: drives follow (direct vs request) and profile detail visibility
"""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from snetwork.database import Base, utcnow


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)

    # Avatar is a URL/path string; uploading the file is outside this service
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)
    nickname: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)
    about_me: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("1"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    @property
    def full_name(self) -> str:
        """'<first> <last>', the form used in every notification text."""
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', is_public={self.is_public})>"
