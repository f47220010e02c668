"""
S-Network Backend — Shared Service Helpers
============================================

What:  Small helpers used by every service module.

translate_db_errors:
    Services let their own SNetworkError subclasses propagate untouched.
    SQLAlchemy failures are converted at the service boundary:
        IntegrityError   → ConflictError (a UNIQUE/CHECK/FK rule fired)
        SQLAlchemyError  → DatabaseError (generic 500, details logged)
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from snetwork.exceptions import ConflictError, DatabaseError, SNetworkError, ValidationError
from snetwork.models.user import User
from snetwork.schemas.common import UserSummary

logger = logging.getLogger(__name__)


@contextmanager
def translate_db_errors(operation: str, **context) -> Iterator[None]:
    """
    Wrap a block of database work.

    Usage:
        with translate_db_errors("create the post", user_id=user.id):
            db.add(post)
            await db.flush()
    """
    try:
        yield
    except SNetworkError:
        raise
    except IntegrityError as e:
        logger.warning("Integrity error while trying to %s: %s", operation, str(e.orig))
        raise ConflictError(
            message=f"Could not {operation}: it conflicts with existing data.",
            context={**context, "original_error": type(e).__name__},
        )
    except SQLAlchemyError as e:
        logger.error("Database error while trying to %s: %s", operation, str(e), exc_info=True)
        raise DatabaseError(
            message=f"Could not {operation}. Please try again.",
            context={**context, "original_error": type(e).__name__},
        )


def user_summary(user: User) -> UserSummary:
    """Compact representation embedded in posts, comments, notifications..."""
    return UserSummary(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        avatar=user.avatar,
        nickname=user.nickname,
    )


def require_text(value: str | None, field: str, message: str | None = None) -> str:
    """Strip a text field and reject it when blank."""
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(message=message or f"{field} is required", field=field)
    return cleaned
