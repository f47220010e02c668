"""
S-Network Backend — Shared Route Dependencies
===============================================

What:  FastAPI dependencies reused by every router.

Identity:
    Sessions/cookies are not handled by this service. The caller names
    itself with the `X-User-ID` header; `get_current_user` turns that into a
    User row or raises AuthenticationError (401):

        header missing / not a positive integer   → 401
        no user with that id                      → 401
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.config import settings
from snetwork.database import get_db_session
from snetwork.exceptions import AuthenticationError
from snetwork.models.user import User

logger = logging.getLogger(__name__)


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-ID"),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if not x_user_id:
        raise AuthenticationError(message="Missing X-User-ID header")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise AuthenticationError(message="X-User-ID must be a numeric user id")
    if user_id <= 0:
        raise AuthenticationError(message="X-User-ID must be a numeric user id")

    user = await db.get(User, user_id)
    if user is None:
        logger.info("Rejected request for unknown user id %s", user_id)
        raise AuthenticationError(message="Unknown user", context={"user_id": user_id})
    return user


class Pagination:
    """`limit` + `offset` (or `page`) query parameters, bounded by settings."""

    def __init__(
        self,
        limit: Optional[int] = Query(default=None, ge=1, description="Items per page"),
        offset: int = Query(default=0, ge=0, description="Items to skip"),
        page: Optional[int] = Query(default=None, ge=1, description="1-based page; overrides offset"),
    ):
        self.limit = min(limit or settings.default_page_size, settings.max_page_size)
        self.offset = (page - 1) * self.limit if page else offset
