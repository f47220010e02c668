"""
S-Network Backend — Notification Schemas
==========================================

Synthetic items:
    Pending follow requests are listed as notifications of type
    "follow_request" although no notifications row exists for them. Such
    items have `id = null` and `reference_id` = the follow request id, which
    is what the accept/reject endpoints take.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from snetwork.schemas.common import UserSummary


class NotificationResponse(BaseModel):
    id: Optional[int] = Field(default=None, description="Null for synthetic follow-request items")
    type: str
    content: str
    reference_id: Optional[int] = None
    is_read: bool
    created_at: datetime
    sender: Optional[UserSummary] = Field(default=None, description="Null for system notifications")


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int
    total: int = Field(description="Number of items in this page")
    limit: int
    offset: int


class UnreadCountResponse(BaseModel):
    unread_count: int
