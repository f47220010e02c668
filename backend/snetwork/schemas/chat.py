"""
S-Network Backend — Chat Schemas
==================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from snetwork.schemas.common import UserSummary


class ConversationCreateRequest(BaseModel):
    user_id: int = Field(description="The other participant of the direct conversation")


class ChatMessageCreateRequest(BaseModel):
    content: str = Field(max_length=5000)


class ChatMessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    content: str
    created_at: datetime


class ChatMessageListResponse(BaseModel):
    messages: List[ChatMessageResponse]
    limit: int
    offset: int


class ConversationResponse(BaseModel):
    id: int
    name: Optional[str] = None
    is_group: bool
    group_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    participants: List[UserSummary]
    last_message: Optional[ChatMessageResponse] = None
    unread_count: int = 0


class ConversationListResponse(BaseModel):
    conversations: List[ConversationResponse]


class GroupMessageResponse(BaseModel):
    id: int
    group_id: int
    sender: UserSummary
    content: str
    created_at: datetime


class GroupMessageListResponse(BaseModel):
    messages: List[GroupMessageResponse]
    limit: int
    offset: int
