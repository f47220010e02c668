"""
S-Network Backend — Chat Routes
=================================

What:  Direct conversations, the group conversation and the group message
       board.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import get_db_session
from snetwork.dependencies import get_current_user
from snetwork.models.user import User
from snetwork.schemas.chat import (
    ChatMessageCreateRequest,
    ChatMessageListResponse,
    ChatMessageResponse,
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationResponse,
    GroupMessageListResponse,
    GroupMessageResponse,
)
from snetwork.schemas.common import ActionResponse, ErrorResponse
from snetwork.services.chat_service import chat_service

router = APIRouter(prefix="/api", tags=["Chat"])

PARTICIPANTS_ONLY = {
    403: {"description": "Caller is not a participant", "model": ErrorResponse},
    404: {"description": "Conversation not found", "model": ErrorResponse},
}


# ── Direct conversations ──────────────────────────────────────────────────


@router.get("/conversations", response_model=ConversationListResponse, summary="Caller's conversations, most recent first")
async def list_conversations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConversationListResponse:
    return await chat_service.list_conversations(db, user)


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    responses={
        400: {"description": "Conversation with yourself", "model": ErrorResponse},
        403: {"description": "Messaging this user is not allowed", "model": ErrorResponse},
        404: {"description": "Unknown user", "model": ErrorResponse},
    },
    summary="Open (or reuse) the direct conversation with a user",
)
async def open_conversation(
    body: ConversationCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConversationResponse:
    return await chat_service.get_or_create_direct_conversation(db, user, body.user_id)


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse, responses=PARTICIPANTS_ONLY)
async def get_conversation(
    conversation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConversationResponse:
    return await chat_service.get_conversation(db, user, conversation_id)


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=ChatMessageListResponse,
    responses=PARTICIPANTS_ONLY,
)
async def list_messages(
    conversation_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ChatMessageListResponse:
    return await chat_service.list_messages(db, user, conversation_id, limit=limit, offset=offset)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=PARTICIPANTS_ONLY,
)
async def send_message(
    conversation_id: int,
    body: ChatMessageCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ChatMessageResponse:
    return await chat_service.send_message(db, user, conversation_id, body.content)


@router.delete("/conversations/{conversation_id}/messages/{message_id}", response_model=ActionResponse)
async def delete_message(
    conversation_id: int,
    message_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await chat_service.delete_message(db, user, conversation_id, message_id)
    return ActionResponse(message="Message deleted")


@router.post("/conversations/{conversation_id}/read", response_model=ActionResponse, responses=PARTICIPANTS_ONLY)
async def mark_conversation_read(
    conversation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await chat_service.mark_read(db, user, conversation_id)
    return ActionResponse(message="Conversation marked as read")


# ── Group chat ────────────────────────────────────────────────────────────


@router.get("/groups/{group_id}/chat", response_model=ConversationResponse, summary="The group's conversation (created on first use)")
async def get_group_chat(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConversationResponse:
    return await chat_service.get_or_create_group_conversation(db, user, group_id)


@router.get("/groups/{group_id}/messages", response_model=GroupMessageListResponse)
async def list_group_messages(
    group_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupMessageListResponse:
    return await chat_service.list_group_messages(db, user, group_id, limit=limit, offset=offset)


@router.post("/groups/{group_id}/messages", response_model=GroupMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_group_message(
    group_id: int,
    body: ChatMessageCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupMessageResponse:
    return await chat_service.send_group_message(db, user, group_id, body.content)


@router.get("/groups/{group_id}/messages/latest", response_model=Optional[GroupMessageResponse])
async def latest_group_message(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[GroupMessageResponse]:
    """Newest non-deleted message, or null for an empty board."""
    return await chat_service.latest_group_message(db, user, group_id)


@router.delete("/groups/{group_id}/messages/{message_id}", response_model=ActionResponse)
async def delete_group_message(
    group_id: int,
    message_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await chat_service.delete_group_message(db, user, group_id, message_id)
    return ActionResponse(message="Message deleted")
