"""
S-Network Backend — Group Routes
==================================

What:  Groups, membership, invitations and join requests.

Path order:
    /groups/mine, /groups/public and /groups/requests/... are declared
    before /groups/{group_id} so they are not captured by it.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import get_db_session
from snetwork.dependencies import Pagination, get_current_user
from snetwork.models.user import User
from snetwork.schemas.common import ActionResponse, ErrorResponse
from snetwork.schemas.group import (
    AddMembersRequest,
    GroupCreateRequest,
    GroupListResponse,
    GroupMemberListResponse,
    GroupResponse,
    GroupUpdateRequest,
    InvitationListResponse,
    InvitationResponse,
    InviteRequest,
    JoinRequestCreate,
    JoinRequestListResponse,
    JoinRequestResponse,
)
from snetwork.services.group_invitation_service import group_invitation_service
from snetwork.services.group_service import group_service

router = APIRouter(prefix="/api", tags=["Groups"])

CREATOR_ONLY = {
    403: {"description": "Only the group creator may do this", "model": ErrorResponse},
    404: {"description": "Group not found", "model": ErrorResponse},
}


# ── Groups ────────────────────────────────────────────────────────────────


@router.get("/groups", response_model=GroupListResponse, summary="All groups, newest first")
async def list_groups(
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupListResponse:
    return await group_service.list_groups(db, user, limit=pagination.limit, offset=pagination.offset)


@router.post("/groups", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    body: GroupCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupResponse:
    return await group_service.create_group(db, user, body)


@router.get("/groups/mine", response_model=GroupListResponse, summary="Groups the caller belongs to, by name")
async def list_my_groups(
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupListResponse:
    return await group_service.list_my_groups(db, user, limit=pagination.limit, offset=pagination.offset)


@router.get("/groups/public", response_model=GroupListResponse)
async def list_public_groups(
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupListResponse:
    return await group_service.list_public_groups(db, user, limit=pagination.limit, offset=pagination.offset)


# ── Join requests (by request id) ─────────────────────────────────────────


@router.post("/groups/requests/{request_id}/accept", response_model=ActionResponse, responses=CREATOR_ONLY)
async def accept_join_request(
    request_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_invitation_service.accept_join_request(db, user, request_id)
    return ActionResponse(message="Join request accepted")


@router.post("/groups/requests/{request_id}/reject", response_model=ActionResponse, responses=CREATOR_ONLY)
async def reject_join_request(
    request_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_invitation_service.reject_join_request(db, user, request_id)
    return ActionResponse(message="Join request rejected")


# ── Single group ──────────────────────────────────────────────────────────


@router.get(
    "/groups/{group_id}",
    response_model=GroupResponse,
    responses={
        403: {"description": "Private group and caller is not a member", "model": ErrorResponse},
        404: {"description": "Group not found", "model": ErrorResponse},
    },
)
async def get_group(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupResponse:
    return await group_service.get_group(db, user, group_id)


@router.patch("/groups/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: int,
    body: GroupUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupResponse:
    return await group_service.update_group(db, user, group_id, body)


@router.delete("/groups/{group_id}", response_model=ActionResponse, responses=CREATOR_ONLY)
async def delete_group(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_service.delete_group(db, user, group_id)
    return ActionResponse(message="Group deleted")


@router.post("/groups/{group_id}/join", response_model=ActionResponse)
async def join_group(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_service.join_group(db, user, group_id)
    return ActionResponse(message="Joined group")


@router.post("/groups/{group_id}/leave", response_model=ActionResponse)
async def leave_group(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_service.leave_group(db, user, group_id)
    return ActionResponse(message="Left group")


# ── Members ───────────────────────────────────────────────────────────────


@router.get("/groups/{group_id}/members", response_model=GroupMemberListResponse)
async def list_members(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupMemberListResponse:
    return await group_service.list_members(db, user, group_id)


@router.post("/groups/{group_id}/members", response_model=GroupMemberListResponse, responses=CREATOR_ONLY)
async def add_members(
    group_id: int,
    body: AddMembersRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupMemberListResponse:
    return await group_service.add_members(db, user, group_id, body.user_ids)


@router.delete("/groups/{group_id}/members/{member_id}", response_model=ActionResponse, responses=CREATOR_ONLY)
async def remove_member(
    group_id: int,
    member_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_service.remove_member(db, user, group_id, member_id)
    return ActionResponse(message="Member removed")


# ── Invitations ───────────────────────────────────────────────────────────


@router.post(
    "/groups/{group_id}/invite",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Already a member or already invited", "model": ErrorResponse}},
)
async def invite(
    group_id: int,
    body: InviteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvitationResponse:
    return await group_invitation_service.invite(db, user, group_id, body.user_id)


@router.get("/invitations", response_model=InvitationListResponse, summary="Pending invitations for the caller")
async def list_invitations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvitationListResponse:
    return await group_invitation_service.list_my_invitations(db, user)


@router.post("/invitations/{invitation_id}/accept", response_model=ActionResponse)
async def accept_invitation(
    invitation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_invitation_service.accept_invitation(db, user, invitation_id)
    return ActionResponse(message="Invitation accepted")


@router.post("/invitations/{invitation_id}/decline", response_model=ActionResponse)
async def decline_invitation(
    invitation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ActionResponse:
    await group_invitation_service.decline_invitation(db, user, invitation_id)
    return ActionResponse(message="Invitation declined")


# ── Join requests (by group) ──────────────────────────────────────────────


@router.post(
    "/groups/{group_id}/requests",
    response_model=JoinRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Already a member or request pending", "model": ErrorResponse}},
)
async def request_to_join(
    group_id: int,
    body: JoinRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> JoinRequestResponse:
    return await group_invitation_service.request_to_join(db, user, group_id, body.message)


@router.get("/groups/{group_id}/requests", response_model=JoinRequestListResponse, responses=CREATOR_ONLY)
async def list_join_requests(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> JoinRequestListResponse:
    return await group_invitation_service.list_join_requests(db, user, group_id)
