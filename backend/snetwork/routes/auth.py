"""
S-Network Backend — Registration & Login Routes
=================================================

No session is issued: clients keep the returned `id` and send it as
X-User-ID on later requests.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from snetwork.database import get_db_session
from snetwork.schemas.common import ErrorResponse
from snetwork.schemas.user import LoginRequest, RegisterRequest, UserResponse
from snetwork.services.user_service import user_service

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Blank field or short password", "model": ErrorResponse},
        409: {"description": "Email or nickname already taken", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.register(db, body)


@router.post(
    "/login",
    response_model=UserResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Check credentials and return the account",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.authenticate(db, body.email, body.password)
