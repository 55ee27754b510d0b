"""
Skills Platform Backend — Auth Routes
=======================================

What:  POST /api/auth/register and POST /api/auth/login.
How:   No passwords or tokens. Login returns the user record, which the
       frontend keeps as its session.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skills_platform.database import get_db_session
from skills_platform.schemas.auth import LoginRequest, RegisterRequest, UserEnvelope
from skills_platform.schemas.common import ErrorResponse
from skills_platform.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=UserEnvelope,
    responses={
        400: {"description": "Invalid input or email already registered", "model": ErrorResponse},
        404: {"description": "Unknown school code", "model": ErrorResponse},
    },
    summary="Register a student, teacher or admin",
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    user = await auth_service.register(db, data)
    return UserEnvelope(user=user)


@router.post(
    "/login",
    response_model=UserEnvelope,
    responses={401: {"description": "No account with this email", "model": ErrorResponse}},
    summary="Log in by email",
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    user = await auth_service.login(db, data)
    return UserEnvelope(user=user)
