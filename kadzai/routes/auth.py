"""
Kadzai Backend — Authentication Routes
=======================================

POST /api/auth/login   email + password → session token and public user
GET  /api/auth/me      bearer token → public user
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.database import get_db_session
from kadzai.dependencies import get_current_user
from kadzai.models.user import User
from kadzai.schemas.auth import LoginRequest, LoginResponse, PublicUser
from kadzai.schemas.common import ErrorResponse
from kadzai.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in and obtain a session token",
    description=(
        "Checks the password against the stored bcrypt hash and opens a session "
        "that expires after 24 hours. Send the token as `Authorization: Bearer <token>`."
    ),
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await auth_service.login(db, email=body.email, password=body.password)


@router.get(
    "/me",
    response_model=PublicUser,
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
    summary="Current user",
)
async def me(user: User = Depends(get_current_user)) -> PublicUser:
    return PublicUser.model_validate(user)
