"""Operator account management under /api/users (bearer session required)."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.database import get_db_session
from kadzai.dependencies import get_current_user
from kadzai.models.user import User
from kadzai.schemas.auth import UserCreate, UserListResponse, UserResponse, UserUpdate
from kadzai.schemas.common import ErrorResponse, MessageResponse
from kadzai.services.user_service import user_service

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(get_current_user)],
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
)


@router.get("", response_model=UserListResponse, summary="List operator accounts")
async def list_users(
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    return await user_service.list_users(db, limit=limit, offset=offset)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing or malformed fields", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an operator account",
)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> UserResponse:
    return await user_service.create_user(db, body, created_by=user.email)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Operator account detail",
)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.get_user(db, user_id)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        400: {"description": "Nothing to update or malformed fields", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Update an operator account",
)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> UserResponse:
    return await user_service.update_user(db, user_id, body, modified_by=user.email)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Tried to delete own account", "model": ErrorResponse},
    },
    summary="Delete an operator account",
)
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> MessageResponse:
    await user_service.delete_user(db, user_id, current_user_id=user.id)
    return MessageResponse(message="User deleted successfully")
