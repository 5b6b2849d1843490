"""Admin bus-type management under /api/bus-types (bearer session required)."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.database import get_db_session
from kadzai.dependencies import get_current_user
from kadzai.models.user import User
from kadzai.schemas.common import ErrorResponse, MessageResponse
from kadzai.schemas.trip import (
    BusTypeCreate,
    BusTypeListResponse,
    BusTypeResponse,
    BusTypeUpdate,
)
from kadzai.services.bus_type_service import bus_type_service

router = APIRouter(
    prefix="/api/bus-types",
    tags=["Bus Types"],
    dependencies=[Depends(get_current_user)],
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
)


@router.get("", response_model=BusTypeListResponse, summary="List bus types")
async def list_bus_types(db: AsyncSession = Depends(get_db_session)) -> BusTypeListResponse:
    return await bus_type_service.list_bus_types(db)


@router.post(
    "",
    response_model=BusTypeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Name or seats invalid", "model": ErrorResponse},
        409: {"description": "Name already taken", "model": ErrorResponse},
    },
    summary="Create a bus type",
)
async def create_bus_type(
    body: BusTypeCreate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BusTypeResponse:
    return await bus_type_service.create_bus_type(db, body, created_by=user.email)


@router.patch(
    "/{bus_type_id}",
    response_model=BusTypeResponse,
    responses={
        400: {"description": "Name or seats invalid", "model": ErrorResponse},
        404: {"description": "Bus type not found", "model": ErrorResponse},
        409: {"description": "Name already taken", "model": ErrorResponse},
    },
    summary="Update a bus type",
)
async def update_bus_type(
    bus_type_id: uuid.UUID,
    body: BusTypeUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BusTypeResponse:
    return await bus_type_service.update_bus_type(db, bus_type_id, body, modified_by=user.email)


@router.delete(
    "/{bus_type_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "Bus type not found", "model": ErrorResponse},
        409: {"description": "Bus type in use", "model": ErrorResponse},
    },
    summary="Delete a bus type",
)
async def delete_bus_type(
    bus_type_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await bus_type_service.delete_bus_type(db, bus_type_id)
    return MessageResponse(message="Bus type deleted")
