"""Admin fleet management under /api/buses (bearer session required)."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.database import get_db_session
from kadzai.dependencies import get_current_user
from kadzai.models.user import User
from kadzai.schemas.common import ErrorResponse, MessageResponse
from kadzai.schemas.trip import BusCreate, BusListResponse, BusResponse, BusUpdate
from kadzai.services.bus_service import bus_service

router = APIRouter(
    prefix="/api/buses",
    tags=["Buses"],
    dependencies=[Depends(get_current_user)],
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
)


@router.get("", response_model=BusListResponse, summary="List buses")
async def list_buses(
    operator: Optional[str] = Query(default=None, description="Case-insensitive substring"),
    bus_type: Optional[str] = Query(default=None, alias="busType"),
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> BusListResponse:
    return await bus_service.list_buses(
        db, operator=operator, bus_type=bus_type, limit=limit, offset=offset
    )


@router.post(
    "",
    response_model=BusResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Missing fields, unknown bus type or bad layout", "model": ErrorResponse}},
    summary="Create a bus and its seats",
    description=(
        "Seats are generated from `seatLayout.arrangement`; empty strings are "
        "gaps. The number of seats must equal the bus type's seat count."
    ),
)
async def create_bus(
    body: BusCreate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BusResponse:
    return await bus_service.create_bus(db, body, created_by=user.email)


@router.get(
    "/{bus_id}",
    response_model=BusResponse,
    responses={404: {"description": "Bus not found", "model": ErrorResponse}},
    summary="Bus detail with seats",
)
async def get_bus(
    bus_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> BusResponse:
    return await bus_service.get_bus(db, bus_id)


@router.patch(
    "/{bus_id}",
    response_model=BusResponse,
    responses={
        400: {"description": "Unknown bus type or bad layout", "model": ErrorResponse},
        404: {"description": "Bus not found", "model": ErrorResponse},
        409: {"description": "Layout change while seats are booked", "model": ErrorResponse},
    },
    summary="Update a bus",
)
async def update_bus(
    bus_id: uuid.UUID,
    body: BusUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BusResponse:
    return await bus_service.update_bus(db, bus_id, body, modified_by=user.email)


@router.delete(
    "/{bus_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "Bus not found", "model": ErrorResponse},
        409: {"description": "Bus has active trips or bookings", "model": ErrorResponse},
    },
    summary="Delete a bus",
)
async def delete_bus(
    bus_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await bus_service.delete_bus(db, bus_id)
    return MessageResponse(message="Bus deleted")
