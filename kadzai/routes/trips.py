"""
Kadzai Backend — Trip Routes
=============================

Public (travellers):
    GET    /api/trips/user                 search by from/to/date
    GET    /api/trips/user/{trip_id}       detail with seat map

Admin (bearer session required):
    GET    /api/trips                      list with from/to/date filters
    POST   /api/trips                      schedule a trip
    GET    /api/trips/{trip_id}            detail
    PATCH  /api/trips/{trip_id}            reschedule or edit
    DELETE /api/trips/{trip_id}            delete when no active bookings

The `/user` paths are declared first so "user" is never read as a trip id.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.database import get_db_session
from kadzai.dependencies import get_current_user
from kadzai.models.user import User
from kadzai.schemas.common import ErrorResponse, MessageResponse
from kadzai.schemas.trip import TripCreate, TripListResponse, TripResponse, TripUpdate
from kadzai.services.trip_service import trip_service

router = APIRouter(prefix="/api/trips", tags=["Trips"])

_ADMIN_ERRORS = {401: {"description": "Not authenticated", "model": ErrorResponse}}


@router.get(
    "/user",
    response_model=TripListResponse,
    responses={400: {"description": "Invalid date", "model": ErrorResponse}},
    summary="Search trips",
    description=(
        "`from` and `to` match case-insensitively anywhere in the city name; "
        "`date` (ISO 8601) restricts results to that calendar day (UTC)."
    ),
)
async def search_trips(
    origin: Optional[str] = Query(default=None, alias="from"),
    destination: Optional[str] = Query(default=None, alias="to"),
    date: Optional[str] = Query(default=None, description="ISO 8601 date or datetime"),
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> TripListResponse:
    return await trip_service.search_trips(
        db,
        origin=origin,
        destination=destination,
        date=date,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/user/{trip_id}",
    response_model=TripResponse,
    responses={404: {"description": "Trip not found", "model": ErrorResponse}},
    summary="Trip detail with seat map",
)
async def get_trip(
    trip_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> TripResponse:
    return await trip_service.get_trip(db, trip_id)


# ── Admin schedule ────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=TripListResponse,
    dependencies=[Depends(get_current_user)],
    responses={**_ADMIN_ERRORS, 400: {"description": "Invalid date", "model": ErrorResponse}},
    summary="List trips (admin)",
)
async def list_trips(
    origin: Optional[str] = Query(default=None, alias="from"),
    destination: Optional[str] = Query(default=None, alias="to"),
    date: Optional[str] = Query(default=None, description="ISO 8601 date or datetime"),
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> TripListResponse:
    return await trip_service.search_trips(
        db,
        origin=origin,
        destination=destination,
        date=date,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=TripResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_ADMIN_ERRORS,
        400: {"description": "Missing or malformed fields, unknown bus or overlap", "model": ErrorResponse},
    },
    summary="Schedule a trip (admin)",
)
async def create_trip(
    body: TripCreate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> TripResponse:
    return await trip_service.create_trip(db, body, created_by=user.email)


@router.get(
    "/{trip_id}",
    dependencies=[Depends(get_current_user)],
    response_model=TripResponse,
    responses={**_ADMIN_ERRORS, 404: {"description": "Trip not found", "model": ErrorResponse}},
    summary="Trip detail (admin)",
)
async def get_trip_admin(
    trip_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> TripResponse:
    return await trip_service.get_trip(db, trip_id)


@router.patch(
    "/{trip_id}",
    response_model=TripResponse,
    responses={
        **_ADMIN_ERRORS,
        400: {"description": "Malformed fields, unknown bus or overlap", "model": ErrorResponse},
        404: {"description": "Trip not found", "model": ErrorResponse},
    },
    summary="Update a trip (admin)",
)
async def update_trip(
    trip_id: uuid.UUID,
    body: TripUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> TripResponse:
    return await trip_service.update_trip(db, trip_id, body, modified_by=user.email)


@router.delete(
    "/{trip_id}",
    dependencies=[Depends(get_current_user)],
    response_model=MessageResponse,
    responses={
        **_ADMIN_ERRORS,
        404: {"description": "Trip not found", "model": ErrorResponse},
        409: {"description": "Trip has active bookings", "model": ErrorResponse},
    },
    summary="Delete a trip (admin)",
)
async def delete_trip(
    trip_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await trip_service.delete_trip(db, trip_id)
    return MessageResponse(message="Trip deleted")
