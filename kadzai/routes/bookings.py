"""
Kadzai Backend — Booking Routes
================================

Public (travellers, payment flow):
    POST /api/bookings                          create a booking
    GET  /api/bookings/user/check-payment       does a booking exist for a reference?
    GET  /api/bookings/user/{reference}         booking detail by payment or booking ref

Admin (bearer session required):
    GET    /api/bookings                        list with email/status filters
    GET    /api/bookings/{reference}            detail
    PATCH  /api/bookings/{reference}            update status/contact/payment ref/passengers
    DELETE /api/bookings/{reference}            delete and release seats

Route order matters: the literal `/user/...` paths are declared before
`/{reference}` so "user" is never captured as a reference.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.database import get_db_session
from kadzai.dependencies import get_current_user
from kadzai.models.user import User
from kadzai.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
    PaymentCheckResponse,
)
from kadzai.schemas.common import ErrorResponse, MessageResponse
from kadzai.services.booking_service import booking_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid input, trip or seats", "model": ErrorResponse},
        409: {"description": "Reference collision", "model": ErrorResponse},
    },
    summary="Create a booking",
    description=(
        "Books the requested seats on a trip. Total amount is passenger count "
        "times the trip price; the booked seats become unavailable."
    ),
)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db_session),
) -> BookingResponse:
    return await booking_service.create_booking(db, body)


@router.get(
    "/user/check-payment",
    response_model=PaymentCheckResponse,
    responses={400: {"description": "No reference supplied", "model": ErrorResponse}},
    summary="Check whether a booking exists for a payment",
)
async def check_payment(
    reference: Optional[str] = Query(default=None, description="Booking or payment reference"),
    payment_reference: Optional[str] = Query(
        default=None,
        alias="paymentReference",
        description="Payment reference",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> PaymentCheckResponse:
    return await booking_service.check_payment(
        db, reference=reference, payment_reference=payment_reference
    )


@router.get(
    "/user/{reference}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found", "model": ErrorResponse}},
    summary="Get a booking by payment or booking reference",
)
async def get_user_booking(
    reference: str,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> BookingResponse:
    result = await booking_service.get_booking(db, reference)
    response.headers["Cache-Control"] = "no-store"
    return result


# ── Admin ─────────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=BookingListResponse,
    responses={
        400: {"description": "Invalid filter", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
    },
    summary="List bookings (admin)",
)
async def list_bookings(
    response: Response,
    email: Optional[str] = Query(default=None),
    booking_status: Optional[str] = Query(default=None, alias="status"),
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BookingListResponse:
    result = await booking_service.list_bookings(
        db, email=email, status=booking_status, limit=limit, offset=offset
    )
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/{reference}",
    response_model=BookingResponse,
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
    },
    summary="Get a booking (admin)",
)
async def get_booking(
    reference: str,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BookingResponse:
    return await booking_service.get_booking(db, reference)


@router.patch(
    "/{reference}",
    response_model=BookingResponse,
    responses={
        400: {"description": "Invalid update", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
    },
    summary="Update a booking (admin)",
)
async def update_booking(
    reference: str,
    body: BookingUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> BookingResponse:
    return await booking_service.update_booking(db, reference, body, modified_by=user.email)


@router.delete(
    "/{reference}",
    response_model=MessageResponse,
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
        409: {"description": "Booking is completed", "model": ErrorResponse},
    },
    summary="Delete a booking (admin)",
)
async def delete_booking(
    reference: str,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> MessageResponse:
    await booking_service.delete_booking(db, reference)
    logger.info("Booking %s deleted by %s", reference, user.email)
    return MessageResponse(message="Booking deleted")
