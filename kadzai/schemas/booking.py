"""
Kadzai Backend — Booking Schemas
=================================

What:  Request bodies for creating/updating bookings and every booking-shaped
       response (full detail, admin list row, payment-check projection).

The payment-check projection is deliberately narrow: callers who only hold a
reference learn whether the booking exists and how to reach its owner, not
who is travelling.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from kadzai.schemas.common import CamelModel, is_valid_email, is_valid_phone
from kadzai.schemas.trip import TripResponse

Gender = Literal["male", "female"]
BookingStatus = Literal["confirmed", "cancelled", "completed"]


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════

class PassengerInput(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    seat: str = Field(min_length=1, max_length=10)
    age: int = Field(gt=0)
    gender: Gender


class BookingCreate(CamelModel):
    """
    Body of POST /api/bookings.

    `reference` is optional: the Paystack webhook passes the booking reference
    the frontend generated before payment; direct callers let the server
    generate one.
    """
    trip_id: uuid.UUID
    email: str
    phone: str
    passengers: List[PassengerInput] = Field(min_length=1)
    payment_reference: Optional[str] = Field(default=None, max_length=100)
    reference: Optional[str] = Field(default=None, min_length=1, max_length=32)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_email(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_phone(v):
            raise ValueError("Invalid phone number format")
        return v


class PassengerEdit(PassengerInput):
    """A passenger in a booking edit; `id` keeps an existing passenger's identity."""
    id: Optional[uuid.UUID] = None


class BookingUpdate(CamelModel):
    """
    Body of PATCH /api/bookings/{reference}; every field optional.

    `passengers`, when given, replaces the whole passenger list and moves
    seat reservations to match it.
    """
    status: Optional[BookingStatus] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    payment_reference: Optional[str] = Field(default=None, max_length=100)
    total_amount: Optional[float] = Field(default=None, gt=0)
    passengers: Optional[List[PassengerEdit]] = None

    @field_validator("passengers")
    @classmethod
    def validate_passengers(cls, v: Optional[List[PassengerEdit]]) -> Optional[List[PassengerEdit]]:
        if v is None:
            return v
        if not v:
            raise ValueError("Passengers must be a non-empty array")
        seats = [p.seat for p in v]
        if len(set(seats)) != len(seats):
            raise ValueError("Duplicate seat numbers in booking")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_email(v.strip()):
            raise ValueError("Invalid email format")
        return v.strip() if v is not None else v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_phone(v.strip()):
            raise ValueError("Invalid phone number format")
        return v.strip() if v is not None else v


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════

class PassengerResponse(CamelModel):
    id: uuid.UUID
    name: str
    seat: str
    age: int
    gender: str


class BookingSummary(CamelModel):
    """Admin list row: the booking and its passengers, without the trip graph."""
    reference: str
    payment_reference: Optional[str] = None
    trip_id: Optional[uuid.UUID] = None
    bus_id: Optional[uuid.UUID] = None
    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    date: str
    time: str
    operator: str
    email: str
    phone: str
    status: str
    total_amount: float
    booking_date: datetime
    created_at: datetime
    passengers: List[PassengerResponse] = Field(default_factory=list)


class BookingResponse(BookingSummary):
    trip: Optional[TripResponse] = None


class BookingListResponse(CamelModel):
    data: List[BookingSummary]
    total: int


class PaymentCheckBooking(CamelModel):
    reference: str
    payment_reference: Optional[str] = None
    email: str
    phone: str
    status: str


class PaymentCheckResponse(CamelModel):
    exists: bool
    booking: Optional[PaymentCheckBooking] = None
