"""
Kadzai Backend — Booking Service
=================================

What:  Everything that reads or writes bookings: payment-reference checks,
       lookups, creation (with seat allocation), and the admin list/update/delete
       (including passenger edits that move seat reservations).
Who:   Booking routes and the Paystack webhook handler.

Creation flow (POST /api/bookings, charge.success webhook):
    ┌──────────────┐   ┌──────────────┐   ┌─────────────┐   ┌──────────────┐
    │ payment ref  │──▶│ trip + bus   │──▶│ seat checks │──▶│ insert +     │
    │ unused?      │   │ available?   │   │ free, uniq  │   │ mark seats   │
    └──────────────┘   └──────────────┘   └─────────────┘   └──────────────┘

    The booking, its passengers and the seat flags are flushed together and
    committed by the request's session dependency, so a failure anywhere
    leaves no partial booking behind.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kadzai.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from kadzai.models.booking import BOOKING_STATUSES, Booking, Passenger
from kadzai.models.fleet import Bus, Seat
from kadzai.models.trip import Trip
from kadzai.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingSummary,
    BookingUpdate,
    PassengerEdit,
    PaymentCheckBooking,
    PaymentCheckResponse,
)
from kadzai.schemas.common import is_valid_email

logger = logging.getLogger(__name__)

# Eager-load everything BookingResponse serializes; lazy loads are not
# allowed under AsyncSession.
_FULL_BOOKING = (
    selectinload(Booking.passengers),
    selectinload(Booking.trip).selectinload(Trip.bus).selectinload(Bus.seats),
)


def generate_reference() -> str:
    """Booking code shown to travellers: "TE" + 8 upper-case hex characters."""
    return "TE" + uuid.uuid4().hex[:8].upper()


class BookingService:

    # ── Lookups ───────────────────────────────────────────────────────────

    async def check_payment(
        self,
        db: AsyncSession,
        reference: Optional[str] = None,
        payment_reference: Optional[str] = None,
    ) -> PaymentCheckResponse:
        """
        Report whether a booking exists for a reference pair.

        Each supplied value is matched against both the booking reference and
        the payment reference, since the frontend cannot always tell which of
        the two it is holding. Only a contact projection is returned.
        """
        if not reference and not payment_reference:
            raise ValidationError("Reference or paymentReference is required")

        conditions = []
        for value in (reference, payment_reference):
            if value:
                conditions.append(Booking.reference == value)
                conditions.append(Booking.payment_reference == value)

        result = await db.execute(select(Booking).where(or_(*conditions)).limit(1))
        booking = result.scalars().first()

        if booking is None:
            return PaymentCheckResponse(exists=False, booking=None)
        return PaymentCheckResponse(
            exists=True,
            booking=PaymentCheckBooking.model_validate(booking),
        )

    async def get_booking(self, db: AsyncSession, reference: str) -> BookingResponse:
        """Find a booking by payment reference first, then by booking reference."""
        booking = await self._find(db, Booking.payment_reference == reference)
        if booking is None:
            booking = await self._find(db, Booking.reference == reference)
        if booking is None:
            raise NotFoundError(resource="booking", resource_id=reference, message="Booking not found")
        return BookingResponse.model_validate(booking)

    async def list_bookings(
        self,
        db: AsyncSession,
        email: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> BookingListResponse:
        """Admin listing, newest first, optionally filtered by email and status."""
        filters = []
        if email:
            if not is_valid_email(email):
                raise ValidationError("Invalid email format", field="email")
            filters.append(Booking.email == email)
        if status:
            if status not in BOOKING_STATUSES:
                raise ValidationError(
                    f"Invalid status '{status}'. Must be one of: {', '.join(BOOKING_STATUSES)}",
                    field="status",
                )
            filters.append(Booking.status == status)

        try:
            result = await db.execute(
                select(Booking)
                .options(selectinload(Booking.passengers))
                .where(*filters)
                .order_by(desc(Booking.created_at))
                .limit(limit)
                .offset(offset)
            )
            bookings = list(result.scalars().all())

            count_result = await db.execute(
                select(func.count()).select_from(Booking).where(*filters)
            )
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing bookings: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_bookings"})

        return BookingListResponse(
            data=[BookingSummary.model_validate(b) for b in bookings],
            total=total,
        )

    # ── Creation ──────────────────────────────────────────────────────────

    async def create_booking(
        self,
        db: AsyncSession,
        payload: BookingCreate,
        created_by: Optional[str] = None,
    ) -> BookingResponse:
        """
        Validate seats against the trip's bus and persist a confirmed booking.

        Raises:
            ValidationError: payment reference reused, trip missing/unavailable,
                             duplicate or unavailable seats (→ 400)
            ConflictError: reference collided with a concurrent insert (→ 409)
        """
        if payload.payment_reference and await self._payment_reference_taken(
            db, payload.payment_reference
        ):
            raise ValidationError("Payment reference already used", field="paymentReference")

        if payload.reference and await self._find(db, Booking.reference == payload.reference):
            raise ConflictError(f"Booking reference '{payload.reference}' already exists")

        result = await db.execute(
            select(Trip)
            .options(selectinload(Trip.bus).selectinload(Bus.seats))
            .where(Trip.id == payload.trip_id)
        )
        trip = result.scalar_one_or_none()
        if trip is None or not trip.is_available or trip.bus is None:
            raise ValidationError("Invalid or unavailable trip", field="tripId")

        requested = [p.seat for p in payload.passengers]
        if len(set(requested)) != len(requested):
            raise ValidationError("Duplicate seat selection", field="passengers")

        seats_by_number = {seat.number: seat for seat in trip.bus.seats}
        chosen: List[Seat] = []
        for number in requested:
            seat = seats_by_number.get(number)
            if seat is None or not seat.is_available:
                raise ValidationError(
                    f"Seat {number} is not available",
                    field="passengers",
                    context={"seat": number},
                )
            chosen.append(seat)

        now = datetime.now(timezone.utc)
        booking = Booking(
            reference=payload.reference or generate_reference(),
            payment_reference=payload.payment_reference,
            trip_id=trip.id,
            bus_id=trip.bus_id,
            origin=trip.origin,
            destination=trip.destination,
            date=trip.date.date().isoformat(),
            time=trip.departure_time,
            operator=trip.bus.operator,
            email=payload.email,
            phone=payload.phone,
            status="confirmed",
            total_amount=len(payload.passengers) * trip.price,
            booking_date=now,
            created_at=now,
            created_by=created_by,
        )
        booking.passengers = [
            Passenger(
                id=uuid.uuid4(),
                name=p.name.strip(),
                seat=p.seat,
                age=p.age,
                gender=p.gender,
            )
            for p in payload.passengers
        ]
        booking.trip = trip
        for seat in chosen:
            seat.is_available = False

        db.add(booking)
        try:
            await db.flush()
        except IntegrityError as e:
            # A concurrent request won the race for the reference or payment reference
            await db.rollback()
            logger.warning("Booking insert conflict for %s: %s", booking.reference, str(e.orig))
            raise ConflictError(
                "Booking or payment reference already exists",
                context={"reference": booking.reference},
            )

        logger.info(
            "Booking %s created: trip=%s passengers=%d total=%.2f payment_ref=%s",
            booking.reference,
            trip.id,
            len(booking.passengers),
            booking.total_amount,
            booking.payment_reference,
        )
        return BookingResponse.model_validate(booking)

    # ── Admin mutations ───────────────────────────────────────────────────

    async def update_booking(
        self,
        db: AsyncSession,
        reference: str,
        payload: BookingUpdate,
        modified_by: Optional[str] = None,
    ) -> BookingResponse:
        booking = await self._find(db, Booking.reference == reference)
        if booking is None:
            raise NotFoundError(resource="booking", resource_id=reference, message="Booking not found")

        changes = payload.model_dump(exclude_unset=True, exclude={"passengers"})
        new_payment_ref = changes.get("payment_reference")
        if new_payment_ref and new_payment_ref != booking.payment_reference:
            if await self._payment_reference_taken(db, new_payment_ref):
                raise ValidationError("Payment reference already used", field="paymentReference")

        if payload.passengers is not None:
            await self._reassign_seats(db, booking, payload.passengers)

        for field, value in changes.items():
            if value is not None:
                setattr(booking, field, value)
        booking.modified_by = modified_by

        try:
            await db.flush()
        except IntegrityError as e:
            # Another booking took the payment reference after our check
            await db.rollback()
            logger.warning("Payment reference conflict updating %s: %s", reference, str(e.orig))
            raise ValidationError("Payment reference already used", field="paymentReference")
        except SQLAlchemyError as e:
            logger.error("Database error updating booking %s: %s", reference, str(e))
            raise DatabaseError(context={"operation": "update_booking", "reference": reference})

        updated = sorted(changes) + (["passengers"] if payload.passengers is not None else [])
        logger.info("Booking %s updated: %s", reference, updated)
        return BookingResponse.model_validate(booking)

    async def delete_booking(self, db: AsyncSession, reference: str) -> None:
        """Delete a booking and release its seats. Completed trips are kept."""
        booking = await self._find(db, Booking.reference == reference)
        if booking is None:
            raise NotFoundError(resource="booking", resource_id=reference, message="Booking not found")
        if booking.status == "completed":
            raise ConflictError("Completed bookings cannot be deleted")

        seat_numbers = [p.seat for p in booking.passengers]
        try:
            if booking.bus_id and seat_numbers:
                await db.execute(
                    update(Seat)
                    .where(Seat.bus_id == booking.bus_id, Seat.number.in_(seat_numbers))
                    .values(is_available=True)
                )
            await db.delete(booking)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting booking %s: %s", reference, str(e))
            raise DatabaseError(context={"operation": "delete_booking", "reference": reference})

        logger.info("Booking %s deleted; released seats %s", reference, seat_numbers)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _reassign_seats(
        self,
        db: AsyncSession,
        booking: Booking,
        passengers: List[PassengerEdit],
    ) -> None:
        """
        Replace a booking's passengers and move its seat reservations.

        Seats the booking already holds are kept without re-checking; newly
        requested seats must exist on the bus and be free. Seats no longer
        requested go back on sale.
        """
        current = [p.seat for p in booking.passengers]
        requested = [p.seat for p in passengers]
        to_reserve = [s for s in requested if s not in current]
        to_release = [s for s in current if s not in requested]

        if to_reserve:
            result = await db.execute(
                select(Seat).where(Seat.bus_id == booking.bus_id, Seat.number.in_(to_reserve))
            )
            found = {seat.number: seat for seat in result.scalars().all()}

            taken = [n for n in to_reserve if n in found and not found[n].is_available]
            if taken:
                raise ValidationError(
                    f"Seats {', '.join(taken)} are not available",
                    field="passengers",
                    context={"seats": taken},
                )
            unknown = [n for n in to_reserve if n not in found]
            if unknown:
                raise ValidationError(
                    f"Invalid seat numbers: {', '.join(unknown)}",
                    field="passengers",
                    context={"seats": unknown},
                )
            for number in to_reserve:
                found[number].is_available = False

        if to_release:
            await db.execute(
                update(Seat)
                .where(Seat.bus_id == booking.bus_id, Seat.number.in_(to_release))
                .values(is_available=True)
            )

        existing = {p.id: p for p in booking.passengers}
        replacement = []
        for p in passengers:
            passenger = existing.get(p.id) if p.id else None
            if passenger is None:
                passenger = Passenger(id=uuid.uuid4())
            passenger.name = p.name.strip()
            passenger.seat = p.seat
            passenger.age = p.age
            passenger.gender = p.gender
            replacement.append(passenger)
        booking.passengers = replacement
        logger.info(
            "Booking %s seats moved: reserved=%s released=%s",
            booking.reference, to_reserve, to_release,
        )

    async def _find(self, db: AsyncSession, condition) -> Optional[Booking]:
        try:
            result = await db.execute(select(Booking).options(*_FULL_BOOKING).where(condition))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching booking: %s", str(e))
            raise DatabaseError(context={"operation": "find_booking"})

    async def _payment_reference_taken(self, db: AsyncSession, payment_reference: str) -> bool:
        result = await db.execute(
            select(Booking.reference).where(Booking.payment_reference == payment_reference)
        )
        return result.scalar_one_or_none() is not None


booking_service = BookingService()
