"""
Kadzai Backend — Bus Service
=============================

What:  Admin CRUD for buses and the seats generated from their layout.
Rules:
    - a bus belongs to an existing bus type, and its layout must hold
      exactly that type's seat count with no repeated seat numbers
    - a new layout replaces every seat, so it is refused while any seat
      on the bus is booked
    - a bus with available trips or active bookings cannot be deleted
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kadzai.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from kadzai.models.booking import ACTIVE_BOOKING_STATUSES, Booking
from kadzai.models.fleet import Bus, BusType, Seat
from kadzai.models.trip import Trip
from kadzai.schemas.trip import (
    BusCreate,
    BusListResponse,
    BusResponse,
    BusUpdate,
    SeatLayout,
)

logger = logging.getLogger(__name__)


class BusService:

    async def list_buses(
        self,
        db: AsyncSession,
        operator: Optional[str] = None,
        bus_type: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> BusListResponse:
        """Newest first; `operator` matches case-insensitively, `bus_type` exactly."""
        filters = []
        if operator:
            filters.append(Bus.operator.ilike(f"%{operator.strip()}%"))
        if bus_type:
            filters.append(Bus.bus_type == bus_type)

        try:
            result = await db.execute(
                select(Bus)
                .options(selectinload(Bus.seats))
                .where(*filters)
                .order_by(desc(Bus.created_at))
                .limit(limit)
                .offset(offset)
            )
            buses = list(result.scalars().all())
            count_result = await db.execute(
                select(func.count()).select_from(Bus).where(*filters)
            )
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing buses: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_buses"})

        return BusListResponse(
            data=[BusResponse.model_validate(b) for b in buses],
            total=total,
        )

    async def get_bus(self, db: AsyncSession, bus_id: uuid.UUID) -> BusResponse:
        return BusResponse.model_validate(await self._get(db, bus_id))

    async def create_bus(
        self,
        db: AsyncSession,
        payload: BusCreate,
        created_by: Optional[str] = None,
    ) -> BusResponse:
        bus_type = await self._find_bus_type(db, payload.bus_type)
        if bus_type is None:
            raise ValidationError("Invalid bus type", field="busType")
        seat_numbers = self._check_layout(payload.seat_layout, bus_type)

        bus = Bus(
            id=uuid.uuid4(),
            operator=payload.operator,
            bus_type=bus_type.name,
            seat_layout=payload.seat_layout.model_dump(),
            amenities=list(payload.amenities),
            rating=payload.rating,
            created_at=datetime.now(timezone.utc),
            created_by=created_by,
            modified_by=created_by,
        )
        bus.seats = self._build_seats(bus.id, seat_numbers)
        db.add(bus)
        await self._flush(db, "create_bus")

        logger.info(
            "Bus %s created: operator=%s type=%s seats=%d",
            bus.id, bus.operator, bus.bus_type, len(bus.seats),
        )
        return BusResponse.model_validate(bus)

    async def update_bus(
        self,
        db: AsyncSession,
        bus_id: uuid.UUID,
        payload: BusUpdate,
        modified_by: Optional[str] = None,
    ) -> BusResponse:
        bus = await self._get(db, bus_id)

        if payload.bus_type:
            if await self._find_bus_type(db, payload.bus_type) is None:
                raise ValidationError("Invalid bus type", field="busType")

        if payload.seat_layout is not None:
            bus_type = await self._find_bus_type(db, payload.bus_type or bus.bus_type)
            if bus_type is None:
                raise ValidationError("Bus type not found", field="busType")
            seat_numbers = self._check_layout(payload.seat_layout, bus_type)
            booked = [seat.number for seat in bus.seats if not seat.is_available]
            if booked:
                raise ConflictError(
                    "Cannot change seat layout while seats are booked",
                    context={"seats": booked},
                )
            bus.seat_layout = payload.seat_layout.model_dump()
            # Old seats must be gone before their numbers are inserted again
            bus.seats.clear()
            await self._flush(db, "update_bus")
            bus.seats.extend(self._build_seats(bus.id, seat_numbers))

        if payload.operator and payload.operator.strip():
            bus.operator = payload.operator.strip()
        if payload.bus_type:
            bus.bus_type = payload.bus_type
        if payload.amenities is not None:
            bus.amenities = list(payload.amenities)
        if payload.rating is not None:
            bus.rating = payload.rating
        bus.modified_by = modified_by

        await self._flush(db, "update_bus")
        logger.info("Bus %s updated", bus_id)
        return BusResponse.model_validate(bus)

    async def delete_bus(self, db: AsyncSession, bus_id: uuid.UUID) -> None:
        result = await db.execute(select(Bus).where(Bus.id == bus_id))
        bus = result.scalar_one_or_none()
        if bus is None:
            raise NotFoundError(resource="bus", resource_id=str(bus_id), message="Bus not found")

        trips = await db.execute(
            select(func.count())
            .select_from(Trip)
            .where(Trip.bus_id == bus_id, Trip.is_available.is_(True))
        )
        bookings = await db.execute(
            select(func.count())
            .select_from(Booking)
            .where(Booking.bus_id == bus_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
        )
        active_trips = trips.scalar() or 0
        active_bookings = bookings.scalar() or 0
        if active_trips or active_bookings:
            raise ConflictError(
                "Cannot delete bus with active trips or bookings",
                context={"trips": active_trips, "bookings": active_bookings},
            )

        await db.delete(bus)
        await self._flush(db, "delete_bus")
        logger.info("Bus %s deleted", bus_id)

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _check_layout(layout: SeatLayout, bus_type: BusType) -> List[str]:
        seat_numbers = layout.seat_numbers()
        if len(seat_numbers) != bus_type.seats:
            raise ValidationError(
                f"Seat count ({len(seat_numbers)}) does not match bus type ({bus_type.seats})",
                field="seatLayout",
            )
        if len(set(seat_numbers)) != len(seat_numbers):
            raise ValidationError("Duplicate seat numbers", field="seatLayout")
        return seat_numbers

    @staticmethod
    def _build_seats(bus_id: uuid.UUID, seat_numbers: List[str]) -> List[Seat]:
        return [
            Seat(id=uuid.uuid4(), bus_id=bus_id, number=number, is_available=True)
            for number in seat_numbers
        ]

    async def _get(self, db: AsyncSession, bus_id: uuid.UUID) -> Bus:
        result = await db.execute(
            select(Bus).options(selectinload(Bus.seats)).where(Bus.id == bus_id)
        )
        bus = result.scalar_one_or_none()
        if bus is None:
            raise NotFoundError(resource="bus", resource_id=str(bus_id), message="Bus not found")
        return bus

    async def _find_bus_type(self, db: AsyncSession, name: str) -> Optional[BusType]:
        result = await db.execute(select(BusType).where(BusType.name == name))
        return result.scalar_one_or_none()

    async def _flush(self, db: AsyncSession, operation: str) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error in %s: %s", operation, str(e))
            raise DatabaseError(context={"operation": operation})


bus_service = BusService()
