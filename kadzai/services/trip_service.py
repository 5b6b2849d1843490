"""
Kadzai Backend — Trip Service
==============================

What:  Trip search and detail (with the bus and its seat map), and the admin
       schedule: create, update and delete trips.
Who:   GET /api/trips/user[/{trip_id}] for travellers, /api/trips for operators.

Scheduling rules:
    - a trip runs on one calendar day (stored as midnight UTC)
    - two trips of the same bus on the same day may not overlap, where a
      trip occupies [departure, departure + duration)
    - a trip with confirmed or completed bookings cannot be deleted
"""

import logging
import uuid
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import asc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kadzai.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from kadzai.models.booking import ACTIVE_BOOKING_STATUSES, Booking
from kadzai.models.fleet import Bus
from kadzai.models.trip import Trip
from kadzai.schemas.trip import (
    DURATION_PATTERN,
    TripCreate,
    TripListResponse,
    TripResponse,
    TripUpdate,
    parse_travel_day,
)

logger = logging.getLogger(__name__)


def _day_bounds(value: str):
    """
    Parse an ISO date or datetime and return the [start, end) UTC bounds of
    that calendar day.
    """
    try:
        start = parse_travel_day(value)
    except ValueError:
        raise ValidationError("Invalid date format", field="date")
    return start, start + timedelta(days=1)


def _time_window(day: datetime, departure_time: str, duration: str):
    hours, minutes = (int(part) for part in DURATION_PATTERN.match(duration).groups())
    start = datetime.combine(
        day.date(),
        time.fromisoformat(departure_time),
        tzinfo=timezone.utc,
    )
    return start, start + timedelta(hours=hours, minutes=minutes)


class TripService:

    async def search_trips(
        self,
        db: AsyncSession,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        date: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> TripListResponse:
        """
        Search trips by case-insensitive route substrings and travel day.

        Results are ordered by departure date, oldest first.
        """
        filters = []
        if origin:
            filters.append(Trip.origin.ilike(f"%{origin.strip()}%"))
        if destination:
            filters.append(Trip.destination.ilike(f"%{destination.strip()}%"))
        if date:
            start, end = _day_bounds(date)
            filters.append(Trip.date >= start)
            filters.append(Trip.date < end)

        try:
            result = await db.execute(
                select(Trip)
                .options(selectinload(Trip.bus).selectinload(Bus.seats))
                .where(*filters)
                .order_by(asc(Trip.date))
                .limit(limit)
                .offset(offset)
            )
            trips = list(result.scalars().all())
            count_result = await db.execute(
                select(func.count()).select_from(Trip).where(*filters)
            )
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error searching trips: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "search_trips"})

        logger.debug(
            "Trip search from=%r to=%r date=%r returned %d of %d",
            origin, destination, date, len(trips), total,
        )
        return TripListResponse(
            data=[TripResponse.model_validate(t) for t in trips],
            total=total,
        )

    async def get_trip(self, db: AsyncSession, trip_id: uuid.UUID) -> TripResponse:
        return TripResponse.model_validate(await self._get(db, trip_id))

    # ── Admin schedule ────────────────────────────────────────────────────

    async def create_trip(
        self,
        db: AsyncSession,
        payload: TripCreate,
        created_by: Optional[str] = None,
    ) -> TripResponse:
        """
        Schedule a trip on an existing bus.

        Raises:
            ValidationError: unknown bus, or the bus is already out on an
                             overlapping trip that day (→ 400)
        """
        bus = await self._get_bus(db, payload.bus_id)
        day = parse_travel_day(payload.date)
        await self._check_overlap(db, bus.id, day, payload.departure_time, payload.duration)

        now = datetime.now(timezone.utc)
        trip = Trip(
            id=uuid.uuid4(),
            bus_id=bus.id,
            origin=payload.origin,
            destination=payload.destination,
            date=day,
            departure_time=payload.departure_time,
            arrival_time=payload.arrival_time,
            duration=payload.duration,
            price=payload.price,
            is_available=payload.is_available,
            created_at=now,
            created_by=created_by,
            modified_by=created_by,
        )
        trip.bus = bus
        db.add(trip)
        await self._flush(db, "create_trip")

        logger.info(
            "Trip %s scheduled: %s -> %s on %s %s (bus %s)",
            trip.id, trip.origin, trip.destination, day.date(), trip.departure_time, bus.id,
        )
        return TripResponse.model_validate(trip)

    async def update_trip(
        self,
        db: AsyncSession,
        trip_id: uuid.UUID,
        payload: TripUpdate,
        modified_by: Optional[str] = None,
    ) -> TripResponse:
        trip = await self._get(db, trip_id)

        bus = await self._get_bus(db, payload.bus_id) if payload.bus_id else trip.bus
        day = parse_travel_day(payload.date) if payload.date else trip.date

        if payload.bus_id or payload.date or payload.departure_time or payload.duration:
            await self._check_overlap(
                db,
                bus.id if bus is not None else trip.bus_id,
                day,
                payload.departure_time or trip.departure_time,
                payload.duration or trip.duration,
                exclude_trip_id=trip.id,
            )

        if payload.bus_id:
            trip.bus_id = bus.id
            trip.bus = bus
        if payload.date:
            trip.date = day
        for field in ("origin", "destination", "departure_time", "arrival_time", "duration"):
            value = getattr(payload, field)
            if value:
                setattr(trip, field, value.strip())
        if payload.price is not None:
            trip.price = payload.price
        if payload.is_available is not None:
            trip.is_available = payload.is_available
        trip.modified_by = modified_by

        await self._flush(db, "update_trip")
        logger.info("Trip %s updated", trip_id)
        return TripResponse.model_validate(trip)

    async def delete_trip(self, db: AsyncSession, trip_id: uuid.UUID) -> None:
        result = await db.execute(select(Trip).where(Trip.id == trip_id))
        trip = result.scalar_one_or_none()
        if trip is None:
            raise NotFoundError(resource="trip", resource_id=str(trip_id), message="Trip not found")

        result = await db.execute(
            select(func.count())
            .select_from(Booking)
            .where(Booking.trip_id == trip_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
        )
        active = result.scalar() or 0
        if active:
            raise ConflictError(
                "Cannot delete trip with active bookings",
                context={"bookings": active},
            )

        await db.delete(trip)
        await self._flush(db, "delete_trip")
        logger.info("Trip %s deleted", trip_id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get(self, db: AsyncSession, trip_id: uuid.UUID) -> Trip:
        result = await db.execute(
            select(Trip)
            .options(selectinload(Trip.bus).selectinload(Bus.seats))
            .where(Trip.id == trip_id)
        )
        trip = result.scalar_one_or_none()
        if trip is None:
            raise NotFoundError(resource="trip", resource_id=str(trip_id), message="Trip not found")
        return trip

    async def _get_bus(self, db: AsyncSession, bus_id: uuid.UUID) -> Bus:
        result = await db.execute(
            select(Bus).options(selectinload(Bus.seats)).where(Bus.id == bus_id)
        )
        bus = result.scalar_one_or_none()
        if bus is None:
            raise ValidationError("Invalid bus ID", field="busId")
        return bus

    async def _check_overlap(
        self,
        db: AsyncSession,
        bus_id: uuid.UUID,
        day: datetime,
        departure_time: str,
        duration: str,
        exclude_trip_id: Optional[uuid.UUID] = None,
    ) -> None:
        start, end = _time_window(day, departure_time, duration)

        filters = [
            Trip.bus_id == bus_id,
            Trip.date >= day,
            Trip.date < day + timedelta(days=1),
        ]
        if exclude_trip_id is not None:
            filters.append(Trip.id != exclude_trip_id)
        result = await db.execute(select(Trip).where(*filters))

        for other in result.scalars().all():
            other_start, other_end = _time_window(other.date, other.departure_time, other.duration)
            if start < other_end and end > other_start:
                raise ValidationError(
                    "Trip overlaps with an existing trip for this bus",
                    context={"trip_id": str(other.id)},
                )

    async def _flush(self, db: AsyncSession, operation: str) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error in %s: %s", operation, str(e))
            raise DatabaseError(context={"operation": operation})


trip_service = TripService()
