"""
Kadzai Backend — Trip and Fleet Schemas
========================================

What:  Response shapes for trips, the bus that runs them and its seats, plus
       the admin request models for trips, buses and bus types.
Note:  `origin`/`destination` serialize as `from`/`to` (explicit aliases win
       over the camelCase generator).
"""

import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field, model_validator

from kadzai.schemas.common import CamelModel

TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
# "8h 0m", "10h 45m"
DURATION_PATTERN = re.compile(r"^(\d+)h\s([0-5]?[0-9])m$")


def parse_travel_day(value: str) -> datetime:
    """
    Parse an ISO 8601 date or datetime and return midnight UTC of that day.

    Raises ValueError("Invalid date format") for anything unparseable.
    """
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValueError("Invalid date format")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc)


def _check_travel_day(value: str) -> None:
    try:
        day = parse_travel_day(value)
    except ValueError:
        raise ValueError("Invalid date format (use ISO 8601)")
    if day.date() < datetime.now(timezone.utc).date():
        raise ValueError("Trip date cannot be in the past")


class SeatResponse(CamelModel):
    id: uuid.UUID
    number: str
    is_available: bool


class BusResponse(CamelModel):
    id: uuid.UUID
    operator: str
    bus_type: str
    seat_layout: Optional[dict] = None
    amenities: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    seats: List[SeatResponse] = Field(default_factory=list)


class BusListResponse(CamelModel):
    data: List[BusResponse]
    total: int


class TripResponse(CamelModel):
    id: uuid.UUID
    bus_id: uuid.UUID
    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    date: datetime
    departure_time: str
    arrival_time: str
    duration: str
    price: float
    is_available: bool
    created_at: Optional[datetime] = None
    bus: Optional[BusResponse] = None


class TripListResponse(CamelModel):
    data: List[TripResponse]
    total: int


# ── Trips (admin) ─────────────────────────────────────────────────────────

class TripCreate(CamelModel):
    """
    Body of POST /api/trips.

    `date` accepts any ISO 8601 date or datetime and is normalized to
    midnight UTC of that day; trips are scheduled per calendar day.
    """
    bus_id: Optional[uuid.UUID] = None
    origin: Optional[str] = Field(default=None, alias="from")
    destination: Optional[str] = Field(default=None, alias="to")
    date: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    duration: Optional[str] = None
    price: Optional[float] = None
    is_available: bool = True

    @model_validator(mode="after")
    def check_fields(self) -> "TripCreate":
        required = (
            self.bus_id, self.origin, self.destination, self.date,
            self.departure_time, self.arrival_time, self.duration,
        )
        if any(not value for value in required) or self.price is None:
            raise ValueError("All fields are required")
        _check_travel_day(self.date)
        if not TIME_PATTERN.match(self.departure_time) or not TIME_PATTERN.match(self.arrival_time):
            raise ValueError("Invalid time format (use HH:MM)")
        if not DURATION_PATTERN.match(self.duration):
            raise ValueError("Invalid duration format (use Xh Ym)")
        if self.price < 0:
            raise ValueError("Price must be non-negative")
        self.origin = self.origin.strip()
        self.destination = self.destination.strip()
        return self


class TripUpdate(CamelModel):
    """Body of PATCH /api/trips/{trip_id}; only the supplied fields change."""
    bus_id: Optional[uuid.UUID] = None
    origin: Optional[str] = Field(default=None, alias="from")
    destination: Optional[str] = Field(default=None, alias="to")
    date: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    duration: Optional[str] = None
    price: Optional[float] = None
    is_available: Optional[bool] = None

    @model_validator(mode="after")
    def check_fields(self) -> "TripUpdate":
        if self.date:
            _check_travel_day(self.date)
        if self.departure_time and not TIME_PATTERN.match(self.departure_time):
            raise ValueError("Invalid departure time format (use HH:MM)")
        if self.arrival_time and not TIME_PATTERN.match(self.arrival_time):
            raise ValueError("Invalid arrival time format (use HH:MM)")
        if self.duration and not DURATION_PATTERN.match(self.duration):
            raise ValueError("Invalid duration format (use Xh Ym)")
        if self.price is not None and self.price < 0:
            raise ValueError("Price must be non-negative")
        return self


# ── Buses (admin) ─────────────────────────────────────────────────────────

class SeatLayout(CamelModel):
    """
    Seat grid of a bus: `arrangement` holds `rows` lists of `columns` seat
    numbers, with "" marking an aisle or an empty slot.
    """
    rows: int
    columns: int
    arrangement: List[List[str]]

    @model_validator(mode="after")
    def check_grid(self) -> "SeatLayout":
        if self.rows <= 0 or self.columns <= 0:
            raise ValueError("Invalid rows or columns")
        if len(self.arrangement) != self.rows or any(
            len(row) != self.columns for row in self.arrangement
        ):
            raise ValueError("Invalid seat layout arrangement")
        return self

    def seat_numbers(self) -> List[str]:
        return [seat for row in self.arrangement for seat in row if seat != ""]


class BusCreate(CamelModel):
    operator: Optional[str] = None
    bus_type: Optional[str] = None
    seat_layout: Optional[SeatLayout] = None
    amenities: Optional[List[str]] = None
    rating: Optional[float] = None

    @model_validator(mode="after")
    def check_fields(self) -> "BusCreate":
        if (
            not self.operator
            or not self.operator.strip()
            or not self.bus_type
            or self.seat_layout is None
            or self.amenities is None
            or self.rating is None
        ):
            raise ValueError("All fields are required")
        self.operator = self.operator.strip()
        return self


class BusUpdate(CamelModel):
    """Body of PATCH /api/buses/{bus_id}; a new seat layout regenerates the seats."""
    operator: Optional[str] = None
    bus_type: Optional[str] = None
    seat_layout: Optional[SeatLayout] = None
    amenities: Optional[List[str]] = None
    rating: Optional[float] = None


# ── Bus types ─────────────────────────────────────────────────────────────

class BusTypeResponse(CamelModel):
    id: uuid.UUID
    name: str
    seats: int


class BusTypeListResponse(CamelModel):
    data: List[BusTypeResponse]


class BusTypeCreate(CamelModel):
    name: Optional[str] = None
    seats: Optional[int] = None

    @model_validator(mode="after")
    def check_fields(self) -> "BusTypeCreate":
        if not self.name or not self.name.strip() or self.seats is None:
            raise ValueError("Name and seats are required")
        if self.seats <= 0:
            raise ValueError("Seats must be a positive number")
        self.name = self.name.strip()
        return self


class BusTypeUpdate(CamelModel):
    name: Optional[str] = None
    seats: Optional[int] = None

    @model_validator(mode="after")
    def check_fields(self) -> "BusTypeUpdate":
        if self.name is not None:
            if not self.name.strip():
                raise ValueError("Name cannot be empty")
            self.name = self.name.strip()
        if self.seats is not None and self.seats <= 0:
            raise ValueError("Seats must be a positive number")
        return self
