"""
Seed the database with the default operator accounts, bus types, one bus
with its seats and an upcoming trip, so a fresh deployment can take a booking.
Run after migrations: python scripts/seed_data.py

Existing rows (matched by email, name, operator or route) are left
untouched, so the script is safe to re-run.
"""
import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from sqlalchemy import select

from kadzai.database import async_session_factory, dispose_engine
from kadzai.models import Bus, BusType, Seat, Trip, User
from kadzai.services.auth_service import hash_password

logger = logging.getLogger("kadzai.seed")

USERS = [
    {
        "first_name": "Admin",
        "last_name": "User",
        "email": "admin@kadzai.com",
        "password": "admin",
        "phone": "+2348012345678",
        "created_at": datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
    },
    {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "password": "admin",
        "phone": "+2348098765432",
        "created_at": datetime(2024, 2, 15, 12, 30, tzinfo=timezone.utc),
    },
]

BUS_TYPES = [
    {"name": "48 Seater", "seats": 48},
    {"name": "32 Seater", "seats": 32},
]


def seat_arrangement(rows: int, left: str = "AB", right: str = "CD") -> List[List[str]]:
    """Rows of "<row><letter>" seats with an empty aisle slot between the two sides."""
    return [
        [f"{row}{letter}" for letter in left] + [""] + [f"{row}{letter}" for letter in right]
        for row in range(1, rows + 1)
    ]


BUS = {
    "operator": "Kadzai Express",
    "bus_type": "48 Seater",
    "seat_layout": {"rows": 12, "columns": 5, "arrangement": seat_arrangement(12)},
    "amenities": ["AC", "WiFi", "USB Charging"],
    "rating": 4.5,
}

TRIP = {
    "origin": "Lagos",
    "destination": "Abuja",
    "departure_time": "08:00",
    "arrival_time": "16:00",
    "duration": "8h 0m",
    "price": 15000.0,
}
# Days ahead of today the seeded trip departs, so it is always bookable
TRIP_DAYS_AHEAD = 7


async def seed_users(db) -> int:
    created = 0
    for data in USERS:
        existing = await db.execute(select(User.id).where(User.email == data["email"]))
        if existing.scalar_one_or_none() is not None:
            continue
        db.add(User(
            **{**data, "password": hash_password(data["password"])},
            is_active=True,
            created_by="seed",
        ))
        created += 1
    return created


async def seed_bus_types(db) -> int:
    created = 0
    for data in BUS_TYPES:
        existing = await db.execute(select(BusType.id).where(BusType.name == data["name"]))
        if existing.scalar_one_or_none() is not None:
            continue
        db.add(BusType(**data, created_by="seed"))
        created += 1
    return created


async def seed_fleet(db) -> Tuple[int, int]:
    """One bus with its seats and one upcoming trip on it; returns (buses, trips) created."""
    result = await db.execute(
        select(Bus).where(Bus.operator == BUS["operator"], Bus.bus_type == BUS["bus_type"])
    )
    bus = result.scalars().first()
    buses = 0
    if bus is None:
        bus = Bus(id=uuid.uuid4(), **BUS, created_by="seed")
        bus.seats = [
            Seat(id=uuid.uuid4(), bus_id=bus.id, number=number, is_available=True)
            for row in BUS["seat_layout"]["arrangement"]
            for number in row
            if number
        ]
        db.add(bus)
        await db.flush()
        buses = 1

    result = await db.execute(
        select(Trip.id).where(
            Trip.bus_id == bus.id,
            Trip.origin == TRIP["origin"],
            Trip.destination == TRIP["destination"],
        )
    )
    if result.scalars().first() is not None:
        return buses, 0

    day = datetime.now(timezone.utc).date() + timedelta(days=TRIP_DAYS_AHEAD)
    db.add(Trip(
        id=uuid.uuid4(),
        bus_id=bus.id,
        date=datetime(day.year, day.month, day.day, tzinfo=timezone.utc),
        is_available=True,
        created_by="seed",
        **TRIP,
    ))
    return buses, 1


async def main() -> None:
    async with async_session_factory() as db:
        users = await seed_users(db)
        bus_types = await seed_bus_types(db)
        buses, trips = await seed_fleet(db)
        await db.commit()
    await dispose_engine()
    logger.info(
        "Seeding completed: %d users, %d bus types, %d buses, %d trips created",
        users, bus_types, buses, trips,
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
