"""
Kadzai Backend — Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the whole suite.
How:   No real database, SMTP server or Paystack account is needed. Services
       get an AsyncMock session; route tests get an ASGI client whose
       database and auth dependencies are overridden.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock standing in for AsyncSession
    ├── make_result:      builds the object `session.execute()` returns
    ├── sample_trip:      a Trip with its Bus and four seats (1A, 1B, 2A, 2B)
    ├── admin_user:       an active User
    ├── app:              a fresh FastAPI app with get_db_session overridden
    ├── test_client:      HTTPX AsyncClient bound to `app`
    └── admin_client:     same, with get_current_user overridden too
"""

import os
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set before any kadzai import so Settings() picks them up
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_not_real"
os.environ["SMTP_USERNAME"] = "bookings@kadzai.test"
os.environ["SMTP_PASSWORD"] = "not-a-real-password"
os.environ["MAIL_FROM_ADDRESS"] = "bookings@kadzai.test"
os.environ["CONTACT_INBOX"] = "inbox@kadzai.test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "1"

from kadzai.database import get_db_session  # noqa: E402
from kadzai.dependencies import get_current_user  # noqa: E402
from kadzai.models import Bus, Seat, Trip, User  # noqa: E402


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        mock_db_session.execute.return_value = make_result(scalar=trip)
        result = await trip_service.get_trip(mock_db_session, trip.id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_result():
    """Factory for a mocked `Result` covering the accessors the services use."""

    def _make(scalar=None, rows=None, count=None):
        result = MagicMock()
        result.scalar_one_or_none.return_value = scalar
        result.scalar.return_value = count
        scalars = MagicMock()
        scalars.all.return_value = list(rows or [])
        scalars.first.return_value = scalar
        result.scalars.return_value = scalars
        return result

    return _make


@pytest.fixture
def sample_trip():
    bus = Bus(
        id=uuid.uuid4(),
        operator="Kadzai Express",
        bus_type="48 Seater",
        seat_layout={"rows": 2, "columns": 2, "arrangement": [["1A", "1B"], ["2A", "2B"]]},
        amenities=["AC", "WiFi"],
        rating=4.5,
    )
    bus.seats = [
        Seat(id=uuid.uuid4(), bus_id=bus.id, number=number, is_available=True)
        for number in ("1A", "1B", "2A", "2B")
    ]
    trip = Trip(
        id=uuid.uuid4(),
        bus_id=bus.id,
        origin="Lagos",
        destination="Abuja",
        date=datetime(2025, 3, 7, tzinfo=timezone.utc),
        departure_time="08:00",
        arrival_time="16:00",
        duration="8h 0m",
        price=15000.0,
        is_available=True,
    )
    trip.bus = bus
    return trip


@pytest.fixture
def admin_user():
    return User(
        id=uuid.uuid4(),
        first_name="Admin",
        last_name="User",
        email="admin@kadzai.com",
        password="$2b$12$not.a.real.hash",
        phone="+2348012345678",
        is_active=True,
        created_at=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def app(mock_db_session):
    """A fresh app whose requests all share `mock_db_session`."""
    from kadzai.main import create_app

    application = create_app()

    async def override_db():
        yield mock_db_session

    application.dependency_overrides[get_db_session] = override_db
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def admin_client(app, admin_user):
    """Like test_client, but every admin dependency resolves to `admin_user`."""
    app.dependency_overrides[get_current_user] = lambda: admin_user
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
