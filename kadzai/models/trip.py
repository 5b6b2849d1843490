"""
Kadzai Backend — Trip Model
============================

What:  A scheduled departure of one bus between two cities.
Who:   Public trip search, booking creation (price, route and bus come from here).

`origin` / `destination` are exposed on the wire as `from` / `to`.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Float, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from kadzai.database import Base
from kadzai.models.fleet import Bus


class Trip(Base):
    __tablename__ = "trips"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    bus_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("buses.id", ondelete="CASCADE"),
        nullable=False,
    )
    origin: Mapped[str] = mapped_column(String(100), nullable=False)
    destination: Mapped[str] = mapped_column(String(100), nullable=False)
    date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        comment="Departure day (UTC)",
    )
    departure_time: Mapped[str] = mapped_column(String(10), nullable=False)
    arrival_time: Mapped[str] = mapped_column(String(10), nullable=False)
    # e.g. "8h 0m"
    duration: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Fare per passenger in Naira",
    )
    is_available: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    modified_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    bus: Mapped[Optional[Bus]] = relationship()

    __table_args__ = (
        Index("idx_trips_date", "date"),
        Index("idx_trips_bus_id", "bus_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Trip(id={self.id}, {self.origin} -> {self.destination}, "
            f"date='{self.date}')>"
        )
