"""
Kadzai Backend — Fleet Models (bus types, buses, seats)
========================================================

What:  The vehicles trips run on.
       - BusType: a named capacity class ("48 Seater") managed by operators.
       - Bus: one vehicle; `bus_type` stores the type *name*, which is what the
         bus-type delete guard checks against.
       - Seat: one seat on a bus; `is_available` flips to False when booked.

Seat availability lives on the bus, not on the trip, so a booked seat stays
taken until its booking is deleted.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID, TIMESTAMP

from kadzai.database import Base


class BusType(Base):
    """A capacity class of bus, e.g. "48 Seater" with 48 seats."""

    __tablename__ = "bus_types"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    seats: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Seat count for buses of this type",
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    modified_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<BusType(name='{self.name}', seats={self.seats})>"


class Bus(Base):
    __tablename__ = "buses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    operator: Mapped[str] = mapped_column(String(100), nullable=False)
    bus_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="BusType.name this vehicle belongs to",
    )
    # {"rows": 2, "columns": 2, "arrangement": [["1A", "1B"], ["2A", ""]]}; "" is an aisle gap
    seat_layout: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    amenities: Mapped[List[str]] = mapped_column(
        ARRAY(String(50)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    modified_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    seats: Mapped[List["Seat"]] = relationship(
        back_populates="bus",
        cascade="all, delete-orphan",
        order_by="Seat.number",
    )

    def __repr__(self) -> str:
        return f"<Bus(id={self.id}, operator='{self.operator}', type='{self.bus_type}')>"


class Seat(Base):
    __tablename__ = "seats"

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
    number: Mapped[str] = mapped_column(String(10), nullable=False)
    is_available: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    bus: Mapped[Bus] = relationship(back_populates="seats")

    __table_args__ = (
        UniqueConstraint("bus_id", "number", name="uq_seats_bus_number"),
    )

    def __repr__(self) -> str:
        return f"<Seat(bus_id={self.bus_id}, number='{self.number}', available={self.is_available})>"
