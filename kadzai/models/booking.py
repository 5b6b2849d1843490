"""
Kadzai Backend — Booking and Passenger Models
==============================================

What:  A paid reservation (`bookings`) and the travellers on it (`passengers`).

Identifiers:
    reference          Human-shareable booking code (primary key), e.g. TE1A2B3C4D.
    payment_reference  The Paystack transaction reference; may differ from the
                       booking reference. Unique so a payment books at most once.

Route, date, time and operator are copied from the trip at booking time so a
booking stays readable after its trip is edited or removed.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Float, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP

from kadzai.database import Base
from kadzai.models.trip import Trip

BOOKING_STATUSES = ("confirmed", "cancelled", "completed")
# Bookings in these states keep their trip and bus from being deleted
ACTIVE_BOOKING_STATUSES = ("confirmed", "completed")


class Booking(Base):
    __tablename__ = "bookings"

    reference: Mapped[str] = mapped_column(String(32), primary_key=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        unique=True,
        comment="Paystack transaction reference",
    )
    trip_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("trips.id", ondelete="SET NULL"),
        nullable=True,
    )
    bus_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    origin: Mapped[str] = mapped_column(String(100), nullable=False)
    destination: Mapped[str] = mapped_column(String(100), nullable=False)
    date: Mapped[str] = mapped_column(String(50), nullable=False)
    time: Mapped[str] = mapped_column(String(10), nullable=False)
    operator: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="confirmed",
        server_default=text("'confirmed'"),
        comment="confirmed, cancelled or completed",
    )
    total_amount: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Passenger count x trip price, in Naira",
    )
    booking_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    modified_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    passengers: Mapped[List["Passenger"]] = relationship(
        back_populates="booking",
        cascade="all, delete-orphan",
    )
    trip: Mapped[Optional[Trip]] = relationship()

    __table_args__ = (
        Index("idx_bookings_email", "email"),
        Index("idx_bookings_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(reference='{self.reference}', status='{self.status}', "
            f"payment_reference='{self.payment_reference}')>"
        )


class Passenger(Base):
    __tablename__ = "passengers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    booking_reference: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("bookings.reference", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    seat: Mapped[str] = mapped_column(String(10), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)

    booking: Mapped[Booking] = relationship(back_populates="passengers")

    def __repr__(self) -> str:
        return f"<Passenger(name='{self.name}', seat='{self.seat}')>"
