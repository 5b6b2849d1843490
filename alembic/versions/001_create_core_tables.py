"""Create core booking tables

Revision ID: 001
Revises: None
Create Date: 2025-03-01 00:00:00.000000+00:00

What:  Users and sessions, the fleet (bus types, buses, seats), trips,
       bookings and passengers.
How:   PostgreSQL UUID keys generated by gen_random_uuid(), TIMESTAMP WITH
       TIME ZONE everywhere, JSONB seat layouts and a text[] of amenities.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, comment="Login identifier"),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt password hash"),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column(
            "is_active",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
            comment="Inactive users cannot log in",
        ),
        _created_at(),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("modified_by", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "sessions",
        _uuid_pk(),
        sa.Column("token", sa.String(64), nullable=False, comment="Opaque random bearer token"),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "expires_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            comment="Fixed expiry set at login (UTC)",
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_sessions_user_id", "sessions", ["user_id"])

    op.create_table(
        "bus_types",
        _uuid_pk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("seats", sa.Integer(), nullable=False, comment="Seat count for buses of this type"),
        _created_at(),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("modified_by", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "buses",
        _uuid_pk(),
        sa.Column("operator", sa.String(100), nullable=False),
        sa.Column("bus_type", sa.String(100), nullable=False, comment="BusType.name this vehicle belongs to"),
        sa.Column("seat_layout", postgresql.JSONB(), nullable=True),
        sa.Column(
            "amenities",
            postgresql.ARRAY(sa.String(50)),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column("rating", sa.Float(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "seats",
        _uuid_pk(),
        sa.Column("bus_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("number", sa.String(10), nullable=False),
        sa.Column("is_available", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["bus_id"], ["buses.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("bus_id", "number", name="uq_seats_bus_number"),
    )

    op.create_table(
        "trips",
        _uuid_pk(),
        sa.Column("bus_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("origin", sa.String(100), nullable=False),
        sa.Column("destination", sa.String(100), nullable=False),
        sa.Column("date", sa.TIMESTAMP(timezone=True), nullable=False, comment="Departure day (UTC)"),
        sa.Column("departure_time", sa.String(10), nullable=False),
        sa.Column("arrival_time", sa.String(10), nullable=False),
        sa.Column("duration", sa.String(20), nullable=False),
        sa.Column("price", sa.Float(), nullable=False, comment="Fare per passenger in Naira"),
        sa.Column("is_available", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["bus_id"], ["buses.id"], ondelete="CASCADE"),
    )
    # Trip search always filters on the departure day
    op.create_index("idx_trips_date", "trips", ["date"])

    op.create_table(
        "bookings",
        sa.Column("reference", sa.String(32), nullable=False),
        sa.Column(
            "payment_reference",
            sa.String(100),
            nullable=True,
            comment="Paystack transaction reference",
        ),
        sa.Column("trip_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("bus_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("origin", sa.String(100), nullable=False),
        sa.Column("destination", sa.String(100), nullable=False),
        sa.Column("date", sa.String(50), nullable=False),
        sa.Column("time", sa.String(10), nullable=False),
        sa.Column("operator", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            server_default=sa.text("'confirmed'"),
            nullable=False,
            comment="confirmed, cancelled or completed",
        ),
        sa.Column(
            "total_amount",
            sa.Float(),
            nullable=False,
            comment="Passenger count x trip price, in Naira",
        ),
        sa.Column(
            "booking_date",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        _created_at(),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("modified_by", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("reference"),
        sa.UniqueConstraint("payment_reference"),
        sa.ForeignKeyConstraint(["trip_id"], ["trips.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_bookings_email", "bookings", ["email"])
    # Admin listing is newest first
    op.create_index("idx_bookings_created_at", "bookings", [sa.text("created_at DESC")])

    op.create_table(
        "passengers",
        _uuid_pk(),
        sa.Column("booking_reference", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("seat", sa.String(10), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("gender", sa.String(10), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["booking_reference"], ["bookings.reference"], ondelete="CASCADE"
        ),
    )


def downgrade() -> None:
    """Drop every table in reverse dependency order. All data is lost."""
    op.drop_table("passengers")
    op.drop_index("idx_bookings_created_at", table_name="bookings")
    op.drop_index("idx_bookings_email", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("idx_trips_date", table_name="trips")
    op.drop_table("trips")
    op.drop_table("seats")
    op.drop_table("buses")
    op.drop_table("bus_types")
    op.drop_index("idx_sessions_user_id", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("users")
