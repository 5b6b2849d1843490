"""Add audit columns to buses and trips

Revision ID: 002
Revises: 001
Create Date: 2025-03-20 00:00:00.000000+00:00

What:  created_by / modified_by on buses and trips, filled with the
       operator's email by the admin fleet and trip endpoints.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_TABLES = ("buses", "trips")


def upgrade() -> None:
    for table in _TABLES:
        op.add_column(table, sa.Column("created_by", sa.String(255), nullable=True))
        op.add_column(table, sa.Column("modified_by", sa.String(255), nullable=True))
    # Admin trip listing and the overlap check filter trips by bus
    op.create_index("idx_trips_bus_id", "trips", ["bus_id"])


def downgrade() -> None:
    op.drop_index("idx_trips_bus_id", table_name="trips")
    for table in _TABLES:
        op.drop_column(table, "modified_by")
        op.drop_column(table, "created_by")
