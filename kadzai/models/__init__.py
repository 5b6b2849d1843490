# Importing every model registers it with Base.metadata (Alembic, relationships).
from kadzai.models.user import User, UserSession  # noqa: F401
from kadzai.models.fleet import Bus, BusType, Seat  # noqa: F401
from kadzai.models.trip import Trip  # noqa: F401
from kadzai.models.booking import ACTIVE_BOOKING_STATUSES, BOOKING_STATUSES, Booking, Passenger  # noqa: F401
