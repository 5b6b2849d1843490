"""
Kadzai Backend — Application Package Initializer
=================================================

What: The `kadzai` package holds the booking, payment and messaging API
      behind the KADZAI TRANSPORT AND LOGISTICS website.
Who:  Imported by uvicorn (`kadzai.main:app`), Alembic, pytest and the seed script.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Business Logic, I/O)    │  ← bookings, auth, Paystack, SMTP
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never build HTTP responses.
"""

__version__ = "1.0.0"
