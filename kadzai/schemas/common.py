"""
Kadzai Backend — Shared Schemas and Validators
===============================================

What:  The camelCase base model, error/health response shapes and the input
       format checks reused by several request schemas.
Why camelCase: the React frontend reads and writes camelCase keys
       (`paymentReference`, `totalAmount`). Python code keeps snake_case and
       the alias generator translates at the boundary; `populate_by_name`
       lets tests and services construct models with snake_case names too.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?\d{10,14}$")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_PATTERN.match(value))


class CamelModel(BaseModel):
    """Base for every schema whose wire keys are camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(CamelModel):
    """
    Error body returned by every global exception handler.

    Example:
        {
            "error": "validation_error",
            "message": "Invalid email format",
            "details": {"field": "email"},
            "requestId": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(CamelModel):
    message: str


class HealthResponse(CamelModel):
    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
