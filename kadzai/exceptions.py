"""
Kadzai Backend — Custom Exception Hierarchy
============================================

What:  Application-specific exceptions, one per HTTP status family.
How:   Each exception carries a user-safe message and an optional context dict.
       Global handlers registered in main.py turn them into JSON responses.
Who:   Raised by services and dependencies; caught by the global handlers.

Exception Hierarchy:
    KadzaiError (base)                      → 500
    ├── ValidationError                     → 400 Bad Request
    ├── AuthenticationError                 → 401 Unauthorized
    ├── NotFoundError                       → 404 Not Found
    ├── ConflictError                       → 409 Conflict
    ├── PaymentGatewayError                 → 400 (gateway rejected the call)
    ├── PaymentGatewayUnavailableError      → 500 (gateway unreachable)
    ├── EmailDeliveryError                  → 500
    ├── WebhookProcessingError              → 500
    ├── DatabaseError                       → 500
    └── RateLimitExceededError              → 429 Too Many Requests
"""

from typing import Any, Dict, Optional


class KadzaiError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info; only ValidationError and rate-limit
                  context is echoed back, everything else is logged only.
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(KadzaiError):
    """
    Raised when client input fails validation.

    HTTP 400. Request-schema failures from FastAPI are mapped onto the same
    response shape, so clients only ever see 400 for bad input.
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(KadzaiError):
    """Missing, invalid or expired credentials (HTTP 401)."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(KadzaiError):
    """
    Raised when a requested resource does not exist (HTTP 404).

    SQLAlchemy returns None for missing rows; services convert that into this
    exception so routes stay free of status-code logic.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
            if resource_id:
                message = f"{resource.capitalize()} '{resource_id}' not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(KadzaiError):
    """The request clashes with existing state (HTTP 409)."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PaymentGatewayError(KadzaiError):
    """
    Paystack answered but rejected the request (HTTP 400).

    The gateway's own message is surfaced to the client because it is the
    actionable part ("Invalid key", "Transaction reference not found", ...).
    """

    status_code = 400
    error_code = "payment_gateway_error"

    def __init__(
        self,
        message: str = "Payment gateway rejected the request",
        gateway_status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if gateway_status is not None:
            ctx["gateway_status"] = gateway_status
        super().__init__(message=message, context=ctx)
        self.gateway_status = gateway_status


class PaymentGatewayUnavailableError(KadzaiError):
    """Paystack could not be reached after all retry attempts (HTTP 500)."""

    error_code = "payment_gateway_unavailable"

    def __init__(
        self,
        message: str = "Payment gateway is unreachable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmailDeliveryError(KadzaiError):
    """The SMTP relay refused or failed to deliver a message (HTTP 500)."""

    error_code = "email_delivery_error"

    def __init__(
        self,
        message: str = "Failed to send email",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class WebhookProcessingError(KadzaiError):
    """
    A verified webhook event could not be turned into a booking (HTTP 500).

    A 5xx tells Paystack to redeliver the event later.
    """

    error_code = "webhook_processing_error"

    def __init__(
        self,
        message: str = "Failed to create booking",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(KadzaiError):
    """
    Raised when database operations fail unexpectedly (HTTP 500).

    The response message is always generic; the context (operation, error
    type) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(KadzaiError):
    """Client exceeded the per-IP request budget (HTTP 429)."""

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
