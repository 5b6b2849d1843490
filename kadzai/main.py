"""
Kadzai Backend — FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn kadzai.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐       │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │       │
    │  └──────────────┘ └──────────┘ └─────────────────┘       │
    │                                                          │
    │  Routes:                                                 │
    │  /api/auth   /api/bookings   /api/trips   /api/bus-types │
    │  /api/buses   /api/users   /api/paystack                 │
    │  /api/send-email   /api/contact   /health                │
    │                                                          │
    │  Exception Handlers:                                     │
    │  KadzaiError → its own status │ request schema → 400     │
    │  anything else → 500                                     │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate settings, log readiness
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from kadzai import __version__
from kadzai.config import settings
from kadzai.database import dispose_engine
from kadzai.exceptions import KadzaiError, RateLimitExceededError, ValidationError
from kadzai.middleware.logging import RequestLoggingMiddleware
from kadzai.middleware.rate_limit import RateLimitMiddleware
from kadzai.middleware.request_id import RequestIDMiddleware, request_id_var
from kadzai.routes import auth, bookings, bus_types, buses, email, health, paystack, trips, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2025-03-07T10:15:02 [INFO] kadzai.services.paystack_service: ...
    Everything goes to stdout; the container runtime collects it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # uvicorn.access duplicates kadzai.access
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Kadzai Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health and bookings still work without Paystack/SMTP
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Kadzai Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    body["requestId"] = request_id_var.get("")
    return body


def _describe_validation_errors(errors: List[Dict[str, Any]]) -> str:
    """
    Collapse pydantic's error list into one sentence a frontend can show.

    Messages raised by our own validators ("Invalid email format") are used
    as-is; missing fields become "<field> is required".
    """
    first = errors[0] if errors else {}
    ctx = first.get("ctx") or {}
    if first.get("type") == "value_error" and "error" in ctx:
        return str(ctx["error"])

    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "header")]
    field = ".".join(loc)
    if first.get("type") == "missing" and field:
        return f"{field} is required"
    if field:
        return f"{field}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "Invalid request")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        KadzaiError             → exc.status_code (400/401/404/409/429/500)
        RequestValidationError  → 400 (FastAPI would answer 422)
        Exception (fallback)    → 500

    Responses never carry stack traces, SQL or gateway payloads; those are
    logged server-side with the request ID.
    """

    @app.exception_handler(KadzaiError)
    async def handle_kadzai_error(request: Request, exc: KadzaiError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid, type(exc).__name__, exc.message, exc.context,
            )
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        exposes_details = isinstance(exc, (ValidationError, RateLimitExceededError))
        headers = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                exc.error_code,
                exc.message,
                exc.context if exposes_details else None,
            ),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = _describe_validation_errors(errors)
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns a fresh instance each call so tests can build an isolated app
    and override dependencies without touching the module-level one.
    """
    app = FastAPI(
        title="Kadzai Transport API",
        description=(
            "Bus ticket booking for KADZAI TRANSPORT AND LOGISTICS: trip search, "
            "Paystack payments, booking confirmation emails and admin tools."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(bookings.router)
    app.include_router(trips.router)
    app.include_router(bus_types.router)
    app.include_router(buses.router)
    app.include_router(users.router)
    app.include_router(paystack.router)
    app.include_router(email.router)
    app.include_router(health.router)

    return app


app = create_app()
