import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from renobook.api.routes import admin, auth, availability, bookings
from renobook.core.config import _ENV_FILE, settings
from renobook.core.db import async_session_maker, init_db
from renobook.services.exceptions import (
    BookingEngineError,
    BookingNotFound,
    ConfigurationError,
    SlotUnavailable,
    ValidationError,
)
from renobook.services.schedule_service import seed_default_template

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE_MESSAGE = "This time slot is no longer available. Please pick another time."
GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


async def _seed_schedule() -> None:
    """Make sure the weekly schedule exists before the first request."""
    async with async_session_maker() as session:
        try:
            await seed_default_template(session)
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info(
        "Booking horizon: %d months, slot times: %s, timezone: %s",
        settings.booking_horizon_months,
        settings.time_slots_list,
        settings.timezone,
    )
    if not settings.email_enabled:
        logger.warning("SMTP not configured; booking emails will not be sent")
    if not settings.admin_password_hash:
        logger.warning("ADMIN_PASSWORD_HASH not set; admin endpoints are unreachable")
    if settings.auto_create_tables:
        await init_db()
    await _seed_schedule()
    yield


app = FastAPI(
    title="Renobook API",
    description="Appointment availability and booking for the renovation website",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(availability.router, prefix="/api/v1")
app.include_router(bookings.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


def _error_response(request: Request, status_code: int, code: str, detail: str, details: dict | None = None) -> JSONResponse:
    content: dict = {"detail": detail, "code": code}
    if details:
        content["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.exception_handler(BookingEngineError)
async def booking_engine_exception_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
    if isinstance(exc, SlotUnavailable):
        logger.info("Slot unavailable: %s", exc.details)
        return _error_response(request, 409, "slot_unavailable", SLOT_UNAVAILABLE_MESSAGE, exc.details)
    if isinstance(exc, ValidationError):
        return _error_response(request, 422, "validation_error", exc.message, exc.details)
    if isinstance(exc, BookingNotFound):
        return _error_response(request, 404, "not_found", exc.message, exc.details)
    if isinstance(exc, ConfigurationError):
        logger.critical("Schedule configuration error: %s %s", exc.message, exc.details)
        return _error_response(request, 503, "configuration_error", GENERIC_ERROR_MESSAGE)
    logger.exception("Unclassified booking error: %s", exc)
    return _error_response(request, 500, "error", GENERIC_ERROR_MESSAGE)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Never leak storage errors; include CORS so 500 responses are not blocked by browser."""
    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=_cors_headers(request.headers.get("origin")),
        )
    logger.exception("Unhandled exception: %s", exc)
    return _error_response(request, 500, "error", GENERIC_ERROR_MESSAGE)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
