# backend/app/main.py

import logging
import os
import time

from fastapi import FastAPI, Request, status
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as SA_TimeoutError
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  (register tables on Base.metadata)

# Routers under app/api/
from .api import (
    api_booking,
    api_chef,
    api_events,
    api_message,
    api_payout,
    api_review,
    api_user,
)
from .core.config import settings
from .core.observability import setup_logging
from .database import Base, SessionLocal, engine
from .utils.errors import BookingError
from .utils.redis_cache import close_redis_client
from .utils.status_logger import register_status_listeners

setup_logging()
logger = logging.getLogger(__name__)

_BOOT_TS = time.time()

register_status_listeners()

# Alembic owns the schema in deployed environments; local and test runs
# bootstrap it directly.
if os.getenv("SKIP_DB_BOOTSTRAP", "0") != "1":
    Base.metadata.create_all(bind=engine)

# Always use ORJSONResponse for JSON payloads to ensure consistent, fast
# serialization across all endpoints.
app = FastAPI(title="Chef Booking API", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    """Return JSON responses for HTTP errors and log them."""
    try:
        response = await call_next(request)
    except StarletteHTTPException as exc:  # return the original status and detail
        logger.error(
            "HTTP error %s at %s: %s", exc.status_code, request.url.path, exc.detail
        )
        response = ORJSONResponse(
            status_code=exc.status_code, content={"detail": exc.detail}
        )
    except SA_TimeoutError as exc:  # DB pool timeout -> 503 to reduce retry storms
        logger.error("DB timeout at %s: %s", request.url.path, str(exc))
        response = ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database busy, please retry"},
        )
    except Exception as exc:  # pragma: no cover - generic handler
        logger.exception("Unhandled error: %s", exc)
        response = ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"},
        )
    return response


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Map domain errors to the standard ``{"detail": {...}}`` envelope."""
    http_exc = exc.to_http()
    return ORJSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with details and log them for debugging."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    field_errors = {
        ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "body": err.get("msg", "invalid")
        for err in errors
    }
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": {
                "message": "Invalid request",
                "code": "validation_error",
                "field_errors": field_errors,
            }
        },
    )


@app.get("/health", tags=["health"])
def health():
    """Readiness probe: verifies the database answers a trivial query."""
    started = time.perf_counter()
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except OperationalError as exc:
        logger.warning("health check failed: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "reason": "db_unavailable"},
        )
    return {
        "status": "ok",
        "db_ping_ms": round((time.perf_counter() - started) * 1000, 1),
        "uptime_s": round(time.time() - _BOOT_TS, 1),
    }


api_prefix = settings.API_V1_STR  # usually something like "/api/v1"

app.include_router(api_user.router, prefix=f"{api_prefix}", tags=["users"])
app.include_router(api_booking.router, prefix=f"{api_prefix}/bookings", tags=["bookings"])
app.include_router(api_chef.router, prefix=f"{api_prefix}/chefs", tags=["chefs"])
app.include_router(api_review.router, prefix=f"{api_prefix}", tags=["reviews"])
app.include_router(api_message.router, prefix=f"{api_prefix}", tags=["messages"])
app.include_router(api_payout.router, prefix=f"{api_prefix}/payouts", tags=["payouts"])
app.include_router(api_events.router, prefix=f"{api_prefix}/events", tags=["events"])


@app.on_event("shutdown")
def shutdown_redis_client() -> None:
    """Close Redis connections when the application shuts down."""
    logger.info("Closing Redis client")
    close_redis_client()


# ─── A simple root check ─────────────────────────────────────────────────────────────
@app.get("/")
async def root():
    return {"message": "Welcome to Chef Booking API"}
