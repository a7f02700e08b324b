"""
FastAPI application for the Pet Daycare Booking service.

This is the main entry point for the HTTP API, providing:
- Slot listing backed by the availability resolver
- Client, batch and admin booking endpoints
- Availability rule administration
- Client, pet, staff, vehicle and catalogue administration
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from src.api.availability_routes import router as availability_router
from src.api.booking_routes import router as booking_router
from src.api.catalog_routes import router as catalog_router
from src.api.client_routes import router as client_router
from src.api.dependencies import get_db_session
from src.api.middleware import RequestLoggingMiddleware, get_request_id
from src.api.staff_routes import router as staff_router
from src.api.models import HealthResponse
from src.api.response_builder import build_booking_error_response, build_error_response
from src.config import get_settings
from src.database import check_connection
from src.services.exceptions import BookingError

settings = get_settings()
logging.basicConfig(level=settings.log_level)

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Pet Daycare Booking API")
    settings.validate_timezone()
    logger.info(f"Business timezone: {settings.business_timezone}")

    yield

    # Shutdown
    logger.info("Shutting down Pet Daycare Booking API")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Pet Daycare Booking API",
    description="""
# Pet Daycare Booking API

Booking back end for pet daycare and field hire.

## Core Workflows

### Browsing
- **GET /available-slots** - Slots with remaining capacity and price

### Booking
- **POST /client-booking** - Client books for their own confirmed pets
- **POST /client-booking/batch** - Several bookings, each independent
- **POST /admin-booking** - Staff book on behalf of a client
- **GET /my-bookings** - The calling client's bookings
- **PUT /bookings/{id}** - Move or edit a booking (moves are re-checked)

### Administration
- **/clients**, **/pets** - Client details, staff assignment, pets and pet confirmation
- **/staff**, **/vehicles** - Staff vehicle assignment and vehicle pet capacity
- **/services**, **/sites**, **/fields** - Service catalogue and bookable fields

Every path resolves the request against the service's availability rules
and capacity (per-booking pet limit, or the assigned staff member's vehicle).

## Identity

Callers are identified by the `X-User-ID` and `X-User-Role` headers.

## Error Handling

Errors share one body: `error_type`, `message`, `retryable`, `reason`
for refused bookings, and the `request_id` also sent as `X-Request-ID`.

- **400** - Invalid request
- **403** - Pets belong to another client
- **404** - Resource not found
- **409** - Capacity exhausted, overlapping rule, or record still in use
- **422** - No matching rule or missing resource assignment, or malformed body
- **500** - Server error
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(availability_router)
app.include_router(booking_router)
app.include_router(client_router)
app.include_router(staff_router)
app.include_router(catalog_router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(BookingError)
async def booking_exception_handler(request, exc: BookingError):
    """Map booking errors to their status code with a consistent body."""
    if exc.status_code >= 500:
        logger.error(f"Booking operation failed: {exc.message}", exc_info=exc.original_error)
    return JSONResponse(
        status_code=exc.status_code,
        content=build_booking_error_response(exc, request_id=get_request_id(request)),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_response(
            error_type="http_error",
            message=exc.detail,
            retryable=exc.status_code >= 500,
            request_id=get_request_id(request),
        ),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=build_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            retryable=True,
            request_id=get_request_id(request),
        ),
    )


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
def health_check(db: Session = Depends(get_db_session)):
    """
    Check API health status.

    Returns:
        Health status including database connectivity
    """
    database_connected = check_connection(db)

    return HealthResponse(
        status="healthy" if database_connected else "unhealthy",
        version=API_VERSION,
        database_connected=database_connected,
    )


# =============================================================================
# Run with Uvicorn
# =============================================================================


def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Run the API server with Uvicorn."""
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    run_server(host=settings.api_host, port=settings.api_port, reload=settings.api_reload)
