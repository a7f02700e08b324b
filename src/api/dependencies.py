"""
FastAPI dependency injection providers.

Provides database sessions, the availability resolver, the booking service,
and caller identity taken from request headers.
"""

from typing import Optional
import logging

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from src.config import Settings, get_settings
from src.database import get_db
from src.services.bookings import BookingService
from src.services.resolver import AvailabilityResolver, build_resolver

logger = logging.getLogger(__name__)


def get_db_session():
    """
    Dependency injection for database session.

    Yields a database session and ensures cleanup.
    """
    db = next(get_db())
    try:
        yield db
    finally:
        db.close()


def get_app_settings() -> Settings:
    return get_settings()


def get_resolver(
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AvailabilityResolver:
    """Build a request-scoped resolver from settings."""
    return build_resolver(db, settings)


def get_booking_service(
    db: Session = Depends(get_db_session),
    resolver: AvailabilityResolver = Depends(get_resolver),
) -> BookingService:
    return BookingService(db, resolver)


def get_user_context(
    x_user_id: Optional[str] = Header(None, description="User ID"),
    x_user_role: Optional[str] = Header(None, description="User role (client, staff, admin)"),
) -> dict:
    """
    Extract caller identity from headers.

    Authentication happens upstream; these headers are trusted.

    Args:
        x_user_id: User ID from X-User-ID header
        x_user_role: Role from X-User-Role header

    Returns:
        Dictionary with user_id and role
    """
    return {
        "user_id": x_user_id,
        "role": (x_user_role or "client").lower(),
    }


def require_user_id(user: dict = Depends(get_user_context)) -> str:
    """
    Require an X-User-ID header.

    Raises:
        HTTPException: 401 if the header is missing
    """
    if not user["user_id"]:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")
    return user["user_id"]
