"""
Pet Daycare Booking API module.

Provides FastAPI HTTP endpoints for slot listing, bookings, availability rules
and client, staff and catalogue administration.
"""

from src.api.main import app, run_server

__all__ = ["app", "run_server"]
