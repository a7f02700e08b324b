"""
ASGI entry point for the Pet Daycare Booking API.

Re-exports the FastAPI app from src/api/main.py, e.g. `uvicorn src.app:app`.
"""

from src.api.main import app

__all__ = ["app"]
