"""
Integration test fixtures for Pet Daycare Booking.

Runs the full HTTP stack (middleware, routers, services, resolver) against
the in-memory test database.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_app_settings, get_db_session
from src.api.main import app
from src.config import Settings


# =============================================================================
# Pytest Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


# =============================================================================
# API Client
# =============================================================================


@pytest.fixture
def integration_settings() -> Settings:
    return Settings(
        _env_file=None,
        business_timezone="Europe/London",
        slot_duration_minutes=None,
    )


@pytest.fixture
def integration_api_client(db_session, integration_settings):
    """
    TestClient wired to the test session and settings.

    Yields:
        dict with "client" (TestClient) and "db" (Session)
    """

    def override_db():
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    app.dependency_overrides[get_app_settings] = lambda: integration_settings

    with TestClient(app) as client:
        yield {"client": client, "db": db_session}

    app.dependency_overrides.clear()


@pytest.fixture
def client_headers() -> dict:
    return {"X-User-ID": "client-user-1", "X-User-Role": "client"}


@pytest.fixture
def staff_headers() -> dict:
    return {"X-User-ID": "staff-user-1", "X-User-Role": "staff"}
