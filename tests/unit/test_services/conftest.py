"""
Fixtures for pure availability-core tests.
"""

import pytest

from fakes import FakeReaders


@pytest.fixture
def readers() -> FakeReaders:
    """Empty in-memory readers; tests add rules, pools and bookings."""
    return FakeReaders()
