"""
Unit tests for src/database.py
"""

from sqlalchemy.exc import OperationalError

from src.database import check_connection


class TestCheckConnection:
    def test_connected(self, db_session):
        assert check_connection(db_session) is True

    def test_failure_reported(self, db_session, monkeypatch):
        def broken_execute(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        monkeypatch.setattr(db_session, "execute", broken_execute)

        assert check_connection(db_session) is False
