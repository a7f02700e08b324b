"""
Database configuration and session management.

Provides:
- Database engine creation with proper configuration
- SessionLocal factory for creating database sessions
- get_db() dependency for FastAPI request-scoped sessions
- Database initialization utilities
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.config import get_settings

logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

# Validate production configuration
if settings.is_production:
    settings.validate_production_config()

# Configure engine based on database type
if "sqlite" in settings.database_url.lower():
    # SQLite-specific configuration
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},  # FastAPI runs sync routes in a threadpool
        poolclass=StaticPool,
        echo=settings.log_level == "DEBUG",
    )

    @event.listens_for(Engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints in SQLite."""
        if type(dbapi_conn).__module__.startswith("sqlite3"):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

else:
    # PostgreSQL-specific configuration
    engine = create_engine(
        settings.database_url,
        pool_size=5,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=settings.log_level == "DEBUG",
    )


# Session factory
SessionLocal = sessionmaker(
    autocommit=False,  # Explicit commits required
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for request-scoped database sessions.

    Yields a database session that is automatically closed after the request.
    Commits on success and rolls back on exception.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside FastAPI.

    Usage for scripts, tests, or background tasks:
        with get_db_context() as db:
            rule = db.get(ServiceAvailability, rule_id)
            rule.is_active = False
            # Automatic commit on context exit

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """
    Initialize database by creating all tables.

    Useful for development and testing. In production, use Alembic migrations.
    """
    from src.models import Base

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def drop_all_tables() -> None:
    """
    Drop all tables from the database.

    WARNING: This will delete all data. Primarily for testing and development.
    """
    from src.models import Base

    logger.warning("Dropping all database tables...")
    Base.metadata.drop_all(bind=engine)
    logger.info("All database tables dropped")


def check_connection(db: Session) -> bool:
    """
    Test database connection.

    Args:
        db: Session to check

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
