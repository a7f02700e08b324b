"""
Base model definitions for SQLAlchemy.

Provides:
- GUID TypeDecorator for UUID support across SQLite and PostgreSQL
- BaseModel declarative base with audit and soft-deletion fields
- JSON/JSONB column factory function
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, JSON, TypeDecorator, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PostgreSQL_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import CHAR

from src.config import get_settings


class GUID(TypeDecorator):
    """
    Platform-independent GUID type.

    Uses PostgreSQL's UUID type on PostgreSQL and CHAR(32) hex elsewhere,
    so the same model definitions work against both databases.
    """

    impl = CHAR(32)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgreSQL_UUID())
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value

        if dialect.name == "postgresql":
            return str(value)
        if isinstance(value, uuid.UUID):
            return value.hex
        return uuid.UUID(value).hex

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


def get_json_type():
    """
    Get database-appropriate JSON column type.

    Returns:
        JSONB for PostgreSQL, JSON for SQLite
    """
    settings = get_settings()
    if "postgres" in settings.database_url.lower():
        return JSONB
    return JSON


class Base(DeclarativeBase):
    """Declarative base for all models."""

    type_annotation_map = {
        uuid.UUID: GUID,
    }


class BaseModel(Base):
    """
    Base model with common fields for all entities.

    Provides:
    - id: UUID primary key
    - created_at: Timestamp of record creation (UTC)
    - updated_at: Timestamp of last update (UTC, auto-updates)
    - deleted_at: Timestamp of soft deletion (NULL if not deleted)
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        GUID,
        primary_key=True,
        default=uuid.uuid4,
        doc="Unique identifier (UUID)"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Timestamp of record creation (UTC)"
    )

    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
        doc="Timestamp of last update (UTC)"
    )

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        doc="Timestamp of soft deletion (NULL if not deleted)"
    )

    def to_dict(self) -> dict:
        """
        Convert model instance to dictionary.

        Returns:
            Dictionary with all column values (excludes relationships)
        """
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }

    def soft_delete(self) -> None:
        """Mark record as deleted without removing the row."""
        self.deleted_at = datetime.now(timezone.utc)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
