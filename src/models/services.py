"""
Service and site models.

Entities:
- Service: A bookable offering (daycare session, field hire, pick-up walk)
- Site: A physical location that owns fields
- Field: A bookable area at a site, consumed by field-based availability rules
"""

import uuid
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Boolean, Numeric, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.availability import ServiceAvailability


class Service(BaseModel):
    """
    A service clients can book.

    The default price applies per pet unless the matched availability
    rule carries an override price.
    """

    __tablename__ = "services"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Service name shown to clients (e.g., 'Field Hire', 'Doggy Daycare')"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    service_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="field_hire",
        doc="Service category: 'field_hire', 'daycare', 'walk', 'other'"
    )

    default_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        doc="Default price per pet (NULL if priced only through rule overrides)"
    )

    requires_field_selection: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether the client picks a specific field when booking"
    )

    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    availability_rules: Mapped[list["ServiceAvailability"]] = relationship(
        "ServiceAvailability",
        back_populates="service",
        doc="Availability rules governing this service"
    )

    __table_args__ = (
        Index("idx_service_active", "active"),
        Index("idx_service_deleted", "deleted_at"),
    )

    def __repr__(self) -> str:
        return f"<Service(name='{self.name}', type='{self.service_type}')>"


class Site(BaseModel):
    """A physical location hosting one or more fields."""

    __tablename__ = "sites"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    fields: Mapped[list["Field"]] = relationship(
        "Field",
        back_populates="site",
        doc="Fields at this site"
    )


class Field(BaseModel):
    """A bookable field at a site."""

    __tablename__ = "fields"

    site_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sites.id"),
        nullable=False,
    )

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    field_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="Field surface or purpose (e.g., 'grass', 'agility', 'paddock')"
    )

    site: Mapped["Site"] = relationship("Site", back_populates="fields")

    __table_args__ = (
        Index("idx_field_site", "site_id"),
    )

    def __repr__(self) -> str:
        return f"<Field(name='{self.name}', site_id={self.site_id})>"
