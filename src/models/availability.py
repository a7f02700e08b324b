"""
Service availability rule model.

Each row states when a service can be booked and how its capacity is
governed. Rows are converted into immutable AvailabilityRule values before
the resolver sees them.
"""

import uuid
from datetime import date, time
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, Numeric, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel, get_json_type
from src.services.base import AvailabilityRule

if TYPE_CHECKING:
    from src.models.services import Service


class ServiceAvailability(BaseModel):
    """
    An availability rule for a service.

    Key features:
    - Time window is local wall-clock time in the business timezone
    - Exactly one of specific_date or days_of_week (ISO 1=Monday..7=Sunday)
    - use_staff_vehicle_capacity switches from a per-booking pet limit to the
      capacity of the client's assigned staff member's vehicle
    """

    __tablename__ = "service_availability"

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id"),
        nullable=False,
    )

    field_ids: Mapped[list] = mapped_column(
        get_json_type(),
        nullable=False,
        default=list,
        doc="Field UUIDs (as strings) consumed by bookings matched to this rule"
    )

    start_time: Mapped[time] = mapped_column(Time, nullable=False)

    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    specific_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="One-off date this rule applies to"
    )

    days_of_week: Mapped[Optional[list[int]]] = mapped_column(
        get_json_type()(none_as_null=True),
        nullable=True,
        doc="ISO weekdays this rule repeats on"
    )

    use_staff_vehicle_capacity: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    max_pets_per_booking: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Per-booking pet limit when not using staff capacity (NULL = unlimited)"
    )

    override_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        doc="Per-pet price replacing the service default"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    service: Mapped["Service"] = relationship(
        "Service",
        back_populates="availability_rules",
    )

    __table_args__ = (
        Index("idx_service_availability_service", "service_id", "is_active"),
        Index("idx_service_availability_date", "specific_date"),
    )

    def to_rule(self) -> AvailabilityRule:
        """
        Build the immutable rule the resolver works on.

        Raises:
            ValueError: If the row breaks the recurrence or window invariants
        """
        days = frozenset(int(d) for d in self.days_of_week) if self.days_of_week else None
        return AvailabilityRule(
            id=self.id,
            service_id=self.service_id,
            start_time=self.start_time,
            end_time=self.end_time,
            resource_field_ids=tuple(uuid.UUID(str(f)) for f in (self.field_ids or [])),
            specific_date=self.specific_date,
            days_of_week=days,
            uses_resource_pool_capacity=bool(self.use_staff_vehicle_capacity),
            per_booking_capacity_limit=self.max_pets_per_booking,
            override_price=self.override_price,
            is_active=bool(self.is_active),
        )

    def __repr__(self) -> str:
        when = self.specific_date or self.days_of_week
        return (
            f"<ServiceAvailability(service_id={self.service_id}, "
            f"{self.start_time}-{self.end_time}, when={when}, active={self.is_active})>"
        )
