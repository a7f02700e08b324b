"""
Staff, vehicle and staff availability models.

A staff member together with their default vehicle forms a resource pool:
rules that use staff vehicle capacity cap bookings by the vehicle's pet
capacity, summed across overlapping bookings assigned to that staff member.
"""

import uuid
from datetime import date, time
from typing import Optional

from sqlalchemy import String, Text, Integer, Boolean, Date, Time, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel, get_json_type


class Vehicle(BaseModel):
    """A vehicle used to collect and transport pets."""

    __tablename__ = "vehicles"

    make: Mapped[str] = mapped_column(String(50), nullable=False)

    model: Mapped[str] = mapped_column(String(50), nullable=False)

    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    color: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    license_plate: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    pet_capacity: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Maximum pets carried at once (NULL is treated as 0)"
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Vehicle(make='{self.make}', model='{self.model}', pet_capacity={self.pet_capacity})>"


class Staff(BaseModel):
    """
    A staff member or administrator.

    Key features:
    - user_id links to the external identity provider
    - default_vehicle_id sets the pool capacity for staff-capacity rules
    """

    __tablename__ = "staff"

    user_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Identity provider user ID"
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="staff",
        doc="Staff role: 'admin' or 'staff'"
    )

    default_vehicle_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("vehicles.id"),
        nullable=True,
        doc="Vehicle whose pet capacity applies to this staff member's bookings"
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    default_vehicle: Mapped[Optional["Vehicle"]] = relationship("Vehicle")

    availability: Mapped[list["StaffAvailability"]] = relationship(
        "StaffAvailability",
        back_populates="staff",
        doc="Working-time windows for this staff member"
    )

    __table_args__ = (
        Index("idx_staff_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Staff(user_id='{self.user_id}', role='{self.role}')>"


class StaffAvailability(BaseModel):
    """
    A window during which a staff member can take bookings.

    Uses the same recurrence shape as service availability rules:
    exactly one of specific_date or days_of_week (ISO 1=Monday..7=Sunday).
    Times are local wall-clock times in the business timezone.
    """

    __tablename__ = "staff_availability"

    staff_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("staff.id"),
        nullable=False,
    )

    start_time: Mapped[time] = mapped_column(Time, nullable=False)

    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    specific_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    days_of_week: Mapped[Optional[list[int]]] = mapped_column(
        get_json_type()(none_as_null=True),
        nullable=True,
        doc="ISO weekdays this window repeats on"
    )

    is_available: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="False records a blocked window"
    )

    staff: Mapped["Staff"] = relationship("Staff", back_populates="availability")

    __table_args__ = (
        Index("idx_staff_availability_staff", "staff_id", "is_available"),
    )

    def __repr__(self) -> str:
        return (
            f"<StaffAvailability(staff_id={self.staff_id}, "
            f"{self.start_time}-{self.end_time}, date={self.specific_date}, days={self.days_of_week})>"
        )
