"""
Booking models.

Entities:
- Booking: A confirmed reservation of a service for a time window
- BookingClient: Links a booking to the client who made it
- BookingPet: Links a booking to each pet attending
"""

import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel, get_json_type

if TYPE_CHECKING:
    from src.models.clients import Client, Pet
    from src.models.services import Service
    from src.models.staff import Staff

BOOKING_STATUSES = ("confirmed", "cancelled", "completed")


class Booking(BaseModel):
    """
    A booking of a service.

    start_time and end_time are stored in UTC. Capacity is consumed through
    assigned_staff_id (resource-pool rules) or booking_field_ids (field rules).
    """

    __tablename__ = "bookings"

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id"),
        nullable=False,
    )

    service_type: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Service name at the time of booking"
    )

    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="confirmed",
        doc="Booking status: 'confirmed', 'cancelled', 'completed'"
    )

    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    booking_field_ids: Mapped[Optional[list]] = mapped_column(
        get_json_type()(none_as_null=True),
        nullable=True,
        doc="Field UUIDs (as strings) consumed by this booking"
    )

    assigned_staff_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("staff.id"),
        nullable=True,
        doc="Resource pool whose vehicle capacity this booking consumes"
    )

    vehicle_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("vehicles.id"),
        nullable=True,
    )

    assignment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    service: Mapped["Service"] = relationship("Service")

    assigned_staff: Mapped[Optional["Staff"]] = relationship("Staff")

    clients: Mapped[list["BookingClient"]] = relationship(
        "BookingClient",
        back_populates="booking",
        cascade="all, delete-orphan",
    )

    pets: Mapped[list["BookingPet"]] = relationship(
        "BookingPet",
        back_populates="booking",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_booking_time_order"),
        CheckConstraint(
            "status IN ('confirmed', 'cancelled', 'completed')",
            name="check_booking_status",
        ),
        Index("idx_booking_staff_time", "assigned_staff_id", "start_time", "end_time"),
        Index("idx_booking_service", "service_id"),
        Index("idx_booking_status", "status"),
    )

    @property
    def pet_count(self) -> int:
        return len(self.pets)

    def __repr__(self) -> str:
        return (
            f"<Booking(service_id={self.service_id}, {self.start_time}-{self.end_time}, "
            f"status='{self.status}', pets={self.pet_count})>"
        )


class BookingClient(BaseModel):
    """Association between a booking and its client."""

    __tablename__ = "booking_clients"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
    )

    booking: Mapped["Booking"] = relationship("Booking", back_populates="clients")

    client: Mapped["Client"] = relationship("Client")

    __table_args__ = (
        Index("idx_booking_client_booking", "booking_id"),
        Index("idx_booking_client_client", "client_id"),
    )


class BookingPet(BaseModel):
    """Association between a booking and an attending pet."""

    __tablename__ = "booking_pets"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
    )

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id"),
        nullable=False,
    )

    booking: Mapped["Booking"] = relationship("Booking", back_populates="pets")

    pet: Mapped["Pet"] = relationship("Pet")

    __table_args__ = (
        Index("idx_booking_pet_booking", "booking_id"),
    )
