"""
SQLAlchemy-backed availability readers.

Implements the AvailabilityReaders protocol over a session. Store errors
(SQLAlchemyError) propagate to the caller unchanged.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from src.models.availability import ServiceAvailability
from src.models.bookings import Booking, BookingPet
from src.models.services import Service
from src.models.staff import Staff, StaffAvailability
from src.services.base import (
    AvailabilityRule,
    ExistingBooking,
    PoolCapacity,
    RequestedInterval,
)
from src.services.local_time import ensure_utc
from src.services.rule_matcher import contains_window, covers_date

logger = logging.getLogger(__name__)


class SqlAvailabilityReaders:
    """Availability lookups against the relational store."""

    def __init__(self, session: Session):
        self.session = session

    def list_active_rules(self, service_id: UUID) -> list[AvailabilityRule]:
        stmt = (
            select(ServiceAvailability)
            .where(
                ServiceAvailability.service_id == service_id,
                ServiceAvailability.is_active.is_(True),
                ServiceAvailability.deleted_at.is_(None),
            )
            .order_by(ServiceAvailability.created_at, ServiceAvailability.id)
        )
        rules = []
        for row in self.session.scalars(stmt):
            try:
                rules.append(row.to_rule())
            except ValueError as e:
                logger.error(f"Skipping malformed availability rule {row.id}: {e}")
        return rules

    def find_overlapping(
        self,
        resource_pool_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[ExistingBooking]:
        """
        Find non-cancelled bookings for a staff member overlapping [start, end).

        Args:
            resource_pool_id: Staff ID
            start: Window start (aware)
            end: Window end (aware)

        Returns:
            ExistingBooking values with pet counts
        """
        start_utc, end_utc = ensure_utc(start), ensure_utc(end)
        stmt = (
            select(
                Booking.id,
                Booking.start_time,
                Booking.end_time,
                func.count(BookingPet.id),
            )
            .outerjoin(BookingPet, BookingPet.booking_id == Booking.id)
            .where(
                Booking.assigned_staff_id == resource_pool_id,
                Booking.status != "cancelled",
                Booking.deleted_at.is_(None),
                Booking.start_time < end_utc,
                Booking.end_time > start_utc,
            )
            .group_by(Booking.id, Booking.start_time, Booking.end_time)
        )
        return [
            ExistingBooking(
                id=booking_id,
                start=ensure_utc(booking_start),
                end=ensure_utc(booking_end),
                pet_count=pet_count,
            )
            for booking_id, booking_start, booking_end, pet_count in self.session.execute(stmt)
        ]

    def get_pool_capacity(self, pool_id: UUID) -> Optional[PoolCapacity]:
        staff = self.session.get(Staff, pool_id)
        if staff is None or staff.is_deleted:
            return None
        vehicle = staff.default_vehicle
        return PoolCapacity(
            pool_id=staff.id,
            vehicle_capacity=vehicle.pet_capacity if vehicle is not None else None,
            staff_user_id=staff.user_id,
            vehicle_id=staff.default_vehicle_id,
        )

    def get_pool_availability(self, pool_id: UUID, interval: RequestedInterval) -> bool:
        """Check a staff availability window covers the whole interval."""
        stmt = select(StaffAvailability).where(
            StaffAvailability.staff_id == pool_id,
            StaffAvailability.is_available.is_(True),
            StaffAvailability.deleted_at.is_(None),
        )
        windows: Sequence[StaffAvailability] = self.session.scalars(stmt).all()
        return any(
            covers_date(w.specific_date, w.days_of_week, interval)
            and contains_window(w.start_time, w.end_time, interval)
            for w in windows
        )

    def get_default_price(self, service_id: UUID) -> Optional[Decimal]:
        service = self.session.get(Service, service_id)
        if service is None:
            return None
        return service.default_price
