"""
Staff and vehicle administration.

A staff member's default vehicle sets the pet capacity of their resource
pool, so reassigning a vehicle changes what staff-capacity rules allow.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.models.staff import Staff, Vehicle
from src.services.exceptions import BookingValidationError, ConflictError, NotFoundError
from src.services.transactions import commit_or_rollback

logger = logging.getLogger(__name__)

VEHICLE_FIELDS = frozenset({"make", "model", "year", "color", "license_plate", "pet_capacity", "notes"})


def get_staff(session: Session, staff_id: UUID) -> Staff:
    staff = session.get(Staff, staff_id)
    if staff is None or staff.is_deleted:
        raise NotFoundError(f"Staff member {staff_id} not found")
    return staff


def list_staff(session: Session) -> list[Staff]:
    stmt = select(Staff).where(Staff.deleted_at.is_(None)).order_by(Staff.created_at, Staff.id)
    return list(session.scalars(stmt).all())


def assign_vehicle(session: Session, staff_id: UUID, vehicle_id: Optional[UUID]) -> Staff:
    """
    Set or clear a staff member's default vehicle.

    Args:
        session: Database session
        staff_id: Staff member to update
        vehicle_id: Vehicle to assign, or None to clear

    Raises:
        NotFoundError: If the staff member does not exist
        BookingValidationError: If the vehicle does not exist
    """
    staff = get_staff(session, staff_id)

    if vehicle_id is not None:
        vehicle = session.get(Vehicle, vehicle_id)
        if vehicle is None or vehicle.is_deleted:
            raise BookingValidationError(f"Invalid vehicle {vehicle_id}")

    staff.default_vehicle_id = vehicle_id
    commit_or_rollback(session, "assign vehicle")
    logger.info(f"Staff {staff.id} default vehicle set to {vehicle_id}")
    return staff


# =============================================================================
# Vehicles
# =============================================================================


def list_vehicles(session: Session) -> list[Vehicle]:
    stmt = (
        select(Vehicle)
        .where(Vehicle.deleted_at.is_(None))
        .order_by(Vehicle.make, Vehicle.model)
    )
    return list(session.scalars(stmt).all())


def create_vehicle(session: Session, data: dict) -> Vehicle:
    """
    Register a vehicle.

    Raises:
        BookingValidationError: If make or model is missing, or the
            pet capacity is negative
    """
    unknown = set(data) - VEHICLE_FIELDS
    if unknown:
        raise BookingValidationError(f"Unknown vehicle fields: {', '.join(sorted(unknown))}")

    make = (data.get("make") or "").strip()
    model = (data.get("model") or "").strip()
    if not make or not model:
        raise BookingValidationError("make and model are required")
    if data.get("pet_capacity") is not None and data["pet_capacity"] < 0:
        raise BookingValidationError("pet_capacity must not be negative")

    vehicle = Vehicle(**{**data, "make": make, "model": model})
    session.add(vehicle)
    commit_or_rollback(session, "create vehicle")
    logger.info(f"Created vehicle {vehicle.id} ({vehicle.make} {vehicle.model}, capacity {vehicle.pet_capacity})")
    return vehicle


def delete_vehicle(session: Session, vehicle_id: UUID) -> Vehicle:
    """
    Soft-delete a vehicle.

    Raises:
        NotFoundError: If the vehicle does not exist
        ConflictError: If it is still some staff member's default vehicle
    """
    vehicle = session.get(Vehicle, vehicle_id)
    if vehicle is None or vehicle.is_deleted:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")

    stmt = select(Staff.id).where(
        Staff.default_vehicle_id == vehicle.id,
        Staff.deleted_at.is_(None),
    )
    drivers = session.scalars(stmt).all()
    if drivers:
        raise ConflictError(
            f"Vehicle {vehicle_id} is assigned to staff {', '.join(str(s) for s in drivers)}; unassign it first"
        )

    vehicle.soft_delete()
    commit_or_rollback(session, "delete vehicle")
    logger.info(f"Deleted vehicle {vehicle_id}")
    return vehicle
