"""
Administration of service and staff availability rules.

Keeps the rule set unambiguous for the matcher: an active rule may not
overlap another active rule of the same service and recurrence kind.
"""

import logging
import uuid
from datetime import date, time
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.models.availability import ServiceAvailability
from src.models.services import Field, Service
from src.models.staff import Staff, StaffAvailability
from src.services.base import AvailabilityRule
from src.services.exceptions import (
    BookingValidationError,
    NotFoundError,
    RuleConflictError,
)
from src.services.recurrence import validate_days_of_week
from src.services.rule_matcher import rules_overlap
from src.services.transactions import commit_or_rollback

logger = logging.getLogger(__name__)

RULE_FIELDS = frozenset({
    "field_ids",
    "start_time",
    "end_time",
    "specific_date",
    "days_of_week",
    "use_staff_vehicle_capacity",
    "max_pets_per_booking",
    "override_price",
    "is_active",
})

STAFF_WINDOW_FIELDS = frozenset({
    "start_time",
    "end_time",
    "specific_date",
    "days_of_week",
    "is_available",
})


def validate_recurrence(
    specific_date: Optional[date],
    days_of_week: Optional[list[int]],
    start_time: time,
    end_time: time,
) -> None:
    """
    Check a recurrence and time window.

    Raises:
        BookingValidationError: If not exactly one recurrence kind is set,
            the weekdays are invalid, or the window is empty
    """
    if (specific_date is None) == (days_of_week is None):
        raise BookingValidationError("Set exactly one of specific_date or days_of_week")
    if days_of_week is not None:
        is_valid, error = validate_days_of_week(days_of_week)
        if not is_valid:
            raise BookingValidationError(error)
    if start_time >= end_time:
        raise BookingValidationError("start_time must be before end_time")


def _normalize_field_ids(session: Session, field_ids: Optional[Sequence[Any]]) -> list[str]:
    """
    Parse field ids and check each names a live field.

    Raises:
        BookingValidationError: If an id is malformed or has no field
    """
    try:
        parsed = [UUID(str(f)) for f in (field_ids or [])]
    except ValueError as e:
        raise BookingValidationError(f"Invalid field id: {e}") from e
    if not parsed:
        return []

    stmt = select(Field.id).where(Field.id.in_(parsed), Field.deleted_at.is_(None))
    known = set(session.scalars(stmt).all())
    unknown = [f for f in parsed if f not in known]
    if unknown:
        raise BookingValidationError(f"Unknown field ids: {', '.join(str(f) for f in unknown)}")
    return [str(f) for f in parsed]


def _check_conflicts(session: Session, candidate: AvailabilityRule) -> None:
    stmt = select(ServiceAvailability).where(
        ServiceAvailability.service_id == candidate.service_id,
        ServiceAvailability.id != candidate.id,
        ServiceAvailability.is_active.is_(True),
        ServiceAvailability.deleted_at.is_(None),
    )
    for row in session.scalars(stmt).all():
        try:
            existing = row.to_rule()
        except ValueError:
            logger.warning(f"Ignoring malformed rule {row.id} during conflict check")
            continue
        if rules_overlap(candidate, existing):
            raise RuleConflictError(
                f"Rule overlaps active rule {existing.id} "
                f"({existing.start_time}-{existing.end_time}) for service {candidate.service_id}"
            )


def _get_rule(session: Session, rule_id: UUID) -> ServiceAvailability:
    row = session.get(ServiceAvailability, rule_id)
    if row is None or row.is_deleted:
        raise NotFoundError(f"Availability rule {rule_id} not found")
    return row


# =============================================================================
# Service availability
# =============================================================================


def list_rules(
    session: Session,
    service_id: Optional[UUID] = None,
    field_id: Optional[UUID] = None,
) -> list[ServiceAvailability]:
    """
    List availability rules, active and inactive.

    Args:
        session: Database session
        service_id: Only rules for this service
        field_id: Only rules that use this field

    Returns:
        Rules ordered by creation
    """
    stmt = (
        select(ServiceAvailability)
        .where(ServiceAvailability.deleted_at.is_(None))
        .order_by(ServiceAvailability.created_at, ServiceAvailability.id)
    )
    if service_id is not None:
        stmt = stmt.where(ServiceAvailability.service_id == service_id)

    rows = list(session.scalars(stmt).all())
    if field_id is not None:
        # JSON containment differs between SQLite and PostgreSQL
        rows = [r for r in rows if str(field_id) in (r.field_ids or [])]
    return rows


def create_rule(session: Session, data: dict) -> ServiceAvailability:
    """
    Create an availability rule.

    Args:
        session: Database session
        data: service_id plus any of RULE_FIELDS

    Returns:
        The committed rule

    Raises:
        NotFoundError: If the service does not exist
        BookingValidationError: If the recurrence or window is invalid
        RuleConflictError: If the active rule overlaps another active rule
    """
    service_id = data.get("service_id")
    service = session.get(Service, service_id) if service_id else None
    if service is None or service.is_deleted:
        raise NotFoundError(f"Service {service_id} not found")

    unknown = set(data) - RULE_FIELDS - {"service_id"}
    if unknown:
        raise BookingValidationError(f"Unknown rule fields: {', '.join(sorted(unknown))}")

    validate_recurrence(
        data.get("specific_date"),
        data.get("days_of_week"),
        data["start_time"],
        data["end_time"],
    )

    row = ServiceAvailability(
        id=uuid.uuid4(),
        service_id=service.id,
        field_ids=_normalize_field_ids(session, data.get("field_ids")),
        start_time=data["start_time"],
        end_time=data["end_time"],
        specific_date=data.get("specific_date"),
        days_of_week=data.get("days_of_week"),
        use_staff_vehicle_capacity=data.get("use_staff_vehicle_capacity", False),
        max_pets_per_booking=data.get("max_pets_per_booking"),
        override_price=data.get("override_price"),
        is_active=data.get("is_active", True),
    )
    candidate = row.to_rule()
    if candidate.is_active:
        _check_conflicts(session, candidate)

    session.add(row)
    commit_or_rollback(session, "create availability rule")
    logger.info(f"Created availability rule {row.id} for service {service.id}")
    return row


def update_rule(session: Session, rule_id: UUID, updates: dict) -> ServiceAvailability:
    """
    Update an availability rule.

    Setting one recurrence kind clears the other.

    Raises:
        NotFoundError: If the rule does not exist
        BookingValidationError: If the result is invalid
        RuleConflictError: If the updated active rule overlaps another
    """
    row = _get_rule(session, rule_id)

    unknown = set(updates) - RULE_FIELDS
    if unknown:
        raise BookingValidationError(f"Unknown rule fields: {', '.join(sorted(unknown))}")

    specific_date = updates.get("specific_date", row.specific_date)
    days_of_week = updates.get("days_of_week", row.days_of_week)
    if updates.get("specific_date") is not None and "days_of_week" not in updates:
        days_of_week = None
    if updates.get("days_of_week") is not None and "specific_date" not in updates:
        specific_date = None

    validate_recurrence(
        specific_date,
        days_of_week,
        updates.get("start_time", row.start_time),
        updates.get("end_time", row.end_time),
    )

    if "field_ids" in updates:
        updates = {**updates, "field_ids": _normalize_field_ids(session, updates["field_ids"])}

    for key, value in updates.items():
        setattr(row, key, value)
    row.specific_date = specific_date
    row.days_of_week = days_of_week

    try:
        candidate = row.to_rule()
        if candidate.is_active:
            _check_conflicts(session, candidate)
    except RuleConflictError:
        session.rollback()
        raise

    commit_or_rollback(session, "update availability rule")
    logger.info(f"Updated availability rule {row.id}")
    return row


def deactivate_rule(session: Session, rule_id: UUID) -> ServiceAvailability:
    """Deactivate and soft-delete a rule."""
    row = _get_rule(session, rule_id)
    row.is_active = False
    row.soft_delete()
    commit_or_rollback(session, "deactivate availability rule")
    logger.info(f"Deactivated availability rule {rule_id}")
    return row


# =============================================================================
# Staff availability
# =============================================================================


def list_staff_availability(
    session: Session,
    staff_id: Optional[UUID] = None,
) -> list[StaffAvailability]:
    stmt = (
        select(StaffAvailability)
        .where(StaffAvailability.deleted_at.is_(None))
        .order_by(StaffAvailability.specific_date, StaffAvailability.start_time)
    )
    if staff_id is not None:
        stmt = stmt.where(StaffAvailability.staff_id == staff_id)
    return list(session.scalars(stmt).all())


def create_staff_availability(session: Session, data: dict) -> StaffAvailability:
    """
    Record a working window for a staff member.

    Args:
        session: Database session
        data: staff_id, start_time, end_time, specific_date or days_of_week,
            and optionally is_available

    Returns:
        The committed StaffAvailability

    Raises:
        NotFoundError: If the staff member does not exist
        BookingValidationError: If the recurrence or window is invalid
    """
    staff_id = data.get("staff_id")
    staff = session.get(Staff, staff_id) if staff_id else None
    if staff is None or staff.is_deleted:
        raise NotFoundError(f"Staff member {staff_id} not found")

    validate_recurrence(
        data.get("specific_date"),
        data.get("days_of_week"),
        data["start_time"],
        data["end_time"],
    )

    row = StaffAvailability(
        staff_id=staff.id,
        start_time=data["start_time"],
        end_time=data["end_time"],
        specific_date=data.get("specific_date"),
        days_of_week=data.get("days_of_week"),
        is_available=data.get("is_available", True),
    )
    session.add(row)
    commit_or_rollback(session, "create staff availability")
    logger.info(f"Created availability window {row.id} for staff {staff.id}")
    return row


def _get_staff_window(session: Session, window_id: UUID) -> StaffAvailability:
    row = session.get(StaffAvailability, window_id)
    if row is None or row.is_deleted:
        raise NotFoundError(f"Staff availability {window_id} not found")
    return row


def update_staff_availability(session: Session, window_id: UUID, updates: dict) -> StaffAvailability:
    """
    Update a staff working window.

    Setting one recurrence kind clears the other, as for service rules.

    Raises:
        NotFoundError: If the window does not exist
        BookingValidationError: If nothing is updated or the result is invalid
    """
    row = _get_staff_window(session, window_id)

    unknown = set(updates) - STAFF_WINDOW_FIELDS
    if unknown:
        raise BookingValidationError(f"Unknown availability fields: {', '.join(sorted(unknown))}")
    if not updates:
        raise BookingValidationError("No fields to update")
    if updates.get("specific_date") is not None and updates.get("days_of_week") is not None:
        raise BookingValidationError("Set exactly one of specific_date or days_of_week")

    specific_date = updates.get("specific_date", row.specific_date)
    days_of_week = updates.get("days_of_week", row.days_of_week)
    if updates.get("specific_date") is not None:
        days_of_week = None
    if updates.get("days_of_week") is not None:
        specific_date = None

    validate_recurrence(
        specific_date,
        days_of_week,
        updates.get("start_time", row.start_time),
        updates.get("end_time", row.end_time),
    )

    for key, value in updates.items():
        setattr(row, key, value)
    row.specific_date = specific_date
    row.days_of_week = days_of_week

    commit_or_rollback(session, "update staff availability")
    logger.info(f"Updated availability window {row.id} for staff {row.staff_id}")
    return row


def delete_staff_availability(session: Session, window_id: UUID) -> StaffAvailability:
    """Soft-delete a staff working window."""
    row = _get_staff_window(session, window_id)
    row.soft_delete()
    commit_or_rollback(session, "delete staff availability")
    logger.info(f"Deleted availability window {window_id} for staff {row.staff_id}")
    return row
