"""
Capacity evaluation.

Two modes, chosen by the matched rule:
- Resource-pool mode: the client's assigned staff member's vehicle caps the
  total pets across overlapping bookings for that staff member
- Booking-level mode: the rule's per-booking pet limit caps each booking on
  its own; overlapping bookings on the same fields are not aggregated

Pure apart from the injected readers; nothing here writes.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.services.base import (
    AvailabilityReaders,
    AvailabilityRule,
    BookingRequest,
    CapacityResolution,
    RejectionReason,
    RequestedInterval,
    ResourceAssignment,
)
from src.services.local_time import ensure_utc

logger = logging.getLogger(__name__)


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Strict overlap: touching endpoints do not overlap."""
    return a_start < b_end and a_end > b_start


def assess_capacity(
    rule: AvailabilityRule,
    interval: RequestedInterval,
    start: datetime,
    end: datetime,
    resource_pool_id: Optional[UUID],
    readers: AvailabilityReaders,
) -> CapacityResolution:
    """
    Work out ceiling, consumed capacity and resource assignment for a window.

    This is the part of evaluation that does not depend on how many pets are
    requested, shared by booking resolution and slot enumeration.

    Args:
        rule: Matched availability rule
        interval: Requested window in business-local terms
        start: Requested start instant (aware)
        end: Requested end instant (aware)
        resource_pool_id: Staff member whose vehicle capacity applies, if any
        readers: Store lookups

    Returns:
        CapacityResolution whose rejection reason is none,
        missing-resource-assignment or pool-not-scheduled
    """
    if not rule.uses_resource_pool_capacity:
        return CapacityResolution(
            matched_rule=rule,
            effective_capacity_ceiling=rule.per_booking_capacity_limit,
            consumed_capacity=0,
            assigned_resource_pool=ResourceAssignment(field_ids=rule.resource_field_ids),
        )

    if resource_pool_id is None:
        logger.info(f"Rule {rule.id} uses staff capacity but no staff member is assigned")
        return CapacityResolution(
            matched_rule=rule,
            rejection_reason=RejectionReason.MISSING_RESOURCE_ASSIGNMENT,
        )

    pool = readers.get_pool_capacity(resource_pool_id)
    if pool is None:
        logger.info(f"Staff member {resource_pool_id} not found for rule {rule.id}")
        return CapacityResolution(
            matched_rule=rule,
            rejection_reason=RejectionReason.MISSING_RESOURCE_ASSIGNMENT,
        )

    ceiling = pool.vehicle_capacity or 0
    assignment = ResourceAssignment(
        resource_pool_id=pool.pool_id,
        staff_user_id=pool.staff_user_id,
        vehicle_id=pool.vehicle_id,
        field_ids=rule.resource_field_ids,
    )

    if not readers.get_pool_availability(resource_pool_id, interval):
        logger.info(
            f"Staff member {resource_pool_id} not scheduled on {interval.date} "
            f"{interval.start_time}-{interval.end_time}"
        )
        return CapacityResolution(
            matched_rule=rule,
            effective_capacity_ceiling=ceiling,
            assigned_resource_pool=assignment,
            rejection_reason=RejectionReason.POOL_NOT_SCHEDULED,
        )

    start_utc, end_utc = ensure_utc(start), ensure_utc(end)
    existing = readers.find_overlapping(resource_pool_id, start_utc, end_utc)
    consumed = sum(
        booking.pet_count
        for booking in existing
        if intervals_overlap(ensure_utc(booking.start), ensure_utc(booking.end), start_utc, end_utc)
    )

    return CapacityResolution(
        matched_rule=rule,
        effective_capacity_ceiling=ceiling,
        consumed_capacity=consumed,
        assigned_resource_pool=assignment,
    )


def evaluate_capacity(
    rule: AvailabilityRule,
    request: BookingRequest,
    interval: RequestedInterval,
    readers: AvailabilityReaders,
) -> CapacityResolution:
    """
    Decide whether a booking request fits the matched rule's capacity.

    Args:
        rule: Matched availability rule
        request: Booking request (aware instants, non-empty pets)
        interval: The request's business-local window
        readers: Store lookups

    Returns:
        CapacityResolution; rejection_reason is none on success
    """
    resolution = assess_capacity(
        rule,
        interval,
        request.start_instant,
        request.end_instant,
        request.client_default_resource_pool_id,
        readers,
    )
    if not resolution.ok or resolution.effective_capacity_ceiling is None:
        return resolution

    requested = request.pet_count
    ceiling = resolution.effective_capacity_ceiling

    if rule.uses_resource_pool_capacity:
        if requested + resolution.consumed_capacity > ceiling:
            logger.info(
                f"Pool {request.client_default_resource_pool_id} exhausted: "
                f"booked {resolution.consumed_capacity}, requested {requested}, capacity {ceiling}"
            )
            return replace(resolution, rejection_reason=RejectionReason.POOL_EXHAUSTED)
    elif requested > ceiling:
        logger.info(f"Rule {rule.id} allows {ceiling} pets per booking, requested {requested}")
        return replace(resolution, rejection_reason=RejectionReason.EXCEEDS_PER_BOOKING_LIMIT)

    logger.info(
        f"Capacity ok for rule {rule.id}: requested {requested}, "
        f"booked {resolution.consumed_capacity}, capacity {ceiling}"
    )
    return resolution
