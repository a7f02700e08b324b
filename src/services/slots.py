"""
Slot enumeration for availability browsing.

Builds a grid of candidate windows from the active rules over a date range,
then runs each window through the same rule matching and capacity
assessment used for bookings. Read-only.
"""

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional
from uuid import UUID

from src.services.base import AvailabilityReaders, RejectionReason, Slot
from src.services.capacity import assess_capacity
from src.services.local_time import normalize_interval
from src.services.recurrence import rule_dates_in_range, split_window
from src.services.rule_matcher import match_rule

logger = logging.getLogger(__name__)


def enumerate_slots(
    service_id: UUID,
    start_date: date,
    end_date: date,
    resource_pool_id: Optional[UUID],
    readers: AvailabilityReaders,
    business_tz: tzinfo,
    step: Optional[timedelta] = None,
    privileged: bool = False,
    today: Optional[date] = None,
) -> list[Slot]:
    """
    List bookable slots for a service over an inclusive date range.

    Slots without capacity are kept and carry zero_capacity_reason so
    callers can show them as unavailable.

    Args:
        service_id: Service to list
        start_date: First local date
        end_date: Last local date
        resource_pool_id: Client's assigned staff member, if any
        readers: Store lookups
        business_tz: Business timezone
        step: Slot length; None gives one slot per rule window
        privileged: Staff and admins also see today and past dates
        today: Local "today" (defaults to now in business_tz)

    Returns:
        Slots sorted by start
    """
    rules = [r for r in readers.list_active_rules(service_id) if r.is_active]
    if not rules:
        return []

    if today is None:
        today = datetime.now(business_tz).date()

    candidates = set()
    for rule in rules:
        for day in rule_dates_in_range(rule, start_date, end_date):
            if not privileged and day <= today:
                continue
            candidates.update(split_window(day, rule.start_time, rule.end_time, step, business_tz))

    default_price = readers.get_default_price(service_id)
    slots = []

    for start, end in sorted(candidates):
        interval = normalize_interval(start, end, business_tz)
        match = match_rule(rules, service_id, interval)
        if match.rule is None:
            continue
        rule = match.rule
        price = rule.override_price if rule.override_price is not None else default_price

        if not match.matched:
            slots.append(Slot(
                start=start,
                end=end,
                remaining_capacity=0,
                uses_resource_pool=rule.uses_resource_pool_capacity,
                resource_field_ids=rule.resource_field_ids,
                price_per_unit=price,
                zero_capacity_reason=match.rejection_reason,
                rule_id=rule.id,
            ))
            continue

        assessment = assess_capacity(rule, interval, start, end, resource_pool_id, readers)

        reason = None
        if not assessment.ok:
            remaining = 0
            reason = assessment.rejection_reason
        elif rule.uses_resource_pool_capacity:
            remaining = assessment.remaining_capacity
            if remaining == 0:
                reason = RejectionReason.POOL_EXHAUSTED
        else:
            remaining = rule.per_booking_capacity_limit
            if remaining is not None and remaining <= 0:
                remaining = 0
                reason = RejectionReason.EXCEEDS_PER_BOOKING_LIMIT

        slots.append(Slot(
            start=start,
            end=end,
            remaining_capacity=remaining,
            uses_resource_pool=rule.uses_resource_pool_capacity,
            resource_field_ids=rule.resource_field_ids,
            price_per_unit=price,
            zero_capacity_reason=reason,
            rule_id=rule.id,
        ))

    logger.debug(
        f"Enumerated {len(slots)} slots for service {service_id} "
        f"{start_date.isoformat()}..{end_date.isoformat()}"
    )
    return slots
