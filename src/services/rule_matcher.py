"""
Availability rule matching.

Selects the single active rule governing a requested local window. Matching
is done entirely on business-local (date, weekday, time-of-day) values
produced by local_time.normalize_interval.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, Optional, Sequence
from uuid import UUID

from src.services.base import AvailabilityRule, RejectionReason, RequestedInterval

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleMatch:
    """Result of matching a requested interval against a rule set."""

    rule: Optional[AvailabilityRule]
    rejection_reason: RejectionReason = RejectionReason.NONE

    @property
    def matched(self) -> bool:
        return self.rule is not None and self.rejection_reason is RejectionReason.NONE


def covers_date(
    specific_date: Optional[date],
    days_of_week: Optional[Iterable[int]],
    interval: RequestedInterval,
) -> bool:
    """
    Check whether a recurrence applies on the interval's date.

    A specific-date recurrence never matches by weekday.
    """
    if specific_date is not None:
        return specific_date == interval.date
    if days_of_week:
        return interval.iso_weekday in days_of_week
    return False


def contains_window(start_time: time, end_time: time, interval: RequestedInterval) -> bool:
    """Check the requested window lies fully inside [start_time, end_time)."""
    return interval.start_time >= start_time and interval.end_time <= end_time


def _first_covering(
    rules: Sequence[AvailabilityRule],
    interval: RequestedInterval,
) -> Optional[AvailabilityRule]:
    for rule in rules:
        if not covers_date(rule.specific_date, rule.days_of_week, interval):
            logger.debug(f"Rule {rule.id} skipped: does not apply on {interval.date}")
            continue
        if not contains_window(rule.start_time, rule.end_time, interval):
            logger.debug(
                f"Rule {rule.id} skipped: {interval.start_time}-{interval.end_time} "
                f"not inside {rule.start_time}-{rule.end_time}"
            )
            continue
        return rule
    return None


def match_rule(
    active_rules: Iterable[AvailabilityRule],
    service_id: UUID,
    interval: RequestedInterval,
) -> RuleMatch:
    """
    Select the rule governing a requested interval.

    Specific-date rules are searched before recurring rules; within each
    group the first satisfying rule in input order wins.

    Args:
        active_rules: Candidate rules (filtered here by service and is_active)
        service_id: Service being booked
        interval: Requested window in business-local terms

    Returns:
        RuleMatch with the rule, or a rejection reason of no-matching-rule
        or missing-resource-assignment
    """
    candidates = [r for r in active_rules if r.service_id == service_id and r.is_active]
    specific = [r for r in candidates if r.is_specific_date]
    recurring = [r for r in candidates if not r.is_specific_date]

    rule = _first_covering(specific, interval) or _first_covering(recurring, interval)
    if rule is None:
        logger.debug(
            f"No rule for service {service_id} on {interval.date} "
            f"{interval.start_time}-{interval.end_time} ({len(candidates)} candidates)"
        )
        return RuleMatch(rule=None, rejection_reason=RejectionReason.NO_MATCHING_RULE)

    if not rule.resource_field_ids and not rule.uses_resource_pool_capacity:
        logger.warning(f"Rule {rule.id} has no fields and does not use staff capacity")
        return RuleMatch(rule=rule, rejection_reason=RejectionReason.MISSING_RESOURCE_ASSIGNMENT)

    return RuleMatch(rule=rule)


def _recurrences_intersect(a: AvailabilityRule, b: AvailabilityRule) -> bool:
    if a.is_specific_date != b.is_specific_date:
        # specific-date precedence decides between the two kinds
        return False
    if a.is_specific_date:
        return a.specific_date == b.specific_date
    return bool(set(a.days_of_week or ()) & set(b.days_of_week or ()))


def rules_overlap(a: AvailabilityRule, b: AvailabilityRule) -> bool:
    """
    Check whether two rules could both match the same request.

    Rules overlap when they belong to the same service, share a recurrence
    kind, strictly overlap in time, and can fall on the same day.
    """
    if a.service_id != b.service_id:
        return False
    if not (a.start_time < b.end_time and a.end_time > b.start_time):
        return False
    return _recurrences_intersect(a, b)
