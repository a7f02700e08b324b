"""
Recurrence expansion service.

Availability rules recur either on one specific date or weekly on a set of
ISO weekdays. This module expands them over a date range and splits local
time windows into a grid of slots.

Uses python-dateutil for weekly expansion and daylight saving resolution.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Optional

from dateutil import tz
from dateutil.rrule import rrule, WEEKLY, MO, TU, WE, TH, FR, SA, SU

from src.services.base import AvailabilityRule

ISO_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)


def expand_weekly_dates(
    days_of_week: Iterable[int],
    start_date: date,
    end_date: date,
) -> list[date]:
    """
    Expand ISO weekdays into concrete dates.

    Args:
        days_of_week: ISO weekdays (1=Monday..7=Sunday)
        start_date: First date of the range (inclusive)
        end_date: Last date of the range (inclusive)

    Returns:
        Sorted list of matching dates
    """
    days = sorted(set(days_of_week))
    if not days or start_date > end_date:
        return []

    rule = rrule(
        WEEKLY,
        dtstart=datetime.combine(start_date, time.min),
        until=datetime.combine(end_date, time.min),
        byweekday=[ISO_WEEKDAYS[d - 1] for d in days],
    )
    return [occurrence.date() for occurrence in rule]


def rule_dates_in_range(
    rule: AvailabilityRule,
    start_date: date,
    end_date: date,
) -> list[date]:
    """
    Dates on which a rule applies within an inclusive range.

    Args:
        rule: Availability rule
        start_date: First date of the range
        end_date: Last date of the range

    Returns:
        List of dates (a specific-date rule yields at most one)
    """
    if rule.specific_date is not None:
        if start_date <= rule.specific_date <= end_date:
            return [rule.specific_date]
        return []
    return expand_weekly_dates(rule.days_of_week or (), start_date, end_date)


def validate_days_of_week(days_of_week) -> tuple[bool, Optional[str]]:
    """
    Validate a days-of-week list.

    Args:
        days_of_week: Candidate list of ISO weekdays

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not days_of_week:
        return False, "days_of_week must not be empty"

    for day in days_of_week:
        if isinstance(day, bool) or not isinstance(day, int):
            return False, f"days_of_week must contain integers, got {day!r}"
        if day < 1 or day > 7:
            return False, f"days_of_week values must be 1-7 (Monday-Sunday), got {day}"

    if len(set(days_of_week)) != len(days_of_week):
        return False, "days_of_week must not contain duplicates"

    return True, None


def split_window(
    day: date,
    start_time: time,
    end_time: time,
    step: Optional[timedelta],
    business_tz: tzinfo,
) -> list[tuple[datetime, datetime]]:
    """
    Split a local time window on a date into consecutive slots.

    Args:
        day: Local calendar date
        start_time: Local window start
        end_time: Local window end
        step: Slot length; None yields the whole window as one slot
        business_tz: Business timezone used to make the slots aware

    Returns:
        List of aware (start, end) pairs; a trailing remainder shorter
        than the step is dropped. Steps are real elapsed time, so a
        repeated hour at the end of summer time yields its own slots
        and a skipped hour yields none.
    """
    window_start = tz.resolve_imaginary(datetime.combine(day, start_time, tzinfo=business_tz))
    window_end = tz.resolve_imaginary(datetime.combine(day, end_time, tzinfo=business_tz))
    start_utc = window_start.astimezone(timezone.utc)
    end_utc = window_end.astimezone(timezone.utc)
    if start_utc >= end_utc:
        return []

    if step is None:
        return [(window_start, window_end)]

    if step <= timedelta(0):
        raise ValueError("Slot step must be positive")

    # step in UTC so DST days get their real number of slots
    slots = []
    cursor = start_utc
    while cursor + step <= end_utc:
        slots.append((cursor.astimezone(business_tz), (cursor + step).astimezone(business_tz)))
        cursor += step
    return slots
