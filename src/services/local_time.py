"""
Business-local time normalization.

Rules are written in local wall-clock terms, so every requested interval is
converted into the business timezone here and nowhere else. Stored and
queried instants are always UTC.
"""

from datetime import datetime, timezone, tzinfo

from dateutil import tz

from src.services.base import RequestedInterval
from src.services.exceptions import BookingValidationError


def resolve_timezone(name: str) -> tzinfo:
    """
    Look up an IANA timezone.

    Args:
        name: Timezone name (e.g., 'Europe/London')

    Returns:
        tzinfo for the zone

    Raises:
        ValueError: If the name is unknown
    """
    zone = tz.gettz(name) if name else None
    if zone is None:
        raise ValueError(f"Unknown timezone: {name!r}")
    return zone


def to_local(instant: datetime, business_tz: tzinfo) -> datetime:
    """
    Express an instant in the business timezone.

    Naive values are taken as local wall-clock time already.
    """
    if instant.tzinfo is None:
        return instant.replace(tzinfo=business_tz)
    return instant.astimezone(business_tz)


def ensure_utc(dt: datetime) -> datetime:
    """Convert to aware UTC; naive values (as read back from SQLite) are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_interval(start: datetime, end: datetime, business_tz: tzinfo) -> RequestedInterval:
    """
    Derive the local (date, weekday, time-of-day) view of a requested window.

    Args:
        start: Requested start
        end: Requested end
        business_tz: Business operating timezone

    Returns:
        RequestedInterval in local wall-clock terms

    Raises:
        BookingValidationError: If the window is empty, inverted, or spans
            more than one local calendar date
    """
    local_start = to_local(start, business_tz)
    local_end = to_local(end, business_tz)

    # same-zone comparison ignores fold, so compare instants
    if ensure_utc(local_start) >= ensure_utc(local_end):
        raise BookingValidationError(
            f"Start time must be before end time ({local_start.isoformat()} >= {local_end.isoformat()})"
        )

    if local_start.date() != local_end.date():
        raise BookingValidationError(
            f"Booking must start and end on the same local date "
            f"({local_start.date().isoformat()} to {local_end.date().isoformat()})"
        )

    return RequestedInterval(
        date=local_start.date(),
        start_time=local_start.time().replace(tzinfo=None),
        end_time=local_end.time().replace(tzinfo=None),
        iso_weekday=local_start.isoweekday(),
    )
