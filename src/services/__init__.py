"""
Service layer for the Pet Daycare Booking service.

Exports the availability resolution core:
- Value types and the AvailabilityReaders protocol
- Local time normalization and recurrence expansion
- Rule matching, capacity evaluation and slot enumeration

Database-backed pieces (SqlAvailabilityReaders, AvailabilityResolver,
BookingService, rule administration) are imported from their modules
directly since they depend on the models.
"""

from src.services.base import (
    AvailabilityReaders,
    AvailabilityRule,
    BookingRequest,
    CapacityResolution,
    ExistingBooking,
    PoolCapacity,
    RejectionReason,
    RequestedInterval,
    ResourceAssignment,
    Slot,
)

from src.services.exceptions import (
    BookingError,
    BookingValidationError,
    PetOwnershipError,
    NotFoundError,
    RuleConflictError,
    ConflictError,
    BookingRejectedError,
    BookingPersistenceError,
)

from src.services.local_time import (
    resolve_timezone,
    to_local,
    ensure_utc,
    normalize_interval,
)

from src.services.recurrence import (
    expand_weekly_dates,
    rule_dates_in_range,
    validate_days_of_week,
    split_window,
)

from src.services.rule_matcher import (
    RuleMatch,
    covers_date,
    contains_window,
    match_rule,
    rules_overlap,
)

from src.services.capacity import (
    intervals_overlap,
    assess_capacity,
    evaluate_capacity,
)

from src.services.slots import enumerate_slots

__all__ = [
    # Core types
    "AvailabilityReaders",
    "AvailabilityRule",
    "BookingRequest",
    "CapacityResolution",
    "ExistingBooking",
    "PoolCapacity",
    "RejectionReason",
    "RequestedInterval",
    "ResourceAssignment",
    "Slot",
    # Exceptions
    "BookingError",
    "BookingValidationError",
    "PetOwnershipError",
    "NotFoundError",
    "RuleConflictError",
    "ConflictError",
    "BookingRejectedError",
    "BookingPersistenceError",
    # Local time
    "resolve_timezone",
    "to_local",
    "ensure_utc",
    "normalize_interval",
    # Recurrence
    "expand_weekly_dates",
    "rule_dates_in_range",
    "validate_days_of_week",
    "split_window",
    # Rule matching
    "RuleMatch",
    "covers_date",
    "contains_window",
    "match_rule",
    "rules_overlap",
    # Capacity
    "intervals_overlap",
    "assess_capacity",
    "evaluate_capacity",
    # Slots
    "enumerate_slots",
]
