"""
Core types and collaborator protocol for availability resolution.

The resolver works on these immutable values rather than ORM rows so it can
run against any store. The SQLAlchemy implementation of the protocol lives
in src.services.readers.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol, Sequence
from uuid import UUID


class RejectionReason(str, Enum):
    """Why a requested slot cannot be booked."""

    NONE = "none"
    NO_MATCHING_RULE = "no-matching-rule"
    MISSING_RESOURCE_ASSIGNMENT = "missing-resource-assignment"
    POOL_NOT_SCHEDULED = "pool-not-scheduled"
    POOL_EXHAUSTED = "pool-exhausted"
    EXCEEDS_PER_BOOKING_LIMIT = "exceeds-per-booking-limit"

    @property
    def is_capacity(self) -> bool:
        """Capacity rejections are legitimate business outcomes, not configuration gaps."""
        return self in CAPACITY_REASONS


CAPACITY_REASONS = frozenset({
    RejectionReason.POOL_NOT_SCHEDULED,
    RejectionReason.POOL_EXHAUSTED,
    RejectionReason.EXCEEDS_PER_BOOKING_LIMIT,
})


@dataclass(frozen=True)
class AvailabilityRule:
    """
    When and how a service can be booked.

    The time window is local wall-clock time in the business timezone.
    Exactly one of specific_date and days_of_week is set; days use ISO
    numbering (1=Monday..7=Sunday).
    """

    id: UUID
    service_id: UUID
    start_time: time
    end_time: time
    resource_field_ids: tuple[UUID, ...] = ()
    specific_date: Optional[date] = None
    days_of_week: Optional[frozenset[int]] = None
    uses_resource_pool_capacity: bool = False
    per_booking_capacity_limit: Optional[int] = None
    override_price: Optional[Decimal] = None
    is_active: bool = True

    def __post_init__(self):
        if (self.specific_date is None) == (self.days_of_week is None):
            raise ValueError(
                f"Rule {self.id} must set exactly one of specific_date or days_of_week"
            )
        if self.days_of_week is not None:
            if not self.days_of_week:
                raise ValueError(f"Rule {self.id} has an empty days_of_week set")
            if any(d < 1 or d > 7 for d in self.days_of_week):
                raise ValueError(f"Rule {self.id} has a weekday outside 1-7")
        if self.start_time >= self.end_time:
            raise ValueError(f"Rule {self.id} must end after it starts")

    @property
    def is_specific_date(self) -> bool:
        return self.specific_date is not None


@dataclass(frozen=True)
class RequestedInterval:
    """A requested window expressed in business-local wall-clock terms."""

    date: date
    start_time: time
    end_time: time
    iso_weekday: int


@dataclass(frozen=True)
class BookingRequest:
    """A booking to be resolved; never persisted by the resolver."""

    service_id: UUID
    start_instant: datetime
    end_instant: datetime
    pet_ids: tuple
    client_id: Optional[UUID] = None
    client_default_resource_pool_id: Optional[UUID] = None

    @property
    def pet_count(self) -> int:
        return len(self.pet_ids)


@dataclass(frozen=True)
class PoolCapacity:
    """Capacity details of a resource pool (a staff member and their vehicle)."""

    pool_id: UUID
    vehicle_capacity: Optional[int]
    staff_user_id: Optional[str] = None
    vehicle_id: Optional[UUID] = None


@dataclass(frozen=True)
class ExistingBooking:
    """A non-cancelled booking competing for the same resource pool."""

    id: UUID
    start: datetime
    end: datetime
    pet_count: int


@dataclass(frozen=True)
class ResourceAssignment:
    """Resources a booking consumes once created."""

    resource_pool_id: Optional[UUID] = None
    staff_user_id: Optional[str] = None
    vehicle_id: Optional[UUID] = None
    field_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class CapacityResolution:
    """
    Outcome of resolving a booking request.

    effective_capacity_ceiling of None means unlimited.
    """

    matched_rule: Optional[AvailabilityRule]
    effective_capacity_ceiling: Optional[int] = None
    consumed_capacity: int = 0
    assigned_resource_pool: Optional[ResourceAssignment] = None
    rejection_reason: RejectionReason = RejectionReason.NONE

    @property
    def ok(self) -> bool:
        return self.rejection_reason is RejectionReason.NONE

    @property
    def remaining_capacity(self) -> Optional[int]:
        """Capacity left before this request; None when unlimited."""
        if self.effective_capacity_ceiling is None:
            return None
        return max(0, self.effective_capacity_ceiling - self.consumed_capacity)


@dataclass(frozen=True)
class Slot:
    """A bookable window produced for availability browsing."""

    start: datetime
    end: datetime
    remaining_capacity: Optional[int]
    uses_resource_pool: bool
    resource_field_ids: tuple[UUID, ...] = field(default_factory=tuple)
    price_per_unit: Optional[Decimal] = None
    zero_capacity_reason: Optional[RejectionReason] = None
    rule_id: Optional[UUID] = None

    @property
    def is_available(self) -> bool:
        return self.zero_capacity_reason is None


class AvailabilityReaders(Protocol):
    """
    Read-only collaborators the resolver depends on.

    Implementations:
    - SqlAvailabilityReaders: SQLAlchemy session-backed reads

    Store failures propagate as exceptions; the resolver does not retry them.
    """

    @abstractmethod
    def list_active_rules(self, service_id: UUID) -> Sequence[AvailabilityRule]:
        """Return active rules for a service, in store order."""
        ...

    @abstractmethod
    def find_overlapping(
        self,
        resource_pool_id: UUID,
        start: datetime,
        end: datetime,
    ) -> Sequence[ExistingBooking]:
        """
        Find non-cancelled bookings assigned to a pool that overlap [start, end).

        Args:
            resource_pool_id: Staff member whose bookings compete for capacity
            start: Requested start (aware)
            end: Requested end (aware)

        Returns:
            Overlapping bookings with their pet counts
        """
        ...

    @abstractmethod
    def get_pool_capacity(self, pool_id: UUID) -> Optional[PoolCapacity]:
        """Return the pool's vehicle capacity and identity, or None if unknown."""
        ...

    @abstractmethod
    def get_pool_availability(self, pool_id: UUID, interval: RequestedInterval) -> bool:
        """Check the pool is scheduled for the whole local interval."""
        ...

    @abstractmethod
    def get_default_price(self, service_id: UUID) -> Optional[Decimal]:
        """Return the service's default per-pet price."""
        ...
