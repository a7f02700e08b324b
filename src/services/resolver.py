"""
Availability resolver.

The single entry point for rule matching, capacity evaluation and slot
enumeration. Every booking path and the slot listing go through here.
Configuration (timezone, slot step, clock) is injected at construction.
"""

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from src.config import Settings, get_settings
from src.services.base import (
    AvailabilityReaders,
    BookingRequest,
    CapacityResolution,
    RequestedInterval,
    Slot,
)
from src.services.capacity import evaluate_capacity
from src.services.exceptions import BookingValidationError
from src.services.local_time import normalize_interval, resolve_timezone
from src.services.readers import SqlAvailabilityReaders
from src.services.rule_matcher import RuleMatch, match_rule
from src.services.slots import enumerate_slots

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """
    Resolves booking requests and lists slots for one business timezone.

    Stateless between calls; safe to share across requests as long as the
    readers are.
    """

    def __init__(
        self,
        readers: AvailabilityReaders,
        timezone: tzinfo,
        slot_step: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.readers = readers
        self.timezone = timezone
        self.slot_step = slot_step
        self._clock = clock

    def today(self) -> date:
        """Current local date in the business timezone."""
        now = self._clock() if self._clock else datetime.now(self.timezone)
        if now.tzinfo is None:
            return now.date()
        return now.astimezone(self.timezone).date()

    def normalize(self, start: datetime, end: datetime) -> RequestedInterval:
        return normalize_interval(start, end, self.timezone)

    def match(self, service_id: UUID, start: datetime, end: datetime) -> RuleMatch:
        """Match a window against the service's active rules."""
        interval = self.normalize(start, end)
        rules = self.readers.list_active_rules(service_id)
        return match_rule(rules, service_id, interval)

    def resolve(self, request: BookingRequest) -> CapacityResolution:
        """
        Resolve a booking request.

        Args:
            request: Booking request

        Returns:
            CapacityResolution; business rejections are reported through
            rejection_reason, never raised

        Raises:
            BookingValidationError: If the request is malformed
        """
        if not request.pet_ids:
            raise BookingValidationError("At least one pet is required")

        interval = self.normalize(request.start_instant, request.end_instant)
        rules = self.readers.list_active_rules(request.service_id)
        match = match_rule(rules, request.service_id, interval)
        if not match.matched:
            logger.info(
                f"Service {request.service_id} request on {interval.date} "
                f"{interval.start_time}-{interval.end_time} rejected: {match.rejection_reason.value}"
            )
            return CapacityResolution(
                matched_rule=match.rule,
                rejection_reason=match.rejection_reason,
            )

        return evaluate_capacity(match.rule, request, interval, self.readers)

    def enumerate_slots(
        self,
        service_id: UUID,
        start_date: date,
        end_date: date,
        resource_pool_id: Optional[UUID] = None,
        privileged: bool = False,
    ) -> list[Slot]:
        """List slots for a service; see slots.enumerate_slots."""
        return enumerate_slots(
            service_id,
            start_date,
            end_date,
            resource_pool_id,
            self.readers,
            self.timezone,
            step=self.slot_step,
            privileged=privileged,
            today=self.today(),
        )


def build_resolver(session: Session, settings: Optional[Settings] = None) -> AvailabilityResolver:
    """
    Build a resolver backed by the database session.

    Args:
        session: Database session
        settings: Application settings (defaults to get_settings())

    Returns:
        AvailabilityResolver configured from settings
    """
    settings = settings or get_settings()
    step = None
    if settings.slot_duration_minutes:
        step = timedelta(minutes=settings.slot_duration_minutes)
    return AvailabilityResolver(
        readers=SqlAvailabilityReaders(session),
        timezone=resolve_timezone(settings.business_timezone),
        slot_step=step,
    )
