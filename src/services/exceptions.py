"""
Custom exceptions for booking operations.

Provides structured error handling with retryable flags and an HTTP status
hint. Business rejections from the resolver are not raised by the resolver
itself; the booking service converts them into BookingRejectedError.
"""

from typing import Optional

from src.services.base import RejectionReason


class BookingError(Exception):
    """Base exception for booking operations."""

    retryable: bool = False
    status_code: int = 400
    error_type: str = "booking_error"

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class BookingValidationError(BookingError):
    """
    Invalid booking input.

    Causes:
    - Start is not before end
    - Window crosses local midnight
    - Empty pet list
    - Pets not yet confirmed by staff
    """

    retryable = False
    status_code = 400
    error_type = "validation_error"


class PetOwnershipError(BookingError):
    """One or more pets do not belong to the requesting client."""

    retryable = False
    status_code = 403
    error_type = "pet_ownership_error"


class NotFoundError(BookingError):
    """
    Referenced record not found.

    Causes:
    - Unknown service, client, booking, rule or staff member
    - Record was soft-deleted
    """

    retryable = False
    status_code = 404
    error_type = "not_found"


class RuleConflictError(BookingError):
    """An active availability rule would overlap another active rule of the same service."""

    retryable = False
    status_code = 409
    error_type = "rule_conflict"


class ConflictError(BookingError):
    """
    The change clashes with existing records.

    Causes:
    - Service name already taken
    - Deleting a service, vehicle or site that is still referenced
    """

    retryable = False
    status_code = 409
    error_type = "conflict"


class BookingRejectedError(BookingError):
    """
    The resolver rejected the booking.

    Capacity rejections map to 409; configuration gaps and missing rules
    map to 422. Terminal for the request: resubmitting it unchanged gives
    the same answer.
    """

    retryable = False
    error_type = "booking_rejected"

    def __init__(
        self,
        reason: RejectionReason,
        message: Optional[str] = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message or f"Booking rejected: {reason.value}", original_error)
        self.reason = reason

    @property
    def status_code(self) -> int:
        return 409 if self.reason.is_capacity else 422


class BookingPersistenceError(BookingError):
    """
    Writing the booking failed and was rolled back.

    Retryable after the store recovers.
    """

    retryable = True
    status_code = 500
    error_type = "persistence_error"
