"""
Response builder utilities for transforming domain objects to API responses.
"""

from typing import Any, Optional

from src.api.models import (
    BatchBookingResponse,
    BatchItemError,
    BookingResponse,
    ClientResponse,
    FieldResponse,
    PetResponse,
    RuleResponse,
    ServiceResponse,
    SiteResponse,
    SlotResponse,
    StaffAvailabilityResponse,
    StaffResponse,
    VehicleResponse,
)
from src.models.availability import ServiceAvailability
from src.models.bookings import Booking
from src.models.clients import Client, Pet
from src.models.services import Field, Service, Site
from src.models.staff import Staff, StaffAvailability, Vehicle
from src.services.base import Slot
from src.services.bookings import BatchBookingResult
from src.services.exceptions import BookingError, BookingRejectedError
from src.services.local_time import ensure_utc


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def build_slot_response(slot: Slot) -> SlotResponse:
    return SlotResponse(
        start=slot.start,
        end=slot.end,
        remaining_capacity=slot.remaining_capacity,
        uses_resource_pool=slot.uses_resource_pool,
        resource_field_ids=[str(f) for f in slot.resource_field_ids],
        price_per_unit=float(slot.price_per_unit) if slot.price_per_unit is not None else None,
        zero_capacity_reason=slot.zero_capacity_reason.value if slot.zero_capacity_reason else None,
        rule_id=_str_or_none(slot.rule_id),
    )


def build_booking_response(booking: Booking) -> BookingResponse:
    """
    Build BookingResponse from a Booking row.

    Stored times come back naive from SQLite; they are UTC.
    """
    return BookingResponse(
        id=str(booking.id),
        service_id=str(booking.service_id),
        service_type=booking.service_type,
        start_time=ensure_utc(booking.start_time),
        end_time=ensure_utc(booking.end_time),
        status=booking.status,
        is_paid=booking.is_paid,
        booking_field_ids=list(booking.booking_field_ids or []),
        assigned_staff_id=_str_or_none(booking.assigned_staff_id),
        vehicle_id=_str_or_none(booking.vehicle_id),
        client_ids=[str(link.client_id) for link in booking.clients],
        pet_ids=[str(link.pet_id) for link in booking.pets],
        pet_count=booking.pet_count,
        assignment_notes=booking.assignment_notes,
        created_at=ensure_utc(booking.created_at) if booking.created_at else None,
    )


def build_rule_response(rule: ServiceAvailability) -> RuleResponse:
    return RuleResponse(
        id=str(rule.id),
        service_id=str(rule.service_id),
        field_ids=list(rule.field_ids or []),
        start_time=rule.start_time,
        end_time=rule.end_time,
        specific_date=rule.specific_date,
        days_of_week=rule.days_of_week,
        use_staff_vehicle_capacity=rule.use_staff_vehicle_capacity,
        max_pets_per_booking=rule.max_pets_per_booking,
        override_price=float(rule.override_price) if rule.override_price is not None else None,
        is_active=rule.is_active,
    )


def build_staff_availability_response(window: StaffAvailability) -> StaffAvailabilityResponse:
    return StaffAvailabilityResponse(
        id=str(window.id),
        staff_id=str(window.staff_id),
        start_time=window.start_time,
        end_time=window.end_time,
        specific_date=window.specific_date,
        days_of_week=window.days_of_week,
        is_available=window.is_available,
    )


def build_client_response(client: Client) -> ClientResponse:
    return ClientResponse(
        id=str(client.id),
        user_id=client.user_id,
        email=client.email,
        first_name=client.first_name,
        last_name=client.last_name,
        full_name=client.full_name,
        default_staff_id=_str_or_none(client.default_staff_id),
    )


def build_pet_response(pet: Pet) -> PetResponse:
    return PetResponse(
        id=str(pet.id),
        client_id=str(pet.client_id),
        name=pet.name,
        breed=pet.breed,
        size=pet.size,
        is_confirmed=pet.is_confirmed,
    )


def build_staff_response(staff: Staff) -> StaffResponse:
    """Build StaffResponse; a missing or unassigned vehicle gives no capacity."""
    vehicle = staff.default_vehicle
    return StaffResponse(
        id=str(staff.id),
        user_id=staff.user_id,
        role=staff.role,
        default_vehicle_id=_str_or_none(staff.default_vehicle_id),
        vehicle_capacity=vehicle.pet_capacity if vehicle is not None else None,
        notes=staff.notes,
    )


def build_vehicle_response(vehicle: Vehicle) -> VehicleResponse:
    return VehicleResponse(
        id=str(vehicle.id),
        make=vehicle.make,
        model=vehicle.model,
        year=vehicle.year,
        color=vehicle.color,
        license_plate=vehicle.license_plate,
        pet_capacity=vehicle.pet_capacity,
        notes=vehicle.notes,
    )


def build_service_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=str(service.id),
        name=service.name,
        description=service.description,
        service_type=service.service_type,
        default_price=float(service.default_price) if service.default_price is not None else None,
        requires_field_selection=service.requires_field_selection,
        active=service.active,
    )


def build_site_response(site: Site) -> SiteResponse:
    return SiteResponse(id=str(site.id), name=site.name, address=site.address, is_active=site.is_active)


def build_field_response(field: Field) -> FieldResponse:
    return FieldResponse(
        id=str(field.id),
        site_id=str(field.site_id),
        name=field.name,
        field_type=field.field_type,
    )


def build_batch_response(result: BatchBookingResult) -> BatchBookingResponse:
    """Build per-item batch outcome; failures keep their submitted index."""
    return BatchBookingResponse(
        created=[build_booking_response(b) for b in result.created],
        failed=[
            BatchItemError(
                index=failure.index,
                error_type=failure.error.error_type,
                message=failure.error.message,
                reason=_rejection_reason(failure.error),
            )
            for failure in result.failed
        ],
    )


def _rejection_reason(error: BookingError) -> Optional[str]:
    if isinstance(error, BookingRejectedError):
        return error.reason.value
    return None


def build_error_response(
    error_type: str,
    message: str,
    retryable: bool = False,
    reason: Optional[str] = None,
    request_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build standardized error response dictionary."""
    body = {
        "error_type": error_type,
        "message": message,
        "retryable": retryable,
    }
    if reason is not None:
        body["reason"] = reason
    if request_id:
        body["request_id"] = request_id
    return body


def build_booking_error_response(error: BookingError, request_id: Optional[str] = None) -> dict[str, Any]:
    return build_error_response(
        error_type=error.error_type,
        message=error.message,
        retryable=error.retryable,
        reason=_rejection_reason(error),
        request_id=request_id,
    )
