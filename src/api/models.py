"""
Pydantic request and response models for the Pet Daycare Booking API.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.services.recurrence import validate_days_of_week


def _check_same_awareness(start: datetime, end: datetime) -> None:
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise ValueError("start_time and end_time must both include or both omit a UTC offset")
    if start >= end:
        raise ValueError("start_time must be before end_time")


def _check_recurrence(specific_date: Optional[date], days_of_week: Optional[list[int]]) -> None:
    if (specific_date is None) == (days_of_week is None):
        raise ValueError("Set exactly one of specific_date or days_of_week")
    if days_of_week is not None:
        is_valid, error = validate_days_of_week(days_of_week)
        if not is_valid:
            raise ValueError(error)


# =============================================================================
# Request Models
# =============================================================================


class BookingRequestBody(BaseModel):
    """
    Request to book a service window.

    Times without a UTC offset are read as business-local wall-clock time.
    """

    service_id: UUID = Field(..., description="Service to book")
    start_time: datetime = Field(
        ...,
        description="Start of the booking (ISO 8601)",
        examples=["2026-06-03T10:00:00+01:00"],
    )
    end_time: datetime = Field(..., description="End of the booking (ISO 8601)")
    pet_ids: list[UUID] = Field(
        ...,
        min_length=1,
        description="Pets attending; all must belong to the client",
    )

    @model_validator(mode="after")
    def validate_window(self) -> "BookingRequestBody":
        _check_same_awareness(self.start_time, self.end_time)
        return self


class BatchBookingRequest(BaseModel):
    """Several bookings submitted together; each succeeds or fails alone."""

    bookings: list[BookingRequestBody] = Field(..., min_length=1, max_length=50)


class AdminBookingRequest(BookingRequestBody):
    """Request by staff to book on behalf of a client."""

    client_id: UUID = Field(..., description="Client the booking is for")
    allow_override: bool = Field(
        default=False,
        description="Book even if capacity or staff schedule would reject it",
    )
    assignment_notes: Optional[str] = Field(None, max_length=500)


class UpdateBookingStatusRequest(BaseModel):
    """Update a booking's status and/or payment flag."""

    status: Optional[Literal["confirmed", "cancelled", "completed"]] = None
    is_paid: Optional[bool] = None

    @model_validator(mode="after")
    def validate_not_empty(self) -> "UpdateBookingStatusRequest":
        if self.status is None and self.is_paid is None:
            raise ValueError("Provide status and/or is_paid")
        return self


class CreateRuleRequest(BaseModel):
    """Request to create a service availability rule."""

    service_id: UUID
    field_ids: list[UUID] = Field(default_factory=list)
    start_time: time = Field(..., description="Local start (HH:MM[:SS])", examples=["09:00"])
    end_time: time = Field(..., description="Local end (HH:MM[:SS])", examples=["17:00"])
    specific_date: Optional[date] = Field(None, description="One-off date (YYYY-MM-DD)")
    days_of_week: Optional[list[int]] = Field(
        None,
        description="ISO weekdays, 1=Monday..7=Sunday",
        examples=[[1, 3, 5]],
    )
    use_staff_vehicle_capacity: bool = False
    max_pets_per_booking: Optional[int] = Field(None, ge=0)
    override_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_active: bool = True

    @model_validator(mode="after")
    def validate_rule(self) -> "CreateRuleRequest":
        _check_recurrence(self.specific_date, self.days_of_week)
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class UpdateRuleRequest(BaseModel):
    """Partial update of a service availability rule."""

    field_ids: Optional[list[UUID]] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    specific_date: Optional[date] = None
    days_of_week: Optional[list[int]] = None
    use_staff_vehicle_capacity: Optional[bool] = None
    max_pets_per_booking: Optional[int] = Field(None, ge=0)
    override_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_active: Optional[bool] = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        if v is not None:
            is_valid, error = validate_days_of_week(v)
            if not is_valid:
                raise ValueError(error)
        return v


class CreateStaffAvailabilityRequest(BaseModel):
    """Request to record a staff working window."""

    staff_id: UUID
    start_time: time
    end_time: time
    specific_date: Optional[date] = None
    days_of_week: Optional[list[int]] = None
    is_available: bool = True

    @model_validator(mode="after")
    def validate_window(self) -> "CreateStaffAvailabilityRequest":
        _check_recurrence(self.specific_date, self.days_of_week)
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class UpdateStaffAvailabilityRequest(BaseModel):
    """Partial update of a staff working window."""

    start_time: Optional[time] = None
    end_time: Optional[time] = None
    specific_date: Optional[date] = None
    days_of_week: Optional[list[int]] = None
    is_available: Optional[bool] = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        if v is not None:
            is_valid, error = validate_days_of_week(v)
            if not is_valid:
                raise ValueError(error)
        return v


class UpdateBookingRequest(BaseModel):
    """
    Edit a booking.

    Moving a live booking re-checks the new window against the rules and
    capacity. Times without a UTC offset are business-local.
    """

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[Literal["confirmed", "cancelled", "completed"]] = None
    is_paid: Optional[bool] = None
    assignment_notes: Optional[str] = Field(None, max_length=500)
    allow_override: bool = Field(
        default=False,
        description="Keep a move that only fails on capacity",
    )

    @model_validator(mode="after")
    def validate_window(self) -> "UpdateBookingRequest":
        if self.start_time is not None and self.end_time is not None:
            _check_same_awareness(self.start_time, self.end_time)
        return self


class UpdateClientRequest(BaseModel):
    """Update a client's details; default_staff_id null unassigns them."""

    email: Optional[str] = Field(None, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    default_staff_id: Optional[UUID] = Field(
        None, description="Staff member whose vehicle collects this client's pets"
    )


class CreatePetRequest(BaseModel):
    """Register a pet; it starts unconfirmed."""

    name: str = Field(..., min_length=1, max_length=100)
    breed: Optional[str] = Field(None, max_length=100)
    size: Optional[str] = Field(None, max_length=20, examples=["small", "medium", "large"])


class UpdatePetRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    breed: Optional[str] = Field(None, max_length=100)
    size: Optional[str] = Field(None, max_length=20)


class PetConfirmationRequest(BaseModel):
    """Confirm a pet for self-service booking, or withdraw confirmation."""

    is_confirmed: bool


class StaffAssignmentRequest(BaseModel):
    """Set or clear a staff member's default vehicle."""

    staff_id: UUID
    default_vehicle_id: Optional[UUID] = Field(None, description="Vehicle to assign; null clears it")


class CreateVehicleRequest(BaseModel):
    make: str = Field(..., min_length=1, max_length=50)
    model: str = Field(..., min_length=1, max_length=50)
    year: Optional[int] = None
    color: Optional[str] = Field(None, max_length=30)
    license_plate: Optional[str] = Field(None, max_length=20)
    pet_capacity: Optional[int] = Field(None, ge=0, description="Pets carried at once")
    notes: Optional[str] = None


class CreateServiceRequest(BaseModel):
    """Add a service to the catalogue."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    service_type: str = Field("field_hire", max_length=50, examples=["field_hire", "daycare"])
    default_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2, description="Price per pet")
    requires_field_selection: bool = False
    active: bool = True


class UpdateServiceRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    service_type: Optional[str] = Field(None, max_length=50)
    default_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    requires_field_selection: Optional[bool] = None
    active: Optional[bool] = None


class CreateSiteRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    is_active: bool = True


class CreateFieldRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    field_type: Optional[str] = Field(None, max_length=50, examples=["grass", "agility"])


# =============================================================================
# Response Models
# =============================================================================


class SlotResponse(BaseModel):
    """A listed slot."""

    start: datetime = Field(..., description="Slot start in the business timezone")
    end: datetime = Field(..., description="Slot end in the business timezone")
    remaining_capacity: Optional[int] = Field(
        None, description="Pets still bookable (null means unlimited)"
    )
    uses_resource_pool: bool = Field(..., description="Capacity comes from staff vehicle")
    resource_field_ids: list[str] = Field(default_factory=list)
    price_per_unit: Optional[float] = Field(None, description="Price per pet")
    zero_capacity_reason: Optional[str] = Field(
        None, description="Why the slot cannot be booked (null if bookable)"
    )
    rule_id: Optional[str] = None


class AvailableSlotsResponse(BaseModel):
    """Slots for a service over a date range."""

    service_id: str
    start_date: date
    end_date: date
    timezone: str
    slots: list[SlotResponse]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "service_id": "5b8e6c1e-4d8f-4a59-9a0e-1c9f0c8f3e21",
                "start_date": "2026-06-01",
                "end_date": "2026-06-07",
                "timezone": "Europe/London",
                "slots": [
                    {
                        "start": "2026-06-03T09:00:00+01:00",
                        "end": "2026-06-03T17:00:00+01:00",
                        "remaining_capacity": 4,
                        "uses_resource_pool": False,
                        "resource_field_ids": ["0f5f3d1e-2f0b-4c1c-8d0e-7c1c8b7d2a10"],
                        "price_per_unit": 12.5,
                        "zero_capacity_reason": None,
                    }
                ],
            }
        }
    )


class BookingResponse(BaseModel):
    """A booking."""

    id: str
    service_id: str
    service_type: Optional[str] = None
    start_time: datetime = Field(..., description="Start (UTC)")
    end_time: datetime = Field(..., description="End (UTC)")
    status: str
    is_paid: bool
    booking_field_ids: list[str] = Field(default_factory=list)
    assigned_staff_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    client_ids: list[str] = Field(default_factory=list)
    pet_ids: list[str] = Field(default_factory=list)
    pet_count: int
    assignment_notes: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int


class BatchItemError(BaseModel):
    """A batch item that failed."""

    index: int = Field(..., description="Position in the submitted list")
    error_type: str
    message: str
    reason: Optional[str] = None


class BatchBookingResponse(BaseModel):
    """Per-item outcome of a batch booking."""

    created: list[BookingResponse]
    failed: list[BatchItemError]


class RuleResponse(BaseModel):
    """A service availability rule."""

    id: str
    service_id: str
    field_ids: list[str]
    start_time: time
    end_time: time
    specific_date: Optional[date] = None
    days_of_week: Optional[list[int]] = None
    use_staff_vehicle_capacity: bool
    max_pets_per_booking: Optional[int] = None
    override_price: Optional[float] = None
    is_active: bool


class RuleListResponse(BaseModel):
    rules: list[RuleResponse]
    total: int


class StaffAvailabilityResponse(BaseModel):
    """A staff working window."""

    id: str
    staff_id: str
    start_time: time
    end_time: time
    specific_date: Optional[date] = None
    days_of_week: Optional[list[int]] = None
    is_available: bool


class StaffAvailabilityListResponse(BaseModel):
    availability: list[StaffAvailabilityResponse]
    total: int


class ClientResponse(BaseModel):
    """A client."""

    id: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    default_staff_id: Optional[str] = Field(None, description="Assigned staff member (resource pool)")


class ClientListResponse(BaseModel):
    clients: list[ClientResponse]
    total: int


class PetResponse(BaseModel):
    """A pet."""

    id: str
    client_id: str
    name: Optional[str] = None
    breed: Optional[str] = None
    size: Optional[str] = None
    is_confirmed: bool


class PetListResponse(BaseModel):
    pets: list[PetResponse]
    total: int


class StaffResponse(BaseModel):
    """A staff member."""

    id: str
    user_id: Optional[str] = None
    role: str
    default_vehicle_id: Optional[str] = None
    vehicle_capacity: Optional[int] = Field(None, description="Pet capacity of the default vehicle")
    notes: Optional[str] = None


class StaffListResponse(BaseModel):
    staff: list[StaffResponse]
    total: int


class VehicleResponse(BaseModel):
    """A vehicle."""

    id: str
    make: str
    model: str
    year: Optional[int] = None
    color: Optional[str] = None
    license_plate: Optional[str] = None
    pet_capacity: Optional[int] = None
    notes: Optional[str] = None


class VehicleListResponse(BaseModel):
    vehicles: list[VehicleResponse]
    total: int


class ServiceResponse(BaseModel):
    """A catalogue service."""

    id: str
    name: str
    description: Optional[str] = None
    service_type: str
    default_price: Optional[float] = Field(None, description="Price per pet")
    requires_field_selection: bool
    active: bool


class ServiceListResponse(BaseModel):
    services: list[ServiceResponse]
    total: int


class SiteResponse(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    is_active: bool


class SiteListResponse(BaseModel):
    sites: list[SiteResponse]
    total: int


class FieldResponse(BaseModel):
    """A bookable field."""

    id: str
    site_id: str
    name: Optional[str] = None
    field_type: Optional[str] = None


class FieldListResponse(BaseModel):
    fields: list[FieldResponse]
    total: int


class ErrorResponse(BaseModel):
    """Error information for failed requests."""

    error_type: str = Field(..., description="Type of error")
    message: str = Field(..., description="Human-readable error message")
    retryable: bool = Field(default=False, description="Whether request can be retried")
    reason: Optional[str] = Field(None, description="Rejection reason for refused bookings")
    request_id: Optional[str] = Field(None, description="ID echoed in the X-Request-ID header")


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    database_connected: bool = Field(..., description="Database connection status")
