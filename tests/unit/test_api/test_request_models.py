"""
Unit tests for API Pydantic models.

Tests request validation and response serialization.
"""

import uuid
from datetime import date, time

import pytest
from pydantic import ValidationError

from src.api.models import (
    AdminBookingRequest,
    BatchBookingRequest,
    BookingRequestBody,
    CreateRuleRequest,
    CreatePetRequest,
    CreateStaffAvailabilityRequest,
    CreateVehicleRequest,
    ErrorResponse,
    HealthResponse,
    StaffAssignmentRequest,
    UpdateBookingRequest,
    UpdateBookingStatusRequest,
    UpdateRuleRequest,
    UpdateStaffAvailabilityRequest,
)


def booking_payload(**overrides):
    payload = {
        "service_id": str(uuid.uuid4()),
        "start_time": "2030-06-05T10:00:00+01:00",
        "end_time": "2030-06-05T11:00:00+01:00",
        "pet_ids": [str(uuid.uuid4())],
    }
    payload.update(overrides)
    return payload


class TestBookingRequestBody:
    """Test BookingRequestBody validation."""

    def test_valid_request(self):
        request = BookingRequestBody(**booking_payload())

        assert request.start_time.utcoffset().total_seconds() == 3600
        assert len(request.pet_ids) == 1

    def test_naive_times_allowed(self):
        """Times without an offset are accepted as local wall-clock time."""
        request = BookingRequestBody(
            **booking_payload(start_time="2030-06-05T10:00:00", end_time="2030-06-05T11:00:00")
        )

        assert request.start_time.tzinfo is None

    def test_mixed_awareness_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            BookingRequestBody(**booking_payload(end_time="2030-06-05T11:00:00"))

        assert "UTC offset" in str(exc_info.value)

    def test_start_must_precede_end(self):
        with pytest.raises(ValidationError) as exc_info:
            BookingRequestBody(**booking_payload(end_time="2030-06-05T10:00:00+01:00"))

        assert "before end_time" in str(exc_info.value)

    def test_pets_required(self):
        with pytest.raises(ValidationError):
            BookingRequestBody(**booking_payload(pet_ids=[]))

    def test_pet_ids_must_be_uuids(self):
        with pytest.raises(ValidationError):
            BookingRequestBody(**booking_payload(pet_ids=["rex"]))


class TestBatchAndAdminRequests:
    def test_batch_limits(self):
        with pytest.raises(ValidationError):
            BatchBookingRequest(bookings=[])
        with pytest.raises(ValidationError):
            BatchBookingRequest(bookings=[booking_payload() for _ in range(51)])

    def test_admin_defaults(self):
        request = AdminBookingRequest(**booking_payload(client_id=str(uuid.uuid4())))

        assert request.allow_override is False
        assert request.assignment_notes is None

    def test_admin_requires_client(self):
        with pytest.raises(ValidationError):
            AdminBookingRequest(**booking_payload())


class TestUpdateBookingStatusRequest:
    def test_status_only(self):
        assert UpdateBookingStatusRequest(status="cancelled").is_paid is None

    def test_payment_only(self):
        assert UpdateBookingStatusRequest(is_paid=True).status is None

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="status and/or is_paid"):
            UpdateBookingStatusRequest()

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            UpdateBookingStatusRequest(status="pending")

        assert exc_info.value.errors()[0]["type"] == "literal_error"


class TestCreateRuleRequest:
    """Test CreateRuleRequest validation."""

    def test_weekly_rule(self):
        request = CreateRuleRequest(
            service_id=uuid.uuid4(),
            start_time="09:00",
            end_time="17:00",
            days_of_week=[1, 3, 5],
            max_pets_per_booking=4,
        )

        assert request.start_time == time(9, 0)
        assert request.field_ids == []
        assert request.is_active is True
        assert request.use_staff_vehicle_capacity is False

    def test_specific_date_rule(self):
        request = CreateRuleRequest(
            service_id=uuid.uuid4(),
            start_time="09:00",
            end_time="12:00",
            specific_date="2030-12-24",
        )

        assert request.specific_date == date(2030, 12, 24)

    @pytest.mark.parametrize("recurrence", [
        {},
        {"specific_date": "2030-12-24", "days_of_week": [2]},
    ])
    def test_exactly_one_recurrence(self, recurrence):
        with pytest.raises(ValidationError, match="exactly one"):
            CreateRuleRequest(service_id=uuid.uuid4(), start_time="09:00", end_time="17:00", **recurrence)

    @pytest.mark.parametrize("days", [[0], [8], [1, 1]])
    def test_invalid_weekdays(self, days):
        with pytest.raises(ValidationError):
            CreateRuleRequest(service_id=uuid.uuid4(), start_time="09:00", end_time="17:00", days_of_week=days)

    def test_inverted_window(self):
        with pytest.raises(ValidationError, match="before end_time"):
            CreateRuleRequest(service_id=uuid.uuid4(), start_time="17:00", end_time="09:00", days_of_week=[1])

    def test_negative_limit(self):
        with pytest.raises(ValidationError):
            CreateRuleRequest(
                service_id=uuid.uuid4(),
                start_time="09:00",
                end_time="17:00",
                days_of_week=[1],
                max_pets_per_booking=-1,
            )


class TestUpdateRuleRequest:
    def test_only_set_fields_dumped(self):
        request = UpdateRuleRequest(end_time="18:00")

        assert request.model_dump(exclude_unset=True) == {"end_time": time(18, 0)}

    def test_invalid_weekdays(self):
        with pytest.raises(ValidationError):
            UpdateRuleRequest(days_of_week=[9])


class TestCreateStaffAvailabilityRequest:
    def test_defaults_available(self):
        request = CreateStaffAvailabilityRequest(
            staff_id=uuid.uuid4(), start_time="08:00", end_time="18:00", days_of_week=[1, 2]
        )

        assert request.is_available is True

    def test_requires_recurrence(self):
        with pytest.raises(ValidationError):
            CreateStaffAvailabilityRequest(staff_id=uuid.uuid4(), start_time="08:00", end_time="18:00")


class TestUpdateBookingRequest:
    def test_partial_move(self):
        request = UpdateBookingRequest(start_time="2030-06-05T10:00:00+01:00")

        assert request.model_dump(exclude_unset=True, exclude={"allow_override"}) == {
            "start_time": request.start_time
        }
        assert request.allow_override is False

    def test_mixed_awareness_rejected(self):
        with pytest.raises(ValidationError):
            UpdateBookingRequest(start_time="2030-06-05T10:00:00+01:00", end_time="2030-06-05T11:00:00")

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            UpdateBookingRequest(status="pending")


class TestAdminRequests:
    def test_assignment_clears_by_default(self):
        request = StaffAssignmentRequest(staff_id=str(uuid.uuid4()))

        assert request.default_vehicle_id is None

    def test_vehicle_capacity_not_negative(self):
        with pytest.raises(ValidationError):
            CreateVehicleRequest(make="Ford", model="Transit", pet_capacity=-1)

    def test_pet_name_required(self):
        with pytest.raises(ValidationError):
            CreatePetRequest(name="")

    def test_staff_window_weekdays_checked(self):
        with pytest.raises(ValidationError):
            UpdateStaffAvailabilityRequest(days_of_week=[8])


class TestResponseModels:
    def test_error_response_defaults(self):
        error = ErrorResponse(error_type="not_found", message="Booking not found")

        assert error.retryable is False
        assert error.reason is None

    def test_error_response_request_id(self):
        error = ErrorResponse(error_type="not_found", message="Pet not found", request_id="a1b2c3d4")

        assert error.request_id == "a1b2c3d4"

    def test_health_response(self):
        health = HealthResponse(status="healthy", version="0.1.0", database_connected=True)

        assert health.model_dump() == {"status": "healthy", "version": "0.1.0", "database_connected": True}

    def test_health_status_literal(self):
        with pytest.raises(ValidationError):
            HealthResponse(status="degraded", version="0.1.0", database_connected=True)
