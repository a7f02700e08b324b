"""
Unit tests for booking creation and management.
"""

import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from src.config import Settings
from src.models import Booking, BookingPet
from src.services.base import RejectionReason
from src.services.bookings import AdminBookingInput, BookingInput, BookingService
from src.services.exceptions import (
    BookingPersistenceError,
    BookingRejectedError,
    BookingValidationError,
    NotFoundError,
    PetOwnershipError,
)
from src.services.local_time import ensure_utc
from src.services.resolver import build_resolver

from fakes import london

WEDNESDAY = date(2030, 6, 5)
FRIDAY = date(2030, 6, 7)
THURSDAY = date(2030, 6, 6)
SUNDAY = date(2030, 6, 9)
CLIENT_USER = "client-user-1"


@pytest.fixture
def booking_service(db_session):
    resolver = build_resolver(db_session, Settings(business_timezone="Europe/London"))
    return BookingService(db_session, resolver)


def booking_input(service, pets, day=WEDNESDAY, start=10, end=11):
    return BookingInput(
        service_id=service.id,
        start_time=london(day, start),
        end_time=london(day, end),
        pet_ids=[p.id for p in pets],
    )


def count_bookings(session) -> int:
    return session.scalar(select(func.count(Booking.id)))


class TestFieldBookings:
    def test_creates_booking_on_rule_fields(self, db_session, booking_service, field_rule, sample_service, sample_pets):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:3]))

        assert booking.status == "confirmed"
        assert booking.is_paid is False
        assert booking.booking_field_ids == field_rule.field_ids
        assert booking.assigned_staff_id is None
        assert booking.service_type == "Field Hire"
        assert booking.pet_count == 3
        assert len(booking.clients) == 1

        stored = db_session.get(Booking, booking.id)
        assert stored.start_time.replace(tzinfo=timezone.utc) == datetime(2030, 6, 5, 9, 0, tzinfo=timezone.utc)

    def test_naive_times_are_business_local(self, db_session, booking_service, field_rule, sample_service, sample_pets):
        data = BookingInput(
            service_id=sample_service.id,
            start_time=datetime(2030, 6, 5, 10, 0),
            end_time=datetime(2030, 6, 5, 11, 0),
            pet_ids=[sample_pets[0].id],
        )

        booking = booking_service.create_client_booking(CLIENT_USER, data)

        assert booking.start_time.replace(tzinfo=timezone.utc).hour == 9

    def test_over_per_booking_limit(self, db_session, booking_service, field_rule, sample_service, sample_pets):
        with pytest.raises(BookingRejectedError) as exc_info:
            booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:5]))

        assert exc_info.value.reason is RejectionReason.EXCEEDS_PER_BOOKING_LIMIT
        assert exc_info.value.status_code == 409
        assert count_bookings(db_session) == 0

    def test_no_rule_on_sunday(self, db_session, booking_service, field_rule, sample_service, sample_pets):
        with pytest.raises(BookingRejectedError) as exc_info:
            booking_service.create_client_booking(
                CLIENT_USER, booking_input(sample_service, sample_pets[:1], day=SUNDAY)
            )

        assert exc_info.value.reason is RejectionReason.NO_MATCHING_RULE
        assert exc_info.value.status_code == 422

    def test_overlapping_field_bookings_not_aggregated(self, booking_service, field_rule, sample_service, sample_pets):
        booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:4]))
        second = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:4]))

        assert second.pet_count == 4


class TestPoolBookings:
    def test_assigns_staff_and_vehicle(self, booking_service, pool_rule, pool_service, sample_pets, sample_staff, sample_vehicle):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:5]))

        assert booking.assigned_staff_id == sample_staff.id
        assert booking.vehicle_id == sample_vehicle.id
        assert booking.booking_field_ids is None

    def test_vehicle_fills_up(self, db_session, booking_service, pool_rule, pool_service, sample_pets):
        booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:3]))

        with pytest.raises(BookingRejectedError) as exc_info:
            booking_service.create_client_booking(
                CLIENT_USER, booking_input(pool_service, sample_pets[3:6], start=10, end=12)
            )
        accepted = booking_service.create_client_booking(
            CLIENT_USER, booking_input(pool_service, sample_pets[3:5], start=10, end=12)
        )

        assert exc_info.value.reason is RejectionReason.POOL_EXHAUSTED
        assert accepted.pet_count == 2
        assert count_bookings(db_session) == 2

    def test_cancelled_booking_frees_capacity(self, booking_service, pool_rule, pool_service, sample_pets):
        first = booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:5]))
        booking_service.update_booking_status(first.id, status="cancelled")

        second = booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:5]))

        assert second.status == "confirmed"

    def test_client_without_staff(self, db_session, booking_service, pool_rule, pool_service, sample_client, sample_pets):
        sample_client.default_staff_id = None
        db_session.commit()

        with pytest.raises(BookingRejectedError) as exc_info:
            booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:1]))

        assert exc_info.value.reason is RejectionReason.MISSING_RESOURCE_ASSIGNMENT
        assert exc_info.value.status_code == 422


class TestPetChecks:
    def test_other_clients_pet(self, booking_service, field_rule, sample_service, sample_pets, other_client_pet):
        with pytest.raises(PetOwnershipError):
            booking_service.create_client_booking(
                CLIENT_USER, booking_input(sample_service, [sample_pets[0], other_client_pet])
            )

    def test_unknown_pet(self, booking_service, field_rule, sample_service, sample_client):
        data = BookingInput(
            service_id=sample_service.id,
            start_time=london(WEDNESDAY, 10),
            end_time=london(WEDNESDAY, 11),
            pet_ids=[uuid.uuid4()],
        )

        with pytest.raises(PetOwnershipError):
            booking_service.create_client_booking(CLIENT_USER, data)

    def test_unconfirmed_pet(self, booking_service, field_rule, sample_service, unconfirmed_pet):
        with pytest.raises(BookingValidationError, match="not been confirmed"):
            booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, [unconfirmed_pet]))

    def test_duplicate_pets(self, booking_service, field_rule, sample_service, sample_pets):
        with pytest.raises(BookingValidationError, match="only be booked once"):
            booking_service.create_client_booking(
                CLIENT_USER, booking_input(sample_service, [sample_pets[0], sample_pets[0]])
            )

    def test_no_pets(self, booking_service, field_rule, sample_service, sample_client):
        with pytest.raises(BookingValidationError, match="At least one pet"):
            booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, []))


class TestLookups:
    def test_unknown_user(self, booking_service, field_rule, sample_service):
        with pytest.raises(NotFoundError):
            booking_service.create_client_booking(
                "nobody", BookingInput(sample_service.id, london(WEDNESDAY, 10), london(WEDNESDAY, 11), [uuid.uuid4()])
            )

    def test_inactive_service(self, db_session, booking_service, field_rule, sample_service, sample_pets):
        sample_service.active = False
        db_session.commit()

        with pytest.raises(NotFoundError):
            booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:1]))


class TestAdminBookings:
    def admin_input(self, service, pets, client, **kwargs):
        return AdminBookingInput(
            service_id=service.id,
            start_time=london(WEDNESDAY, 10),
            end_time=london(WEDNESDAY, 11),
            pet_ids=[p.id for p in pets],
            client_id=client.id,
            **kwargs,
        )

    def test_unconfirmed_pets_allowed(self, booking_service, field_rule, sample_service, sample_client, unconfirmed_pet):
        booking = booking_service.create_admin_booking(
            self.admin_input(sample_service, [unconfirmed_pet], sample_client, assignment_notes="Meet at gate")
        )

        assert booking.assignment_notes == "Meet at gate"

    def test_capacity_override(self, booking_service, pool_rule, pool_service, sample_client, sample_pets):
        booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:5]))

        with pytest.raises(BookingRejectedError):
            booking_service.create_admin_booking(self.admin_input(pool_service, sample_pets[5:], sample_client))
        booking = booking_service.create_admin_booking(
            self.admin_input(pool_service, sample_pets[5:], sample_client, allow_override=True)
        )

        assert booking.status == "confirmed"

    def test_override_does_not_bypass_missing_rule(self, booking_service, field_rule, sample_service, sample_client, sample_pets):
        data = self.admin_input(sample_service, sample_pets[:1], sample_client, allow_override=True)
        data.start_time = london(THURSDAY, 10)
        data.end_time = london(THURSDAY, 11)

        with pytest.raises(BookingRejectedError) as exc_info:
            booking_service.create_admin_booking(data)

        assert exc_info.value.reason is RejectionReason.NO_MATCHING_RULE

    def test_client_required(self, booking_service, sample_service):
        data = AdminBookingInput(
            service_id=sample_service.id,
            start_time=london(WEDNESDAY, 10),
            end_time=london(WEDNESDAY, 11),
            pet_ids=[uuid.uuid4()],
        )

        with pytest.raises(BookingValidationError, match="client_id"):
            booking_service.create_admin_booking(data)

    def test_unknown_client(self, booking_service, sample_service):
        data = AdminBookingInput(
            service_id=sample_service.id,
            start_time=london(WEDNESDAY, 10),
            end_time=london(WEDNESDAY, 11),
            pet_ids=[uuid.uuid4()],
            client_id=uuid.uuid4(),
        )

        with pytest.raises(NotFoundError):
            booking_service.create_admin_booking(data)


class TestBatchBookings:
    def test_failed_item_does_not_undo_others(self, db_session, booking_service, field_rule, sample_service, sample_pets):
        items = [
            booking_input(sample_service, sample_pets[:2]),
            booking_input(sample_service, sample_pets[:2], day=SUNDAY),
            booking_input(sample_service, sample_pets[2:4], start=13, end=14),
        ]

        result = booking_service.create_client_bookings(CLIENT_USER, items)

        assert result.any_created
        assert len(result.created) == 2
        assert [f.index for f in result.failed] == [1]
        assert result.failed[0].error.reason is RejectionReason.NO_MATCHING_RULE
        assert count_bookings(db_session) == 2

    def test_all_failed(self, booking_service, field_rule, sample_service, sample_pets):
        result = booking_service.create_client_bookings(
            CLIENT_USER, [booking_input(sample_service, sample_pets[:1], day=SUNDAY)]
        )

        assert not result.any_created


class TestPersistence:
    def test_failed_commit_rolls_back(self, db_session, booking_service, field_rule, sample_service, sample_pets, monkeypatch):
        def failing_commit():
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(BookingPersistenceError) as exc_info:
            booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:1]))

        monkeypatch.undo()
        assert exc_info.value.retryable is True
        assert count_bookings(db_session) == 0
        assert db_session.scalar(select(func.count(BookingPet.id))) == 0


class TestManagement:
    def test_list_filters(self, booking_service, pool_rule, field_rule, pool_service, sample_service, sample_client, sample_staff, sample_pets):
        pool_booking = booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:1]))
        field_booking = booking_service.create_client_booking(
            CLIENT_USER, booking_input(sample_service, sample_pets[:1], start=13, end=14)
        )

        by_staff = booking_service.list_bookings(assigned_staff_id=sample_staff.id)
        by_client = booking_service.list_bookings(client_id=sample_client.id)
        nobody = booking_service.list_bookings(client_id=uuid.uuid4())

        assert [b.id for b in by_staff] == [pool_booking.id]
        assert [b.id for b in by_client] == [field_booking.id, pool_booking.id]
        assert nobody == []

    def test_update_status_and_payment(self, booking_service, field_rule, sample_service, sample_pets):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:1]))

        updated = booking_service.update_booking_status(booking.id, status="completed", is_paid=True)

        assert updated.status == "completed"
        assert updated.is_paid is True

    def test_invalid_status(self, booking_service):
        with pytest.raises(BookingValidationError, match="Invalid status"):
            booking_service.update_booking_status(uuid.uuid4(), status="pending")

    def test_nothing_to_update(self, booking_service):
        with pytest.raises(BookingValidationError):
            booking_service.update_booking_status(uuid.uuid4())

    def test_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundError):
            booking_service.update_booking_status(uuid.uuid4(), status="cancelled")


class TestBookingEdits:
    def test_move_does_not_count_own_pets(self, booking_service, pool_rule, pool_service, sample_pets):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:5]))

        moved = booking_service.update_booking(
            booking.id,
            {"start_time": london(WEDNESDAY, 10, 30), "end_time": london(WEDNESDAY, 11, 30)},
        )

        assert ensure_utc(moved.start_time) == london(WEDNESDAY, 10, 30)
        assert ensure_utc(moved.end_time) == london(WEDNESDAY, 11, 30)
        assert moved.status == "confirmed"
        assert moved.pet_count == 5

    def test_move_into_full_window_rejected(self, booking_service, pool_rule, pool_service, sample_pets):
        booking_service.create_client_booking(CLIENT_USER, booking_input(pool_service, sample_pets[:4]))
        later = booking_service.create_client_booking(
            CLIENT_USER, booking_input(pool_service, sample_pets[4:6], start=13, end=14)
        )

        with pytest.raises(BookingRejectedError) as exc_info:
            booking_service.update_booking(
                later.id,
                {"start_time": london(WEDNESDAY, 10), "end_time": london(WEDNESDAY, 11)},
            )

        assert exc_info.value.reason is RejectionReason.POOL_EXHAUSTED
        assert ensure_utc(later.start_time) == london(WEDNESDAY, 13)
        assert later.status == "confirmed"

    def test_move_outside_rules_rejected(self, booking_service, field_rule, sample_service, sample_pets):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:1]))

        with pytest.raises(BookingRejectedError) as exc_info:
            booking_service.update_booking(
                booking.id,
                {"start_time": london(SUNDAY, 10), "end_time": london(SUNDAY, 11)},
            )

        assert exc_info.value.reason is RejectionReason.NO_MATCHING_RULE
        assert ensure_utc(booking.start_time) == london(WEDNESDAY, 10)

    def test_move_to_another_rule_day(self, booking_service, field_rule, sample_service, sample_pets):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:2]))

        moved = booking_service.update_booking(
            booking.id,
            {"start_time": london(FRIDAY, 14), "end_time": london(FRIDAY, 15), "is_paid": True},
        )

        assert ensure_utc(moved.start_time) == london(FRIDAY, 14)
        assert moved.booking_field_ids == field_rule.field_ids
        assert moved.is_paid is True

    def test_cancelling_move_skips_rules(self, booking_service, field_rule, sample_service, sample_pets):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:1]))

        moved = booking_service.update_booking(
            booking.id,
            {"status": "cancelled", "start_time": london(SUNDAY, 10), "end_time": london(SUNDAY, 11)},
        )

        assert moved.status == "cancelled"
        assert ensure_utc(moved.start_time) == london(SUNDAY, 10)

    def test_notes_only(self, booking_service, field_rule, sample_service, sample_pets):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:1]))

        updated = booking_service.update_booking(booking.id, {"assignment_notes": "Back gate"})

        assert updated.assignment_notes == "Back gate"
        assert ensure_utc(updated.start_time) == london(WEDNESDAY, 10)

    @pytest.mark.parametrize(
        "updates,message",
        [
            ({}, "No fields"),
            ({"colour": "red"}, "Unknown booking fields"),
            ({"status": "pending"}, "Invalid status"),
        ],
    )
    def test_invalid_edits(self, booking_service, updates, message):
        with pytest.raises(BookingValidationError, match=message):
            booking_service.update_booking(uuid.uuid4(), updates)

    def test_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundError):
            booking_service.update_booking(uuid.uuid4(), {"is_paid": True})


class TestDeleteAndClientListing:
    def test_delete_removes_links(self, db_session, booking_service, field_rule, sample_service, sample_pets):
        booking = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:3]))

        booking_service.delete_booking(booking.id)

        assert count_bookings(db_session) == 0
        assert db_session.scalar(select(func.count(BookingPet.id))) == 0

    def test_delete_unknown(self, booking_service):
        with pytest.raises(NotFoundError):
            booking_service.delete_booking(uuid.uuid4())

    def test_client_bookings_newest_first(self, booking_service, field_rule, sample_service, sample_pets, other_client_pet):
        early = booking_service.create_client_booking(CLIENT_USER, booking_input(sample_service, sample_pets[:1]))
        late = booking_service.create_client_booking(
            CLIENT_USER, booking_input(sample_service, sample_pets[:1], day=FRIDAY)
        )

        listed = booking_service.list_client_bookings(CLIENT_USER)

        assert [b.id for b in listed] == [late.id, early.id]
        assert booking_service.list_client_bookings("client-user-2") == []

    def test_client_bookings_unknown_user(self, booking_service):
        with pytest.raises(NotFoundError):
            booking_service.list_client_bookings("nobody")
