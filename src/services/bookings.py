"""
Booking service.

All booking creation paths (client self-service, client batch, and
admin-assisted) share one flow:

1. Load and check the client's pets
2. Lock the client's staff row so evaluate-then-commit is serialized per pool
3. Resolve through AvailabilityResolver
4. Write the booking, client link and pet links, committing once

A failed write rolls the whole unit back, so no partial booking survives.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from src.models.bookings import BOOKING_STATUSES, Booking, BookingClient, BookingPet
from src.models.clients import Client, Pet
from src.models.services import Service
from src.models.staff import Staff
from src.services import clients
from src.services.base import BookingRequest, CapacityResolution, ResourceAssignment
from src.services.exceptions import (
    BookingError,
    BookingPersistenceError,
    BookingRejectedError,
    BookingValidationError,
    NotFoundError,
    PetOwnershipError,
)
from src.services.local_time import ensure_utc, to_local
from src.services.resolver import AvailabilityResolver

logger = logging.getLogger(__name__)

BOOKING_UPDATE_FIELDS = frozenset({"start_time", "end_time", "status", "is_paid", "assignment_notes"})


@dataclass
class BookingInput:
    """A requested booking for one service window."""

    service_id: UUID
    start_time: datetime
    end_time: datetime
    pet_ids: list[UUID]


@dataclass
class AdminBookingInput(BookingInput):
    """A booking made by staff on behalf of a client."""

    client_id: Optional[UUID] = None
    allow_override: bool = False
    assignment_notes: Optional[str] = None


@dataclass
class BatchFailure:
    """A batch item that could not be booked."""

    index: int
    error: BookingError


@dataclass
class BatchBookingResult:
    """Outcome of a batch booking; earlier successes stay committed."""

    created: list[Booking] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)

    @property
    def any_created(self) -> bool:
        return bool(self.created)


class BookingService:
    """
    Creates and manages bookings.

    Commits its own transactions: each booking is one unit of work.
    """

    def __init__(self, session: Session, resolver: AvailabilityResolver):
        self.session = session
        self.resolver = resolver

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_client_for_user(self, user_id: str) -> Client:
        """
        Find the client record for an identity provider user.

        Raises:
            NotFoundError: If no client exists for the user
        """
        return clients.get_client_for_user(self.session, user_id)

    def get_client(self, client_id: UUID) -> Client:
        return clients.get_client(self.session, client_id)

    def _get_service(self, service_id: UUID) -> Service:
        service = self.session.get(Service, service_id)
        if service is None or service.is_deleted or not service.active:
            raise NotFoundError(f"Service {service_id} not found")
        return service

    def _load_pets(self, client: Client, pet_ids: Sequence[UUID], require_confirmed: bool) -> list[Pet]:
        if not pet_ids:
            raise BookingValidationError("At least one pet is required")
        if len(set(pet_ids)) != len(pet_ids):
            raise BookingValidationError("Each pet may only be booked once per booking")

        stmt = select(Pet).where(
            Pet.id.in_(list(pet_ids)),
            Pet.deleted_at.is_(None),
        )
        found = {pet.id: pet for pet in self.session.scalars(stmt).all()}

        foreign = [pid for pid in pet_ids if pid not in found or found[pid].client_id != client.id]
        if foreign:
            raise PetOwnershipError(
                f"Pets {', '.join(str(p) for p in foreign)} do not belong to client {client.id}"
            )

        if require_confirmed:
            unconfirmed = [pid for pid in pet_ids if not found[pid].is_confirmed]
            if unconfirmed:
                raise BookingValidationError(
                    f"Pets {', '.join(str(p) for p in unconfirmed)} have not been confirmed by staff"
                )

        return [found[pid] for pid in pet_ids]

    def _lock_pool(self, pool_id: UUID) -> None:
        # FOR UPDATE is a no-op on SQLite, which serializes writers anyway
        stmt = select(Staff.id).where(Staff.id == pool_id).with_for_update()
        self.session.execute(stmt)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_client_booking(self, user_id: str, data: BookingInput) -> Booking:
        """
        Create a self-service booking for the client linked to a user.

        Args:
            user_id: Identity provider user ID of the client
            data: Requested booking

        Returns:
            The committed Booking

        Raises:
            NotFoundError: Unknown client or service
            PetOwnershipError: Pets belonging to someone else
            BookingValidationError: Malformed window or unconfirmed pets
            BookingRejectedError: The resolver rejected the request
            BookingPersistenceError: The write failed and was rolled back
        """
        client = self.get_client_for_user(user_id)
        return self._create(client, data, require_confirmed=True)

    def create_client_bookings(self, user_id: str, items: Sequence[BookingInput]) -> BatchBookingResult:
        """
        Create several self-service bookings, each in its own transaction.

        A failing item is recorded and does not undo items already booked.
        """
        client = self.get_client_for_user(user_id)
        result = BatchBookingResult()
        for index, data in enumerate(items):
            try:
                result.created.append(self._create(client, data, require_confirmed=True))
            except BookingError as e:
                logger.info(f"Batch item {index} for client {client.id} failed: {e.message}")
                result.failed.append(BatchFailure(index=index, error=e))
        logger.info(
            f"Batch for client {client.id}: {len(result.created)} created, {len(result.failed)} failed"
        )
        return result

    def create_admin_booking(self, data: AdminBookingInput) -> Booking:
        """
        Create a booking on behalf of a client.

        Pet confirmation is not required. With allow_override, capacity
        rejections are logged and bypassed; missing rules and configuration
        gaps still reject.
        """
        if data.client_id is None:
            raise BookingValidationError("client_id is required")
        client = self.get_client(data.client_id)
        return self._create(
            client,
            data,
            require_confirmed=False,
            allow_override=data.allow_override,
            assignment_notes=data.assignment_notes,
        )

    def _create(
        self,
        client: Client,
        data: BookingInput,
        require_confirmed: bool,
        allow_override: bool = False,
        assignment_notes: Optional[str] = None,
    ) -> Booking:
        try:
            service = self._get_service(data.service_id)
            pets = self._load_pets(client, data.pet_ids, require_confirmed)

            pool_id = client.default_staff_id
            if pool_id is not None:
                self._lock_pool(pool_id)

            request = BookingRequest(
                service_id=service.id,
                start_instant=data.start_time,
                end_instant=data.end_time,
                pet_ids=tuple(pet.id for pet in pets),
                client_id=client.id,
                client_default_resource_pool_id=pool_id,
            )
            resolution = self.resolver.resolve(request)

            if not resolution.ok:
                reason = resolution.rejection_reason
                if allow_override and reason.is_capacity:
                    logger.warning(
                        f"Admin override for client {client.id} on service {service.id}: {reason.value}"
                    )
                else:
                    raise BookingRejectedError(reason)
        except BookingError:
            # releases the pool lock
            self.session.rollback()
            raise

        return self._persist(service, client, pets, request, resolution, assignment_notes)

    def _persist(
        self,
        service: Service,
        client: Client,
        pets: Sequence[Pet],
        request: BookingRequest,
        resolution: CapacityResolution,
        assignment_notes: Optional[str],
    ) -> Booking:
        assignment = resolution.assigned_resource_pool or ResourceAssignment()
        tz = self.resolver.timezone

        booking = Booking(
            service_id=service.id,
            service_type=service.name,
            start_time=ensure_utc(to_local(request.start_instant, tz)),
            end_time=ensure_utc(to_local(request.end_instant, tz)),
            status="confirmed",
            is_paid=False,
            booking_field_ids=[str(f) for f in assignment.field_ids] or None,
            assigned_staff_id=assignment.resource_pool_id,
            vehicle_id=assignment.vehicle_id,
            assignment_notes=assignment_notes,
        )

        try:
            self.session.add(booking)
            self.session.flush()
            self.session.add(BookingClient(booking_id=booking.id, client_id=client.id))
            self.session.add_all([BookingPet(booking_id=booking.id, pet_id=pet.id) for pet in pets])
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to save booking for client {client.id}: {e}", exc_info=True)
            raise BookingPersistenceError("Failed to save booking", original_error=e) from e

        logger.info(
            f"Created booking {booking.id} for client {client.id}: service {service.id}, "
            f"{booking.start_time.isoformat()}-{booking.end_time.isoformat()}, {len(pets)} pets"
        )
        return booking

    # -------------------------------------------------------------------------
    # Management
    # -------------------------------------------------------------------------

    def list_bookings(
        self,
        assigned_staff_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
    ) -> Sequence[Booking]:
        """
        List bookings, newest window first.

        Args:
            assigned_staff_id: Only bookings assigned to this staff member
            client_id: Only bookings made for this client

        Returns:
            Bookings with client and pet links loaded
        """
        stmt = (
            select(Booking)
            .where(Booking.deleted_at.is_(None))
            .options(selectinload(Booking.clients), selectinload(Booking.pets))
            .order_by(Booking.start_time.desc())
        )
        if assigned_staff_id is not None:
            stmt = stmt.where(Booking.assigned_staff_id == assigned_staff_id)
        if client_id is not None:
            stmt = stmt.join(BookingClient, BookingClient.booking_id == Booking.id).where(
                BookingClient.client_id == client_id
            )
        return self.session.scalars(stmt).all()

    def update_booking_status(
        self,
        booking_id: UUID,
        status: Optional[str] = None,
        is_paid: Optional[bool] = None,
    ) -> Booking:
        """
        Update a booking's status and/or payment flag.

        Raises:
            NotFoundError: If the booking does not exist
            BookingValidationError: If nothing is updated or the status is unknown
        """
        if status is None and is_paid is None:
            raise BookingValidationError("Provide status and/or is_paid")
        if status is not None and status not in BOOKING_STATUSES:
            raise BookingValidationError(
                f"Invalid status '{status}'. Expected one of: {', '.join(BOOKING_STATUSES)}"
            )

        booking = self.session.get(Booking, booking_id)
        if booking is None or booking.is_deleted:
            raise NotFoundError(f"Booking {booking_id} not found")

        if status is not None:
            booking.status = status
        if is_paid is not None:
            booking.is_paid = is_paid

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to update booking {booking_id}: {e}", exc_info=True)
            raise BookingPersistenceError("Failed to update booking", original_error=e) from e

        logger.info(f"Booking {booking_id} updated: status={booking.status}, is_paid={booking.is_paid}")
        return booking

    def list_client_bookings(self, user_id: str) -> Sequence[Booking]:
        """List the bookings of the client linked to a user, newest first."""
        client = self.get_client_for_user(user_id)
        return self.list_bookings(client_id=client.id)

    def _get_booking(self, booking_id: UUID) -> Booking:
        booking = self.session.get(Booking, booking_id)
        if booking is None or booking.is_deleted:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def update_booking(self, booking_id: UUID, updates: dict, allow_override: bool = False) -> Booking:
        """
        Edit a booking.

        Moving a live booking re-resolves the new window with the booking's
        own pets withdrawn from capacity, and takes the new rule's resource
        assignment. The booking keeps its old window if the move is rejected.

        Args:
            booking_id: Booking to edit
            updates: Any of BOOKING_UPDATE_FIELDS
            allow_override: Keep a move that only fails on capacity

        Raises:
            NotFoundError: If the booking does not exist
            BookingValidationError: If nothing is updated or the result is invalid
            BookingRejectedError: If the new window cannot be booked
            BookingPersistenceError: The write failed and was rolled back
        """
        unknown = set(updates) - BOOKING_UPDATE_FIELDS
        if unknown:
            raise BookingValidationError(f"Unknown booking fields: {', '.join(sorted(unknown))}")
        if not updates:
            raise BookingValidationError("No fields to update")
        status = updates.get("status")
        if status is not None and status not in BOOKING_STATUSES:
            raise BookingValidationError(
                f"Invalid status '{status}'. Expected one of: {', '.join(BOOKING_STATUSES)}"
            )

        booking = self._get_booking(booking_id)
        new_status = status or booking.status
        moved = updates.get("start_time") is not None or updates.get("end_time") is not None

        try:
            if moved and new_status != "cancelled":
                self._move(booking, updates, allow_override)
            elif moved:
                start = updates.get("start_time") or ensure_utc(booking.start_time)
                end = updates.get("end_time") or ensure_utc(booking.end_time)
                self.resolver.normalize(start, end)
                tz = self.resolver.timezone
                booking.start_time = ensure_utc(to_local(start, tz))
                booking.end_time = ensure_utc(to_local(end, tz))
        except BookingError:
            self.session.rollback()
            raise

        if status is not None:
            booking.status = status
        if updates.get("is_paid") is not None:
            booking.is_paid = updates["is_paid"]
        if "assignment_notes" in updates:
            booking.assignment_notes = updates["assignment_notes"]

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to update booking {booking_id}: {e}", exc_info=True)
            raise BookingPersistenceError("Failed to update booking", original_error=e) from e

        logger.info(
            f"Booking {booking_id} edited: {', '.join(sorted(updates))} "
            f"({booking.start_time.isoformat()}-{booking.end_time.isoformat()}, status={booking.status})"
        )
        return booking

    def _move(self, booking: Booking, updates: dict, allow_override: bool) -> None:
        start = updates.get("start_time") or ensure_utc(booking.start_time)
        end = updates.get("end_time") or ensure_utc(booking.end_time)
        client_link = booking.clients[0] if booking.clients else None
        client = self.get_client(client_link.client_id) if client_link else None
        pool_id = client.default_staff_id if client else None

        # the booking must not count against its own new window
        previous_status = booking.status
        booking.status = "cancelled"
        self.session.flush()
        if pool_id is not None:
            self._lock_pool(pool_id)

        request = BookingRequest(
            service_id=booking.service_id,
            start_instant=start,
            end_instant=end,
            pet_ids=tuple(link.pet_id for link in booking.pets),
            client_id=client.id if client else None,
            client_default_resource_pool_id=pool_id,
        )
        resolution = self.resolver.resolve(request)
        if not resolution.ok:
            reason = resolution.rejection_reason
            if allow_override and reason.is_capacity:
                logger.warning(f"Admin override moving booking {booking.id}: {reason.value}")
            else:
                raise BookingRejectedError(reason)

        assignment = resolution.assigned_resource_pool or ResourceAssignment()
        tz = self.resolver.timezone
        booking.status = previous_status
        booking.start_time = ensure_utc(to_local(request.start_instant, tz))
        booking.end_time = ensure_utc(to_local(request.end_instant, tz))
        booking.booking_field_ids = [str(f) for f in assignment.field_ids] or None
        booking.assigned_staff_id = assignment.resource_pool_id
        booking.vehicle_id = assignment.vehicle_id

    def delete_booking(self, booking_id: UUID) -> None:
        """
        Permanently delete a booking with its client and pet links.

        Raises:
            NotFoundError: If the booking does not exist
        """
        booking = self._get_booking(booking_id)
        self.session.delete(booking)
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to delete booking {booking_id}: {e}", exc_info=True)
            raise BookingPersistenceError("Failed to delete booking", original_error=e) from e
        logger.info(f"Deleted booking {booking_id}")
