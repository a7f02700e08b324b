"""
Booking API routes.

Client self-service, batch and admin-assisted booking creation, plus booking
listing, editing and deletion. All creation paths go through BookingService.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from src.api.dependencies import get_booking_service, require_user_id
from src.api.models import (
    AdminBookingRequest,
    BatchBookingRequest,
    BatchBookingResponse,
    BookingListResponse,
    BookingRequestBody,
    BookingResponse,
    ErrorResponse,
    UpdateBookingRequest,
    UpdateBookingStatusRequest,
)
from src.api.response_builder import build_batch_response, build_booking_response
from src.services.bookings import AdminBookingInput, BookingInput, BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def _to_input(body: BookingRequestBody) -> BookingInput:
    return BookingInput(
        service_id=body.service_id,
        start_time=body.start_time,
        end_time=body.end_time,
        pet_ids=list(body.pet_ids),
    )


# =============================================================================
# Creation
# =============================================================================


@router.post(
    "/client-booking",
    response_model=BookingResponse,
    status_code=201,
    summary="Book a service for the calling client",
    responses=ERROR_RESPONSES,
)
def create_client_booking(
    body: BookingRequestBody,
    user_id: str = Depends(require_user_id),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Create a self-service booking.

    Pets must belong to the caller and be confirmed by staff.
    Capacity rejections return 409; missing rules or configuration
    gaps return 422.
    """
    booking = service.create_client_booking(user_id, _to_input(body))
    return build_booking_response(booking)


@router.post(
    "/client-booking/batch",
    response_model=BatchBookingResponse,
    summary="Book several windows at once",
    responses={409: {"model": BatchBookingResponse}},
)
def create_client_bookings(
    body: BatchBookingRequest,
    user_id: str = Depends(require_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """
    Create several self-service bookings.

    Each item is booked in its own transaction. Returns 201 when at least
    one booking was created and 409 when none were.
    """
    result = service.create_client_bookings(user_id, [_to_input(b) for b in body.bookings])
    response = build_batch_response(result)
    return JSONResponse(
        status_code=201 if result.any_created else 409,
        content=response.model_dump(mode="json"),
    )


@router.post(
    "/admin-booking",
    response_model=BookingResponse,
    status_code=201,
    summary="Book on behalf of a client",
    responses=ERROR_RESPONSES,
)
def create_admin_booking(
    body: AdminBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Create a booking for a client as staff.

    Skips the pet confirmation check. allow_override books through
    capacity and staff schedule rejections.
    """
    data = AdminBookingInput(
        service_id=body.service_id,
        start_time=body.start_time,
        end_time=body.end_time,
        pet_ids=list(body.pet_ids),
        client_id=body.client_id,
        allow_override=body.allow_override,
        assignment_notes=body.assignment_notes,
    )
    booking = service.create_admin_booking(data)
    return build_booking_response(booking)


# =============================================================================
# Management
# =============================================================================


@router.get(
    "/bookings",
    response_model=BookingListResponse,
    summary="List bookings",
)
def list_bookings(
    assigned_staff_id: Optional[UUID] = Query(None, description="Filter by assigned staff member"),
    client_id: Optional[UUID] = Query(None, description="Filter by client"),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = service.list_bookings(assigned_staff_id=assigned_staff_id, client_id=client_id)
    return BookingListResponse(
        bookings=[build_booking_response(b) for b in bookings],
        total=len(bookings),
    )


@router.get(
    "/my-bookings",
    response_model=BookingListResponse,
    summary="List the calling client's bookings",
    responses={404: {"model": ErrorResponse}},
)
def list_my_bookings(
    user_id: str = Depends(require_user_id),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = service.list_client_bookings(user_id)
    return BookingListResponse(
        bookings=[build_booking_response(b) for b in bookings],
        total=len(bookings),
    )


@router.put(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    summary="Edit a booking",
    responses=ERROR_RESPONSES,
)
def update_booking(
    booking_id: UUID,
    body: UpdateBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Edit a booking's window, status, payment or notes.

    A moved booking that is not cancelled is re-checked against the rules
    and capacity, without counting its own pets. Rejected moves leave the
    booking unchanged.
    """
    updates = body.model_dump(exclude_unset=True, exclude={"allow_override"})
    booking = service.update_booking(booking_id, updates, allow_override=body.allow_override)
    return build_booking_response(booking)


@router.delete(
    "/bookings/{booking_id}",
    status_code=204,
    summary="Delete a booking",
    responses={404: {"model": ErrorResponse}},
)
def delete_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> Response:
    """Permanently delete a booking and its client and pet links."""
    service.delete_booking(booking_id)
    return Response(status_code=204)


@router.patch(
    "/bookings/{booking_id}/status",
    response_model=BookingResponse,
    summary="Update booking status or payment",
    responses=ERROR_RESPONSES,
)
def update_booking_status(
    booking_id: UUID,
    body: UpdateBookingStatusRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = service.update_booking_status(booking_id, status=body.status, is_paid=body.is_paid)
    return build_booking_response(booking)
