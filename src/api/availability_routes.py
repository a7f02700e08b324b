"""
Availability API routes.

Slot listing for clients and staff, plus administration of service and
staff availability rules.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from src.api.dependencies import (
    get_app_settings,
    get_booking_service,
    get_db_session,
    get_resolver,
    get_user_context,
)
from src.api.models import (
    AvailableSlotsResponse,
    CreateRuleRequest,
    CreateStaffAvailabilityRequest,
    ErrorResponse,
    RuleListResponse,
    RuleResponse,
    StaffAvailabilityListResponse,
    StaffAvailabilityResponse,
    UpdateRuleRequest,
    UpdateStaffAvailabilityRequest,
)
from src.api.response_builder import (
    build_rule_response,
    build_slot_response,
    build_staff_availability_response,
)
from src.config import Settings
from src.models.services import Service
from src.services import availability_rules
from src.services.bookings import BookingService
from src.services.exceptions import BookingValidationError, NotFoundError
from src.services.resolver import AvailabilityResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Availability"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# =============================================================================
# Slot Listing
# =============================================================================


@router.get(
    "/available-slots",
    response_model=AvailableSlotsResponse,
    summary="List bookable slots",
    responses=ERROR_RESPONSES,
)
def get_available_slots(
    service_id: UUID = Query(..., description="Service to list"),
    start_date: date = Query(..., description="First date (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Last date (YYYY-MM-DD)"),
    client_id: Optional[UUID] = Query(
        None, description="Client whose assigned staff capacity applies (staff use)"
    ),
    user: dict = Depends(get_user_context),
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    resolver: AvailabilityResolver = Depends(get_resolver),
    bookings: BookingService = Depends(get_booking_service),
) -> AvailableSlotsResponse:
    """
    List slots for a service over a date range.

    Slots without capacity are included with zero_capacity_reason set.
    Clients never see today or earlier; staff and admins do.
    """
    if start_date > end_date:
        raise BookingValidationError("start_date must not be after end_date")
    if (end_date - start_date).days + 1 > settings.max_slot_range_days:
        raise BookingValidationError(
            f"Date range may cover at most {settings.max_slot_range_days} days"
        )

    service = db.get(Service, service_id)
    if service is None or service.is_deleted or not service.active:
        raise NotFoundError(f"Service {service_id} not found")

    pool_id = None
    if client_id is not None:
        pool_id = bookings.get_client(client_id).default_staff_id
    elif user["user_id"]:
        try:
            pool_id = bookings.get_client_for_user(user["user_id"]).default_staff_id
        except NotFoundError:
            pool_id = None

    privileged = settings.is_privileged(user["role"])
    slots = resolver.enumerate_slots(
        service_id,
        start_date,
        end_date,
        resource_pool_id=pool_id,
        privileged=privileged,
    )
    logger.info(
        f"Listed {len(slots)} slots for service {service_id} "
        f"({start_date}..{end_date}, privileged={privileged})"
    )

    return AvailableSlotsResponse(
        service_id=str(service_id),
        start_date=start_date,
        end_date=end_date,
        timezone=settings.business_timezone,
        slots=[build_slot_response(s) for s in slots],
    )


# =============================================================================
# Service Availability Rules
# =============================================================================


@router.get(
    "/service-availability",
    response_model=RuleListResponse,
    summary="List availability rules",
)
def list_service_availability(
    service_id: Optional[UUID] = Query(None),
    field_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db_session),
) -> RuleListResponse:
    rules = availability_rules.list_rules(db, service_id=service_id, field_id=field_id)
    return RuleListResponse(rules=[build_rule_response(r) for r in rules], total=len(rules))


@router.post(
    "/service-availability",
    response_model=RuleResponse,
    status_code=201,
    summary="Create an availability rule",
    responses=ERROR_RESPONSES,
)
def create_service_availability(
    body: CreateRuleRequest,
    db: Session = Depends(get_db_session),
) -> RuleResponse:
    """
    Create an availability rule.

    Returns 409 if the rule is active and overlaps another active rule of
    the same service.
    """
    rule = availability_rules.create_rule(db, body.model_dump())
    return build_rule_response(rule)


@router.patch(
    "/service-availability/{rule_id}",
    response_model=RuleResponse,
    summary="Update an availability rule",
    responses=ERROR_RESPONSES,
)
def update_service_availability(
    rule_id: UUID,
    body: UpdateRuleRequest,
    db: Session = Depends(get_db_session),
) -> RuleResponse:
    rule = availability_rules.update_rule(db, rule_id, body.model_dump(exclude_unset=True))
    return build_rule_response(rule)


@router.delete(
    "/service-availability/{rule_id}",
    response_model=RuleResponse,
    summary="Deactivate an availability rule",
    responses={404: {"model": ErrorResponse}},
)
def delete_service_availability(
    rule_id: UUID,
    db: Session = Depends(get_db_session),
) -> RuleResponse:
    rule = availability_rules.deactivate_rule(db, rule_id)
    return build_rule_response(rule)


# =============================================================================
# Staff Availability
# =============================================================================


@router.get(
    "/staff-availability",
    response_model=StaffAvailabilityListResponse,
    summary="List staff working windows",
)
def list_staff_availability(
    staff_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db_session),
) -> StaffAvailabilityListResponse:
    windows = availability_rules.list_staff_availability(db, staff_id=staff_id)
    return StaffAvailabilityListResponse(
        availability=[build_staff_availability_response(w) for w in windows],
        total=len(windows),
    )


@router.post(
    "/staff-availability",
    response_model=StaffAvailabilityResponse,
    status_code=201,
    summary="Record a staff working window",
    responses=ERROR_RESPONSES,
)
def create_staff_availability(
    body: CreateStaffAvailabilityRequest,
    db: Session = Depends(get_db_session),
) -> StaffAvailabilityResponse:
    window = availability_rules.create_staff_availability(db, body.model_dump())
    return build_staff_availability_response(window)


@router.put(
    "/staff-availability/{window_id}",
    response_model=StaffAvailabilityResponse,
    summary="Update a staff working window",
    responses=ERROR_RESPONSES,
)
def update_staff_availability(
    window_id: UUID,
    body: UpdateStaffAvailabilityRequest,
    db: Session = Depends(get_db_session),
) -> StaffAvailabilityResponse:
    """
    Update the fields sent.

    Setting specific_date clears days_of_week and the reverse; sending both
    returns 400.
    """
    window = availability_rules.update_staff_availability(db, window_id, body.model_dump(exclude_unset=True))
    return build_staff_availability_response(window)


@router.delete(
    "/staff-availability/{window_id}",
    status_code=204,
    summary="Remove a staff working window",
    responses={404: {"model": ErrorResponse}},
)
def delete_staff_availability(
    window_id: UUID,
    db: Session = Depends(get_db_session),
) -> Response:
    availability_rules.delete_staff_availability(db, window_id)
    return Response(status_code=204)
