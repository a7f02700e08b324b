"""
Staff and vehicle API routes.

A staff member's default vehicle is the capacity of their resource pool.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from src.api.dependencies import get_db_session
from src.api.models import (
    CreateVehicleRequest,
    ErrorResponse,
    StaffAssignmentRequest,
    StaffListResponse,
    StaffResponse,
    VehicleListResponse,
    VehicleResponse,
)
from src.api.response_builder import build_staff_response, build_vehicle_response
from src.services import staffing

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Staff"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# =============================================================================
# Staff
# =============================================================================


@router.get(
    "/staff",
    response_model=StaffListResponse,
    summary="List staff members",
)
def list_staff(db: Session = Depends(get_db_session)) -> StaffListResponse:
    rows = staffing.list_staff(db)
    return StaffListResponse(staff=[build_staff_response(s) for s in rows], total=len(rows))


@router.patch(
    "/staff/assignment",
    response_model=StaffResponse,
    summary="Assign a staff member's default vehicle",
    responses=ERROR_RESPONSES,
)
def assign_vehicle(
    body: StaffAssignmentRequest,
    db: Session = Depends(get_db_session),
) -> StaffResponse:
    """
    Set or clear a staff member's default vehicle.

    Returns 400 if the vehicle does not exist.
    """
    staff = staffing.assign_vehicle(db, body.staff_id, body.default_vehicle_id)
    return build_staff_response(staff)


# =============================================================================
# Vehicles
# =============================================================================


@router.get(
    "/vehicles",
    response_model=VehicleListResponse,
    summary="List vehicles",
)
def list_vehicles(db: Session = Depends(get_db_session)) -> VehicleListResponse:
    rows = staffing.list_vehicles(db)
    return VehicleListResponse(vehicles=[build_vehicle_response(v) for v in rows], total=len(rows))


@router.post(
    "/vehicles",
    response_model=VehicleResponse,
    status_code=201,
    summary="Register a vehicle",
    responses={400: {"model": ErrorResponse}},
)
def create_vehicle(
    body: CreateVehicleRequest,
    db: Session = Depends(get_db_session),
) -> VehicleResponse:
    vehicle = staffing.create_vehicle(db, body.model_dump(exclude_unset=True))
    return build_vehicle_response(vehicle)


@router.delete(
    "/vehicles/{vehicle_id}",
    status_code=204,
    summary="Remove a vehicle",
    responses=ERROR_RESPONSES,
)
def delete_vehicle(
    vehicle_id: UUID,
    db: Session = Depends(get_db_session),
) -> Response:
    """Remove a vehicle; returns 409 while it is still a staff member's default."""
    staffing.delete_vehicle(db, vehicle_id)
    return Response(status_code=204)
