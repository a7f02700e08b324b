"""
Service catalogue, site and field API routes.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from src.api.dependencies import get_db_session
from src.api.models import (
    CreateFieldRequest,
    CreateServiceRequest,
    CreateSiteRequest,
    ErrorResponse,
    FieldListResponse,
    FieldResponse,
    ServiceListResponse,
    ServiceResponse,
    SiteListResponse,
    SiteResponse,
    UpdateServiceRequest,
)
from src.api.response_builder import (
    build_field_response,
    build_service_response,
    build_site_response,
)
from src.services import catalog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalogue"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# =============================================================================
# Services
# =============================================================================


@router.get(
    "/services",
    response_model=ServiceListResponse,
    summary="List services",
)
def list_services(
    include_inactive: bool = Query(True, description="Include services withdrawn from booking"),
    db: Session = Depends(get_db_session),
) -> ServiceListResponse:
    rows = catalog.list_services(db, include_inactive=include_inactive)
    return ServiceListResponse(services=[build_service_response(s) for s in rows], total=len(rows))


@router.post(
    "/services",
    response_model=ServiceResponse,
    status_code=201,
    summary="Add a service",
    responses=ERROR_RESPONSES,
)
def create_service(
    body: CreateServiceRequest,
    db: Session = Depends(get_db_session),
) -> ServiceResponse:
    """Add a service; returns 409 if the name is taken."""
    service = catalog.create_service(db, body.model_dump(exclude_unset=True))
    return build_service_response(service)


@router.get(
    "/services/{service_id}",
    response_model=ServiceResponse,
    summary="Get a service",
    responses={404: {"model": ErrorResponse}},
)
def get_service(
    service_id: UUID,
    db: Session = Depends(get_db_session),
) -> ServiceResponse:
    return build_service_response(catalog.get_service(db, service_id))


@router.put(
    "/services/{service_id}",
    response_model=ServiceResponse,
    summary="Update a service",
    responses=ERROR_RESPONSES,
)
def update_service(
    service_id: UUID,
    body: UpdateServiceRequest,
    db: Session = Depends(get_db_session),
) -> ServiceResponse:
    """Update the fields sent; an empty body returns 400."""
    service = catalog.update_service(db, service_id, body.model_dump(exclude_unset=True))
    return build_service_response(service)


@router.delete(
    "/services/{service_id}",
    status_code=204,
    summary="Remove a service",
    responses=ERROR_RESPONSES,
)
def delete_service(
    service_id: UUID,
    db: Session = Depends(get_db_session),
) -> Response:
    """Remove a service; returns 409 while availability rules reference it."""
    catalog.delete_service(db, service_id)
    return Response(status_code=204)


# =============================================================================
# Sites and Fields
# =============================================================================


@router.get(
    "/sites",
    response_model=SiteListResponse,
    summary="List sites",
)
def list_sites(db: Session = Depends(get_db_session)) -> SiteListResponse:
    rows = catalog.list_sites(db)
    return SiteListResponse(sites=[build_site_response(s) for s in rows], total=len(rows))


@router.post(
    "/sites",
    response_model=SiteResponse,
    status_code=201,
    summary="Add a site",
    responses={400: {"model": ErrorResponse}},
)
def create_site(
    body: CreateSiteRequest,
    db: Session = Depends(get_db_session),
) -> SiteResponse:
    site = catalog.create_site(db, body.model_dump(exclude_unset=True))
    return build_site_response(site)


@router.get(
    "/fields",
    response_model=FieldListResponse,
    summary="List bookable fields",
)
def list_fields(
    site_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db_session),
) -> FieldListResponse:
    rows = catalog.list_fields(db, site_id=site_id)
    return FieldListResponse(fields=[build_field_response(f) for f in rows], total=len(rows))


@router.post(
    "/sites/{site_id}/fields",
    response_model=FieldResponse,
    status_code=201,
    summary="Add a field to a site",
    responses=ERROR_RESPONSES,
)
def create_field(
    site_id: UUID,
    body: CreateFieldRequest,
    db: Session = Depends(get_db_session),
) -> FieldResponse:
    field = catalog.create_field(db, site_id, body.model_dump(exclude_unset=True))
    return build_field_response(field)


@router.delete(
    "/fields/{field_id}",
    status_code=204,
    summary="Remove a field",
    responses=ERROR_RESPONSES,
)
def delete_field(
    field_id: UUID,
    db: Session = Depends(get_db_session),
) -> Response:
    """Remove a field; returns 409 while an availability rule hands it out."""
    catalog.delete_field(db, field_id)
    return Response(status_code=204)
