"""
Administration of the service catalogue, sites and fields.

Services carry the default per-pet price; fields are the bookable areas
that field-based availability rules hand out.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from src.models.availability import ServiceAvailability
from src.models.services import Field, Service, Site
from src.services.exceptions import BookingValidationError, ConflictError, NotFoundError
from src.services.transactions import commit_or_rollback

logger = logging.getLogger(__name__)

SERVICE_FIELDS = frozenset({
    "name",
    "description",
    "service_type",
    "default_price",
    "requires_field_selection",
    "active",
})


def _clean_name(name: Optional[str], label: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise BookingValidationError(f"{label} name is required")
    return cleaned


# =============================================================================
# Services
# =============================================================================


def get_service(session: Session, service_id: UUID) -> Service:
    service = session.get(Service, service_id)
    if service is None or service.is_deleted:
        raise NotFoundError(f"Service {service_id} not found")
    return service


def list_services(session: Session, include_inactive: bool = True) -> list[Service]:
    """List services ordered by name."""
    stmt = select(Service).where(Service.deleted_at.is_(None)).order_by(Service.name)
    if not include_inactive:
        stmt = stmt.where(Service.active.is_(True))
    return list(session.scalars(stmt).all())


def _check_name_free(session: Session, name: str, exclude_id: Optional[UUID] = None) -> None:
    stmt = select(Service.id).where(
        func.lower(Service.name) == name.lower(),
        Service.deleted_at.is_(None),
    )
    if exclude_id is not None:
        stmt = stmt.where(Service.id != exclude_id)
    if session.scalars(stmt).first() is not None:
        raise ConflictError(f"A service named '{name}' already exists")


def create_service(session: Session, data: dict) -> Service:
    """
    Add a service to the catalogue.

    Args:
        session: Database session
        data: name plus any of SERVICE_FIELDS

    Returns:
        The committed Service

    Raises:
        BookingValidationError: If the name is blank
        ConflictError: If the name is already taken
    """
    unknown = set(data) - SERVICE_FIELDS
    if unknown:
        raise BookingValidationError(f"Unknown service fields: {', '.join(sorted(unknown))}")

    name = _clean_name(data.get("name"), "Service")
    _check_name_free(session, name)

    service = Service(
        name=name,
        description=data.get("description"),
        service_type=data.get("service_type") or "field_hire",
        default_price=data.get("default_price"),
        requires_field_selection=data.get("requires_field_selection", False),
        active=data.get("active", True),
    )
    session.add(service)
    commit_or_rollback(session, "create service")
    logger.info(f"Created service {service.id} ({service.name})")
    return service


def update_service(session: Session, service_id: UUID, updates: dict) -> Service:
    """
    Update a service.

    Raises:
        NotFoundError: If the service does not exist
        BookingValidationError: If nothing is updated or the name is blank
        ConflictError: If the new name is already taken
    """
    service = get_service(session, service_id)

    unknown = set(updates) - SERVICE_FIELDS
    if unknown:
        raise BookingValidationError(f"Unknown service fields: {', '.join(sorted(unknown))}")
    if not updates:
        raise BookingValidationError("No fields to update")

    if "name" in updates:
        updates = {**updates, "name": _clean_name(updates["name"], "Service")}
        _check_name_free(session, updates["name"], exclude_id=service.id)

    for key, value in updates.items():
        setattr(service, key, value)

    commit_or_rollback(session, "update service")
    logger.info(f"Updated service {service.id}: {', '.join(sorted(updates))}")
    return service


def delete_service(session: Session, service_id: UUID) -> Service:
    """
    Soft-delete a service.

    Raises:
        NotFoundError: If the service does not exist
        ConflictError: If availability rules still reference it
    """
    service = get_service(session, service_id)

    stmt = select(func.count(ServiceAvailability.id)).where(
        ServiceAvailability.service_id == service.id,
        ServiceAvailability.deleted_at.is_(None),
    )
    rule_count = session.scalar(stmt) or 0
    if rule_count:
        raise ConflictError(
            f"Service {service_id} still has {rule_count} availability rules; remove them first"
        )

    service.active = False
    service.soft_delete()
    commit_or_rollback(session, "delete service")
    logger.info(f"Deleted service {service_id}")
    return service


# =============================================================================
# Sites and fields
# =============================================================================


def list_sites(session: Session) -> list[Site]:
    stmt = select(Site).where(Site.deleted_at.is_(None)).order_by(Site.name)
    return list(session.scalars(stmt).all())


def create_site(session: Session, data: dict) -> Site:
    """
    Add a site.

    Raises:
        BookingValidationError: If the name is blank
    """
    site = Site(
        name=_clean_name(data.get("name"), "Site"),
        address=data.get("address"),
        is_active=data.get("is_active", True),
    )
    session.add(site)
    commit_or_rollback(session, "create site")
    logger.info(f"Created site {site.id} ({site.name})")
    return site


def list_fields(session: Session, site_id: Optional[UUID] = None) -> list[Field]:
    stmt = select(Field).where(Field.deleted_at.is_(None)).order_by(Field.name)
    if site_id is not None:
        stmt = stmt.where(Field.site_id == site_id)
    return list(session.scalars(stmt).all())


def create_field(session: Session, site_id: UUID, data: dict) -> Field:
    """
    Add a bookable field to a site.

    Raises:
        NotFoundError: If the site does not exist
        BookingValidationError: If the name is blank
    """
    site = session.get(Site, site_id)
    if site is None or site.is_deleted:
        raise NotFoundError(f"Site {site_id} not found")

    field = Field(
        site_id=site.id,
        name=_clean_name(data.get("name"), "Field"),
        field_type=data.get("field_type"),
    )
    session.add(field)
    commit_or_rollback(session, "create field")
    logger.info(f"Created field {field.id} at site {site.id}")
    return field


def delete_field(session: Session, field_id: UUID) -> Field:
    """
    Soft-delete a field.

    Raises:
        NotFoundError: If the field does not exist
        ConflictError: If an availability rule still hands it out
    """
    field = session.get(Field, field_id)
    if field is None or field.is_deleted:
        raise NotFoundError(f"Field {field_id} not found")

    stmt = select(ServiceAvailability).where(ServiceAvailability.deleted_at.is_(None))
    # JSON containment differs between SQLite and PostgreSQL
    if any(str(field.id) in (row.field_ids or []) for row in session.scalars(stmt).all()):
        raise ConflictError(f"Field {field_id} is used by availability rules; remove it from them first")

    field.soft_delete()
    commit_or_rollback(session, "delete field")
    logger.info(f"Deleted field {field_id}")
    return field
