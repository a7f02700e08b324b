"""
Client and pet administration.

Clients manage their own pets; new pets start unconfirmed and can only be
booked through self-service once staff confirm them. Staff assign each
client the staff member whose vehicle collects their pets.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.models.clients import Client, Pet
from src.models.staff import Staff
from src.services.exceptions import BookingValidationError, NotFoundError
from src.services.transactions import commit_or_rollback

logger = logging.getLogger(__name__)

CLIENT_FIELDS = frozenset({"email", "first_name", "last_name", "default_staff_id"})
PET_FIELDS = frozenset({"name", "breed", "size"})


def _check_fields(updates: dict, allowed: frozenset, label: str) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise BookingValidationError(f"Unknown {label} fields: {', '.join(sorted(unknown))}")
    if not updates:
        raise BookingValidationError("No fields to update")


def _clean_pet(data: dict) -> dict:
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise BookingValidationError("Pet name is required")
        data = {**data, "name": name}
    return data


# =============================================================================
# Clients
# =============================================================================


def get_client(session: Session, client_id: UUID) -> Client:
    client = session.get(Client, client_id)
    if client is None or client.is_deleted:
        raise NotFoundError(f"Client {client_id} not found")
    return client


def get_client_for_user(session: Session, user_id: str) -> Client:
    """
    Find the client profile of an identity provider user.

    Raises:
        NotFoundError: If the user has no client profile
    """
    stmt = select(Client).where(Client.user_id == user_id, Client.deleted_at.is_(None))
    client = session.scalars(stmt).first()
    if client is None:
        raise NotFoundError(f"No client profile for user {user_id}")
    return client


def list_clients(session: Session, default_staff_id: Optional[UUID] = None) -> list[Client]:
    stmt = (
        select(Client)
        .where(Client.deleted_at.is_(None))
        .order_by(Client.last_name, Client.first_name)
    )
    if default_staff_id is not None:
        stmt = stmt.where(Client.default_staff_id == default_staff_id)
    return list(session.scalars(stmt).all())


def update_client(session: Session, client_id: UUID, updates: dict) -> Client:
    """
    Update a client's details or staff assignment.

    A null default_staff_id unassigns the client.

    Raises:
        NotFoundError: If the client or the assigned staff member does not exist
        BookingValidationError: If nothing is updated
    """
    client = get_client(session, client_id)
    _check_fields(updates, CLIENT_FIELDS, "client")

    staff_id = updates.get("default_staff_id")
    if staff_id is not None:
        staff = session.get(Staff, staff_id)
        if staff is None or staff.is_deleted:
            raise NotFoundError(f"Staff member {staff_id} not found")

    for key, value in updates.items():
        setattr(client, key, value)

    commit_or_rollback(session, "update client")
    logger.info(f"Updated client {client.id}: {', '.join(sorted(updates))}")
    return client


# =============================================================================
# Pets
# =============================================================================


def list_pets(session: Session, client_id: UUID) -> list[Pet]:
    stmt = (
        select(Pet)
        .where(Pet.client_id == client_id, Pet.deleted_at.is_(None))
        .order_by(Pet.name)
    )
    return list(session.scalars(stmt).all())


def create_pet(session: Session, client_id: UUID, data: dict) -> Pet:
    """
    Register a pet for a client.

    The pet starts unconfirmed whoever registers it.

    Raises:
        NotFoundError: If the client does not exist
        BookingValidationError: If the name is blank or fields are unknown
    """
    client = get_client(session, client_id)
    unknown = set(data) - PET_FIELDS
    if unknown:
        raise BookingValidationError(f"Unknown pet fields: {', '.join(sorted(unknown))}")
    data = _clean_pet({"name": None, **data})

    pet = Pet(
        client_id=client.id,
        name=data["name"],
        breed=data.get("breed"),
        size=data.get("size"),
        is_confirmed=False,
    )
    session.add(pet)
    commit_or_rollback(session, "create pet")
    logger.info(f"Registered pet {pet.id} for client {client.id}")
    return pet


def _get_pet(session: Session, pet_id: UUID, client_id: Optional[UUID] = None) -> Pet:
    pet = session.get(Pet, pet_id)
    if pet is None or pet.is_deleted or (client_id is not None and pet.client_id != client_id):
        raise NotFoundError(f"Pet {pet_id} not found")
    return pet


def update_pet(session: Session, pet_id: UUID, updates: dict, client_id: Optional[UUID] = None) -> Pet:
    """
    Update a pet's details.

    Args:
        session: Database session
        pet_id: Pet to update
        updates: Any of PET_FIELDS
        client_id: Owner the pet must belong to (client self-service)

    Raises:
        NotFoundError: If the pet does not exist or belongs to someone else
        BookingValidationError: If nothing is updated or the name is blank
    """
    pet = _get_pet(session, pet_id, client_id)
    _check_fields(updates, PET_FIELDS, "pet")
    updates = _clean_pet(updates)

    for key, value in updates.items():
        setattr(pet, key, value)

    commit_or_rollback(session, "update pet")
    logger.info(f"Updated pet {pet.id}: {', '.join(sorted(updates))}")
    return pet


def set_pet_confirmation(session: Session, pet_id: UUID, is_confirmed: bool) -> Pet:
    """Confirm or unconfirm a pet for self-service booking."""
    pet = _get_pet(session, pet_id)
    pet.is_confirmed = is_confirmed
    commit_or_rollback(session, "confirm pet")
    logger.info(f"Pet {pet.id} confirmation set to {is_confirmed}")
    return pet


def delete_pet(session: Session, pet_id: UUID, client_id: Optional[UUID] = None) -> Pet:
    """
    Soft-delete a pet; existing bookings keep their pet links.

    Raises:
        NotFoundError: If the pet does not exist or belongs to someone else
    """
    pet = _get_pet(session, pet_id, client_id)
    pet.soft_delete()
    commit_or_rollback(session, "delete pet")
    logger.info(f"Deleted pet {pet_id}")
    return pet
