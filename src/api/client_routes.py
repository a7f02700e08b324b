"""
Client and pet API routes.

Clients manage their own pets through /pets; staff manage clients, their
staff assignment and pet confirmation through /clients and
/pets/{id}/confirmation.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from src.api.dependencies import get_db_session, require_user_id
from src.api.models import (
    ClientListResponse,
    ClientResponse,
    CreatePetRequest,
    ErrorResponse,
    PetConfirmationRequest,
    PetListResponse,
    PetResponse,
    UpdateClientRequest,
    UpdatePetRequest,
)
from src.api.response_builder import build_client_response, build_pet_response
from src.services import clients

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Clients"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def _pet_list(pets) -> PetListResponse:
    return PetListResponse(pets=[build_pet_response(p) for p in pets], total=len(pets))


# =============================================================================
# Clients (staff)
# =============================================================================


@router.get(
    "/clients",
    response_model=ClientListResponse,
    summary="List clients",
)
def list_clients(
    default_staff_id: Optional[UUID] = Query(None, description="Only clients assigned to this staff member"),
    db: Session = Depends(get_db_session),
) -> ClientListResponse:
    rows = clients.list_clients(db, default_staff_id=default_staff_id)
    return ClientListResponse(clients=[build_client_response(c) for c in rows], total=len(rows))


@router.patch(
    "/clients/{client_id}",
    response_model=ClientResponse,
    summary="Update a client or their staff assignment",
    responses=ERROR_RESPONSES,
)
def update_client(
    client_id: UUID,
    body: UpdateClientRequest,
    db: Session = Depends(get_db_session),
) -> ClientResponse:
    """
    Update a client.

    default_staff_id picks the staff member whose vehicle capacity the
    client's staff-capacity bookings use; null unassigns them.
    """
    client = clients.update_client(db, client_id, body.model_dump(exclude_unset=True))
    return build_client_response(client)


@router.get(
    "/clients/{client_id}/pets",
    response_model=PetListResponse,
    summary="List a client's pets",
    responses={404: {"model": ErrorResponse}},
)
def list_client_pets(
    client_id: UUID,
    db: Session = Depends(get_db_session),
) -> PetListResponse:
    client = clients.get_client(db, client_id)
    return _pet_list(clients.list_pets(db, client.id))


@router.post(
    "/clients/{client_id}/pets",
    response_model=PetResponse,
    status_code=201,
    summary="Register a pet for a client",
    responses=ERROR_RESPONSES,
)
def create_client_pet(
    client_id: UUID,
    body: CreatePetRequest,
    db: Session = Depends(get_db_session),
) -> PetResponse:
    pet = clients.create_pet(db, client_id, body.model_dump(exclude_unset=True))
    return build_pet_response(pet)


@router.patch(
    "/pets/{pet_id}/confirmation",
    response_model=PetResponse,
    summary="Confirm a pet for self-service booking",
    responses={404: {"model": ErrorResponse}},
)
def set_pet_confirmation(
    pet_id: UUID,
    body: PetConfirmationRequest,
    db: Session = Depends(get_db_session),
) -> PetResponse:
    pet = clients.set_pet_confirmation(db, pet_id, body.is_confirmed)
    return build_pet_response(pet)


# =============================================================================
# Own pets (client)
# =============================================================================


@router.get(
    "/pets",
    response_model=PetListResponse,
    summary="List the calling client's pets",
    responses={404: {"model": ErrorResponse}},
)
def list_own_pets(
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
) -> PetListResponse:
    client = clients.get_client_for_user(db, user_id)
    return _pet_list(clients.list_pets(db, client.id))


@router.post(
    "/pets",
    response_model=PetResponse,
    status_code=201,
    summary="Register a pet",
    responses=ERROR_RESPONSES,
)
def create_own_pet(
    body: CreatePetRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
) -> PetResponse:
    """Register a pet for the calling client; staff must confirm it before it can be booked."""
    client = clients.get_client_for_user(db, user_id)
    pet = clients.create_pet(db, client.id, body.model_dump(exclude_unset=True))
    return build_pet_response(pet)


@router.put(
    "/pets/{pet_id}",
    response_model=PetResponse,
    summary="Update one of the calling client's pets",
    responses=ERROR_RESPONSES,
)
def update_own_pet(
    pet_id: UUID,
    body: UpdatePetRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
) -> PetResponse:
    client = clients.get_client_for_user(db, user_id)
    pet = clients.update_pet(db, pet_id, body.model_dump(exclude_unset=True), client_id=client.id)
    return build_pet_response(pet)


@router.delete(
    "/pets/{pet_id}",
    status_code=204,
    summary="Remove one of the calling client's pets",
    responses={404: {"model": ErrorResponse}},
)
def delete_own_pet(
    pet_id: UUID,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db_session),
) -> Response:
    client = clients.get_client_for_user(db, user_id)
    clients.delete_pet(db, pet_id, client_id=client.id)
    return Response(status_code=204)
