"""Client API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from agency_erp.api.dependencies import Caller, ServicesDep
from agency_erp.api.schemas import (
    ClientCreate,
    ClientResponse,
    ClientUpdate,
    CommunicationCreate,
    CommunicationResponse,
    ErrorResponse,
)

router = APIRouter(prefix="/clients", tags=["clients"])

_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@router.get("", response_model=list[ClientResponse], responses=_ERRORS)
async def list_clients(services: ServicesDep, caller: Caller) -> list[ClientResponse]:
    clients = await services.clients.list_clients(caller)
    return [ClientResponse.model_validate(c) for c in clients]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED, responses=_ERRORS)
async def create_client(services: ServicesDep, caller: Caller, payload: ClientCreate) -> ClientResponse:
    client = await services.clients.create(caller, payload.model_dump(exclude_none=True))
    return ClientResponse.model_validate(client)


@router.get("/{client_id}", response_model=ClientResponse, responses=_ERRORS)
async def get_client(
    services: ServicesDep,
    caller: Caller,
    client_id: Annotated[UUID, Path()],
) -> ClientResponse:
    return ClientResponse.model_validate(await services.clients.get_for(caller, client_id))


@router.patch("/{client_id}", response_model=ClientResponse, responses=_ERRORS)
async def update_client(
    services: ServicesDep,
    caller: Caller,
    client_id: Annotated[UUID, Path()],
    payload: ClientUpdate,
) -> ClientResponse:
    client = await services.clients.update(caller, client_id, payload.model_dump(exclude_unset=True))
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS)
async def delete_client(
    services: ServicesDep,
    caller: Caller,
    client_id: Annotated[UUID, Path()],
) -> None:
    """Delete a client with its communications; refused while projects exist."""
    await services.clients.delete(caller, client_id)


# ============================================================================
# Communication history
# ============================================================================


@router.get("/{client_id}/communications", response_model=list[CommunicationResponse], responses=_ERRORS)
async def list_communications(
    services: ServicesDep,
    caller: Caller,
    client_id: Annotated[UUID, Path()],
) -> list[CommunicationResponse]:
    notes = await services.clients.communications(caller, client_id)
    return [CommunicationResponse.model_validate(n) for n in notes]


@router.post(
    "/{client_id}/communications",
    response_model=CommunicationResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def add_communication(
    services: ServicesDep,
    caller: Caller,
    client_id: Annotated[UUID, Path()],
    payload: CommunicationCreate,
) -> CommunicationResponse:
    note = await services.clients.add_communication(
        caller, client_id, payload.notes, subject=payload.subject, follow_up_date=payload.follow_up_date
    )
    return CommunicationResponse.model_validate(note)
