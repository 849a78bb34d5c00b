"""Lead API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from agency_erp.api.dependencies import Caller, ServicesDep
from agency_erp.api.schemas import (
    ClientResponse,
    ErrorResponse,
    LeadConversionResponse,
    LeadConvertRequest,
    LeadCreate,
    LeadResponse,
    LeadUpdate,
    ProjectResponse,
)

router = APIRouter(prefix="/leads", tags=["leads"])

_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get("", response_model=list[LeadResponse], responses=_ERRORS)
async def list_leads(
    services: ServicesDep,
    caller: Caller,
    lead_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[LeadResponse]:
    leads = await services.leads.list_leads(caller, lead_status)
    return [LeadResponse.model_validate(lead) for lead in leads]


@router.post("", response_model=LeadResponse, status_code=status.HTTP_201_CREATED, responses=_ERRORS)
async def create_lead(services: ServicesDep, caller: Caller, payload: LeadCreate) -> LeadResponse:
    lead = await services.leads.create(caller, payload.model_dump(exclude_none=True))
    return LeadResponse.model_validate(lead)


@router.patch("/{lead_id}", response_model=LeadResponse, responses=_ERRORS)
async def update_lead(
    services: ServicesDep,
    caller: Caller,
    lead_id: Annotated[UUID, Path()],
    payload: LeadUpdate,
) -> LeadResponse:
    lead = await services.leads.update(caller, lead_id, payload.model_dump(exclude_none=True))
    return LeadResponse.model_validate(lead)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS)
async def delete_lead(
    services: ServicesDep,
    caller: Caller,
    lead_id: Annotated[UUID, Path()],
) -> None:
    await services.leads.delete(caller, lead_id)


@router.post("/{lead_id}/convert", response_model=LeadConversionResponse, responses=_ERRORS)
async def convert_lead(
    services: ServicesDep,
    caller: Caller,
    lead_id: Annotated[UUID, Path()],
    payload: LeadConvertRequest,
) -> LeadConversionResponse:
    """Create a client and a briefing project from a lead."""
    conversion = await services.leads.convert(caller, lead_id, payload.harga, payload.package_id)
    return LeadConversionResponse(
        client=ClientResponse.model_validate(conversion.client),
        project=ProjectResponse.model_validate(conversion.project),
        lead=LeadResponse.model_validate(conversion.lead),
    )
