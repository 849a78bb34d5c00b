"""Invoice API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from agency_erp.api.dependencies import Caller, ServicesDep
from agency_erp.api.schemas import (
    ErrorResponse,
    InvoiceCreate,
    InvoiceResponse,
    InvoiceResult,
    InvoiceUpdate,
    StatusChange,
)
from agency_erp.identity import Role, require_roles
from agency_erp.services.results import OperationResult

router = APIRouter(prefix="/invoices", tags=["invoices"])

_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _result(result: OperationResult) -> InvoiceResult:
    return InvoiceResult(data=InvoiceResponse.model_validate(result.row), warnings=result.warnings)


@router.get("", response_model=list[InvoiceResponse], responses=_ERRORS)
async def list_invoices(services: ServicesDep, caller: Caller) -> list[InvoiceResponse]:
    invoices = await services.invoices.list_invoices(caller)
    return [InvoiceResponse.model_validate(i) for i in invoices]


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED, responses=_ERRORS)
async def create_invoice(services: ServicesDep, caller: Caller, payload: InvoiceCreate) -> InvoiceResponse:
    """Create an invoice awaiting down payment."""
    invoice = await services.invoices.create(caller, payload.model_dump(exclude_none=True))
    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id}", response_model=InvoiceResponse, responses=_ERRORS)
async def get_invoice(
    services: ServicesDep,
    caller: Caller,
    invoice_id: Annotated[UUID, Path()],
) -> InvoiceResponse:
    require_roles(caller, "view invoices", Role.ADMIN, Role.CS, Role.FINANCE)
    return InvoiceResponse.model_validate(await services.invoices.get(invoice_id))


@router.patch("/{invoice_id}", response_model=InvoiceResponse, responses=_ERRORS)
async def update_invoice(
    services: ServicesDep,
    caller: Caller,
    invoice_id: Annotated[UUID, Path()],
    payload: InvoiceUpdate,
) -> InvoiceResponse:
    invoice = await services.invoices.update(caller, invoice_id, payload.model_dump(exclude_none=True))
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS)
async def delete_invoice(
    services: ServicesDep,
    caller: Caller,
    invoice_id: Annotated[UUID, Path()],
) -> None:
    """Delete an invoice and its ledger rows."""
    await services.invoices.delete(caller, invoice_id)


@router.post("/{invoice_id}/status", response_model=InvoiceResult, responses=_ERRORS)
async def change_invoice_status(
    services: ServicesDep,
    caller: Caller,
    invoice_id: Annotated[UUID, Path()],
    payload: StatusChange,
) -> InvoiceResult:
    """Move an invoice to another payment status."""
    return _result(await services.invoices.set_status(caller, invoice_id, payload.status))


@router.post("/{invoice_id}/toggle-paid", response_model=InvoiceResult, responses=_ERRORS)
async def toggle_invoice_paid(
    services: ServicesDep,
    caller: Caller,
    invoice_id: Annotated[UUID, Path()],
) -> InvoiceResult:
    """Flip between paid in full and awaiting down payment."""
    return _result(await services.invoices.toggle_paid(caller, invoice_id))
