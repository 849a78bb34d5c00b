"""Finance ledger endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from agency_erp.api.dependencies import Caller, ServicesDep
from agency_erp.api.schemas import (
    ErrorResponse,
    FinanceEntryCreate,
    FinanceEntryResponse,
    LedgerSummaryResponse,
)
from agency_erp.identity import Role, require_roles

router = APIRouter(prefix="/finances", tags=["finances"])

_ERRORS = {400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


@router.get("", response_model=list[FinanceEntryResponse], responses=_ERRORS)
async def list_entries(
    services: ServicesDep,
    caller: Caller,
    start: Annotated[date | None, Query()] = None,
    end: Annotated[date | None, Query()] = None,
    tipe: Annotated[str | None, Query()] = None,
    kategori: Annotated[str | None, Query()] = None,
) -> list[FinanceEntryResponse]:
    """List ledger entries, newest first."""
    require_roles(caller, "view finances", Role.ADMIN, Role.FINANCE)
    entries = await services.ledger.list_entries(start=start, end=end, tipe=tipe, kategori=kategori)
    return [FinanceEntryResponse.model_validate(e) for e in entries]


@router.get("/summary", response_model=LedgerSummaryResponse, responses=_ERRORS)
async def ledger_summary(
    services: ServicesDep,
    caller: Caller,
    start: Annotated[date | None, Query()] = None,
    end: Annotated[date | None, Query()] = None,
) -> LedgerSummaryResponse:
    """Income, expense, balance and final income tax over a period."""
    require_roles(caller, "view finances", Role.ADMIN, Role.FINANCE)
    summary = await services.ledger.summary(start=start, end=end)
    return LedgerSummaryResponse(
        total_income=summary.total_income,
        total_expense=summary.total_expense,
        balance=summary.balance,
        pph_final=summary.pph_final,
        entry_count=summary.entry_count,
    )


@router.post("", response_model=FinanceEntryResponse, status_code=status.HTTP_201_CREATED, responses=_ERRORS)
async def create_entry(
    services: ServicesDep,
    caller: Caller,
    payload: FinanceEntryCreate,
) -> FinanceEntryResponse:
    entry = await services.ledger.record_manual(caller, **payload.model_dump())
    return FinanceEntryResponse.model_validate(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS)
async def delete_entry(
    services: ServicesDep,
    caller: Caller,
    entry_id: Annotated[UUID, Path()],
) -> None:
    await services.ledger.remove_manual(caller, entry_id)
