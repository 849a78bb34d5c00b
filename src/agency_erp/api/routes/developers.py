"""Developer fee reconciliation endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from agency_erp.api.dependencies import Caller, ServicesDep
from agency_erp.api.schemas import (
    DeveloperStatResponse,
    DeveloperStatsResponse,
    DeveloperTotals,
    ErrorResponse,
    PayoutResponse,
)
from agency_erp.services.reconciliation import DeveloperStat

router = APIRouter(prefix="/developers", tags=["developers"])


def _stat(stat: DeveloperStat) -> DeveloperStatResponse:
    return DeveloperStatResponse(
        developer_id=stat.developer_id,
        full_name=stat.full_name,
        pending_fee=stat.pending_fee,
        total_lifetime_earned=stat.total_lifetime_earned,
        total_lifetime_paid=stat.total_lifetime_paid,
        unpaid_balance=stat.unpaid_balance,
        active_projects_count=stat.active_projects_count,
        completed_projects_count=stat.completed_projects_count,
    )


@router.get(
    "/stats",
    response_model=DeveloperStatsResponse,
    responses={403: {"model": ErrorResponse}},
)
async def developer_stats(services: ServicesDep, caller: Caller) -> DeveloperStatsResponse:
    """Fee position of every developer visible to the caller."""
    summary = await services.reconciliation.all_developer_stats(caller)
    return DeveloperStatsResponse(
        developers=[_stat(s) for s in summary.developers],
        totals=DeveloperTotals(
            pending=summary.total_pending,
            unpaid=summary.total_unpaid,
            paid=summary.total_paid,
        ),
    )


@router.post(
    "/{developer_id}/payout",
    response_model=PayoutResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def pay_developer(
    services: ServicesDep,
    caller: Caller,
    developer_id: Annotated[UUID, Path()],
) -> PayoutResponse:
    """Record a disbursement equal to the outstanding balance."""
    result = await services.reconciliation.pay_outstanding(caller, developer_id)
    return PayoutResponse(
        developer_id=result.developer_id,
        status=result.status,
        amount=result.amount,
        message=result.message,
        entry_id=result.entry_id,
    )
