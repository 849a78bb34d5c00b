"""Notification outbox endpoints for an external scheduler."""

from typing import Annotated

from fastapi import APIRouter, Query

from agency_erp.api.dependencies import Caller, ServicesDep
from agency_erp.api.schemas import DispatchResponse, ErrorResponse
from agency_erp.identity import Role, require_roles

router = APIRouter(prefix="/outbox", tags=["outbox"])


@router.post("/dispatch", response_model=DispatchResponse, responses={403: {"model": ErrorResponse}})
async def dispatch_outbox(
    services: ServicesDep,
    caller: Caller,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> DispatchResponse:
    """Retry pending and failed notifications."""
    require_roles(caller, "dispatch notifications", Role.ADMIN)
    summary = await services.outbox.dispatch_pending(limit)
    return DispatchResponse(
        attempted=summary.attempted,
        sent=summary.sent,
        failed=summary.failed,
        invalid=summary.invalid,
    )
