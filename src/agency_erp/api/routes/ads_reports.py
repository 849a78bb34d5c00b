"""Ad report endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from agency_erp.api.dependencies import Caller, ServicesDep
from agency_erp.api.schemas import (
    AdsReportInput,
    AdsReportResponse,
    AdsSummaryResponse,
    ErrorResponse,
)

router = APIRouter(prefix="/ads-reports", tags=["ads-reports"])

_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get("", response_model=list[AdsReportResponse], responses=_ERRORS)
async def list_reports(
    services: ServicesDep,
    caller: Caller,
    start: Annotated[date | None, Query()] = None,
    end: Annotated[date | None, Query()] = None,
) -> list[AdsReportResponse]:
    reports = await services.ads_reports.list_reports(caller, start, end)
    return [AdsReportResponse.model_validate(r) for r in reports]


@router.get("/summary", response_model=AdsSummaryResponse, responses=_ERRORS)
async def reports_summary(
    services: ServicesDep,
    caller: Caller,
    start: Annotated[date | None, Query()] = None,
    end: Annotated[date | None, Query()] = None,
) -> AdsSummaryResponse:
    """Totals plus ROAS, conversion rate, cost per lead and per purchase."""
    summary = await services.ads_reports.summary(caller, start, end)
    return AdsSummaryResponse(
        report_count=summary.report_count,
        total_revenue=summary.total_revenue,
        total_fee_payment=summary.total_fee_payment,
        total_net_revenue=summary.total_net_revenue,
        total_ads_spend=summary.total_ads_spend,
        total_leads=summary.total_leads,
        total_purchase=summary.total_purchase,
        roas=summary.roas,
        conversion_rate=summary.conversion_rate,
        cost_per_lead=summary.cost_per_lead,
        cost_per_purchase=summary.cost_per_purchase,
    )


@router.post("", response_model=AdsReportResponse, status_code=status.HTTP_201_CREATED, responses=_ERRORS)
async def create_report(services: ServicesDep, caller: Caller, payload: AdsReportInput) -> AdsReportResponse:
    """Save a daily report and post its ad spend to finance."""
    report = await services.ads_reports.create(caller, payload.model_dump())
    return AdsReportResponse.model_validate(report)


@router.put("/{report_id}", response_model=AdsReportResponse, responses=_ERRORS)
async def update_report(
    services: ServicesDep,
    caller: Caller,
    report_id: Annotated[UUID, Path()],
    payload: AdsReportInput,
) -> AdsReportResponse:
    report = await services.ads_reports.update(caller, report_id, payload.model_dump())
    return AdsReportResponse.model_validate(report)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS)
async def delete_report(
    services: ServicesDep,
    caller: Caller,
    report_id: Annotated[UUID, Path()],
) -> None:
    await services.ads_reports.delete(caller, report_id)
