"""Daily Meta Ads reports.

Creating a report with positive ad spend posts one 'iklan' expense to
the ledger. Later edits and deletes leave the ledger alone.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from agency_erp.dates import iso_week, month_label
from agency_erp.errors import DataStoreError, NotFoundError, PartialFailureError, ValidationError
from agency_erp.identity import CallerContext, Role, require_roles
from agency_erp.money import ZERO, to_decimal
from agency_erp.services.ledger import FinanceCategory, FinanceType, LedgerService
from agency_erp.store.base import DataStore, Order, Row, gte, lte

logger = logging.getLogger(__name__)

ADS_REPORTS = "ads_reports"
MONEY_FIELDS = ("revenue", "fee_payment", "ads_spend")
COUNT_FIELDS = ("leads", "total_purchase")


def expense_description(report_date: date) -> str:
    return f"Biaya Iklan (Meta Ads) tgl {report_date.isoformat()}"


def prepare_report(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate input and derive week, month and net_revenue."""
    report_date = data.get("report_date")
    if report_date is None:
        raise ValidationError("Report date is required")
    if isinstance(report_date, str):
        try:
            report_date = date.fromisoformat(report_date)
        except ValueError as e:
            raise ValidationError(f"Invalid report date '{report_date}'") from e

    values: dict[str, Any] = {"report_date": report_date}
    for name in MONEY_FIELDS:
        amount = to_decimal(data.get(name))
        if amount < 0:
            raise ValidationError(f"{name} cannot be negative")
        values[name] = amount
    for name in COUNT_FIELDS:
        count = int(data.get(name) or 0)
        if count < 0:
            raise ValidationError(f"{name} cannot be negative")
        values[name] = count

    values["net_revenue"] = values["revenue"] - values["fee_payment"]
    values["week"] = iso_week(report_date)
    values["month"] = month_label(report_date)
    return values


def _ratio(numerator: Decimal, denominator: Decimal | int) -> Decimal | None:
    if not denominator:
        return None
    return (Decimal(numerator) / Decimal(denominator)).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class AdsSummary:
    """Totals and derived metrics over a set of reports.

    Ratios are None when their denominator is zero.
    """

    report_count: int
    total_revenue: Decimal
    total_fee_payment: Decimal
    total_net_revenue: Decimal
    total_ads_spend: Decimal
    total_leads: int
    total_purchase: int

    @property
    def roas(self) -> Decimal | None:
        """Return on ad spend."""
        return _ratio(self.total_revenue, self.total_ads_spend)

    @property
    def conversion_rate(self) -> Decimal | None:
        """Purchases per lead, in percent."""
        return _ratio(Decimal(self.total_purchase) * 100, self.total_leads)

    @property
    def cost_per_lead(self) -> Decimal | None:
        return _ratio(self.total_ads_spend, self.total_leads)

    @property
    def cost_per_purchase(self) -> Decimal | None:
        return _ratio(self.total_ads_spend, self.total_purchase)


def summarize_reports(reports: Iterable[Mapping[str, Any]]) -> AdsSummary:
    reports = list(reports)
    return AdsSummary(
        report_count=len(reports),
        total_revenue=sum((to_decimal(r["revenue"]) for r in reports), ZERO),
        total_fee_payment=sum((to_decimal(r["fee_payment"]) for r in reports), ZERO),
        total_net_revenue=sum((to_decimal(r["net_revenue"]) for r in reports), ZERO),
        total_ads_spend=sum((to_decimal(r["ads_spend"]) for r in reports), ZERO),
        total_leads=sum(int(r["leads"] or 0) for r in reports),
        total_purchase=sum(int(r["total_purchase"] or 0) for r in reports),
    )


class AdsReportService:
    """Ad report operations."""

    def __init__(self, store: DataStore, ledger: LedgerService):
        self.store = store
        self.ledger = ledger

    async def list_reports(
        self,
        ctx: CallerContext,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Row]:
        require_roles(ctx, "view ad reports", Role.ADMIN, Role.FINANCE)
        filters = []
        if start is not None:
            filters.append(gte("report_date", start))
        if end is not None:
            filters.append(lte("report_date", end))
        return await self.store.select(
            ADS_REPORTS, filters, order=[Order("report_date", descending=True)]
        )

    async def summary(
        self,
        ctx: CallerContext,
        start: date | None = None,
        end: date | None = None,
    ) -> AdsSummary:
        return summarize_reports(await self.list_reports(ctx, start, end))

    async def _ensure_date_free(self, report_date: date, exclude_id: UUID | None = None) -> None:
        rows = await self.store.select(ADS_REPORTS, {"report_date": report_date})
        if any(r["id"] != exclude_id for r in rows):
            raise ValidationError(f"Data for date {report_date.isoformat()} already exists")

    async def create(self, ctx: CallerContext, data: Mapping[str, Any]) -> Row:
        """Save a daily report and post its ad spend as an expense."""
        require_roles(ctx, "manage ad reports", Role.ADMIN)
        values = prepare_report(data)
        await self._ensure_date_free(values["report_date"])
        values["created_by"] = ctx.user_id

        report = await self.store.insert(ADS_REPORTS, values)
        logger.info("Ad report for %s saved", report["report_date"])

        if to_decimal(report["ads_spend"]) > 0:
            try:
                await self.ledger.post_entry(
                    tipe=FinanceType.EXPENSE.value,
                    kategori=FinanceCategory.IKLAN.value,
                    nominal=report["ads_spend"],
                    tanggal=report["report_date"],
                    keterangan=expense_description(report["report_date"]),
                    created_by=ctx.user_id,
                )
            except DataStoreError as e:
                logger.warning("Ad spend posting failed for %s: %s", report["report_date"], e)
                raise PartialFailureError(
                    "Ad report saved, but the ad spend could not be recorded in finance",
                    saved=report,
                    cause=e,
                ) from e
        return report

    async def update(self, ctx: CallerContext, report_id: UUID, data: Mapping[str, Any]) -> Row:
        """Replace a report's figures. The ledger is not adjusted."""
        require_roles(ctx, "manage ad reports", Role.ADMIN)
        values = prepare_report(data)
        await self._ensure_date_free(values["report_date"], exclude_id=report_id)
        rows = await self.store.update(ADS_REPORTS, {"id": report_id}, values)
        if not rows:
            raise NotFoundError(ADS_REPORTS, report_id)
        return rows[0]

    async def delete(self, ctx: CallerContext, report_id: UUID) -> None:
        require_roles(ctx, "manage ad reports", Role.ADMIN)
        if not await self.store.delete(ADS_REPORTS, {"id": report_id}):
            raise NotFoundError(ADS_REPORTS, report_id)
