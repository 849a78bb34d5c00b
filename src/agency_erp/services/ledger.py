"""Ledger accessor for the finances collection.

Rows are appended by three independent flows (invoice payment, fee
disbursement, ad spend) and told apart only by `kategori`, `invoice_id`
and `developer_id`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from agency_erp.errors import NotFoundError, ValidationError
from agency_erp.identity import CallerContext, Role, require_roles
from agency_erp.money import ZERO, to_decimal
from agency_erp.store.base import DataStore, Order, Row, eq, gte, lte

logger = logging.getLogger(__name__)

FINANCES = "finances"
PPH_FINAL_RATE = Decimal("0.005")


class FinanceType(str, Enum):
    """Ledger entry direction."""

    INCOME = "income"
    EXPENSE = "expense"


class FinanceCategory(str, Enum):
    """Ledger category tags."""

    PENDAPATAN = "pendapatan"
    OPERASIONAL = "operasional"
    GAJI = "gaji"
    PAJAK = "pajak"
    HOSTING = "hosting"
    IKLAN = "iklan"
    LAINNYA = "lainnya"


def payment_key(full_name: str) -> str:
    """Description written on (and matched against) fee disbursements."""
    return f"Bayar fee {full_name}"


@dataclass(frozen=True)
class LedgerSummary:
    """Totals over a period."""

    total_income: Decimal
    total_expense: Decimal
    entry_count: int

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def pph_final(self) -> Decimal:
        """Final income tax (0.5% of gross income)."""
        return (self.total_income * PPH_FINAL_RATE).quantize(Decimal("0.01"))


class LedgerService:
    """Reads and writes ledger rows."""

    def __init__(self, store: DataStore):
        self.store = store

    async def post_entry(
        self,
        *,
        tipe: str,
        kategori: str,
        nominal: Decimal,
        tanggal: date,
        keterangan: str | None = None,
        invoice_id: UUID | None = None,
        developer_id: UUID | None = None,
        created_by: UUID | None = None,
    ) -> Row:
        """Insert one ledger row.

        Raises:
            ValidationError: unknown type/category or non-positive amount.
            DataStoreError: the store rejected the insert.
        """
        try:
            FinanceType(tipe)
            FinanceCategory(kategori)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        amount = to_decimal(nominal)
        if amount <= 0:
            raise ValidationError("Amount must be positive")

        row = await self.store.insert(
            FINANCES,
            {
                "tipe": tipe,
                "kategori": kategori,
                "nominal": amount,
                "tanggal": tanggal,
                "keterangan": keterangan,
                "invoice_id": invoice_id,
                "developer_id": developer_id,
                "created_by": created_by,
            },
        )
        logger.info("Posted %s/%s %s (%s)", tipe, kategori, amount, keterangan)
        return row

    async def delete_entry(self, entry_id: UUID) -> int:
        return await self.store.delete(FINANCES, {"id": entry_id})

    async def record_manual(
        self,
        ctx: CallerContext,
        *,
        tipe: str,
        kategori: str,
        nominal: Decimal,
        tanggal: date,
        keterangan: str | None = None,
    ) -> Row:
        """Manual entry from the finance page."""
        require_roles(ctx, "record finance entries", Role.ADMIN, Role.FINANCE)
        return await self.post_entry(
            tipe=tipe,
            kategori=kategori,
            nominal=nominal,
            tanggal=tanggal,
            keterangan=keterangan,
            created_by=ctx.user_id,
        )

    async def remove_manual(self, ctx: CallerContext, entry_id: UUID) -> None:
        require_roles(ctx, "delete finance entries", Role.ADMIN, Role.FINANCE)
        if not await self.delete_entry(entry_id):
            raise NotFoundError(FINANCES, entry_id)
        logger.info("Finance entry %s deleted", entry_id)

    async def entries_for_invoice(self, invoice_id: UUID) -> list[Row]:
        return await self.store.select(FINANCES, {"invoice_id": invoice_id})

    async def delete_for_invoice(self, invoice_id: UUID) -> int:
        """Remove the income row(s) linked to an invoice."""
        return await self.store.delete(FINANCES, {"invoice_id": invoice_id})

    async def fee_disbursements(self) -> list[Row]:
        """All 'gaji' expense rows."""
        return await self.store.select(FINANCES, {"kategori": FinanceCategory.GAJI.value})

    async def list_entries(
        self,
        *,
        start: date | None = None,
        end: date | None = None,
        tipe: str | None = None,
        kategori: str | None = None,
    ) -> list[Row]:
        """List entries in a date range, newest first."""
        filters = []
        if start is not None:
            filters.append(gte("tanggal", start))
        if end is not None:
            filters.append(lte("tanggal", end))
        if tipe is not None:
            filters.append(eq("tipe", tipe))
        if kategori is not None:
            filters.append(eq("kategori", kategori))
        return await self.store.select(
            FINANCES,
            filters,
            order=[Order("tanggal", descending=True)],
        )

    async def summary(self, *, start: date | None = None, end: date | None = None) -> LedgerSummary:
        """Income/expense totals over a period."""
        entries = await self.list_entries(start=start, end=end)
        return summarize_entries(entries)


def summarize_entries(entries: list[dict[str, Any]]) -> LedgerSummary:
    income = ZERO
    expense = ZERO
    for entry in entries:
        if entry["tipe"] == FinanceType.INCOME:
            income += to_decimal(entry["nominal"])
        else:
            expense += to_decimal(entry["nominal"])
    return LedgerSummary(total_income=income, total_expense=expense, entry_count=len(entries))
