"""Invoices and their payment transitions.

An invoice entering 'lunas' posts exactly one income row to the ledger
(any row already linked to the invoice is removed first). Leaving
'lunas' removes the linked row again. Developer fee tracking is never
touched here.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from agency_erp.errors import DataStoreError, NotFoundError, PartialFailureError, ValidationError
from agency_erp.identity import CallerContext, Role, require_roles
from agency_erp.money import format_rupiah, to_decimal
from agency_erp.numbering import generate_unique_number
from agency_erp.services.ledger import FinanceCategory, FinanceType, LedgerService
from agency_erp.services.outbox import NotificationKind, NotificationOutbox
from agency_erp.services.results import OperationResult
from agency_erp.services.state_machine import InvoiceStateMachine, InvoiceStatus
from agency_erp.store.base import DataStore, Order, Row

logger = logging.getLogger(__name__)

INVOICES = "invoices"
EDITABLE_FIELDS = frozenset({"project_id", "invoice_number", "amount", "tanggal_terbit", "jatuh_tempo"})

_INVOICE_ROLES = (Role.ADMIN, Role.CS, Role.FINANCE)


def income_description(invoice_id: UUID, project_name: str | None) -> str:
    return f"Pemasukan Lunas Invoice #{str(invoice_id)[:8]} ({project_name or 'Proyek'})"


def fee_paid_message(project_name: str, amount: Any) -> str:
    return (
        f"💰 Fee proyek *{project_name}* sebesar *{format_rupiah(amount)}* telah ditransfer. "
        "Terima kasih atas kerja samanya!"
    )


class InvoiceService:
    """Invoice operations with role checks and ledger side effects."""

    def __init__(self, store: DataStore, ledger: LedgerService, outbox: NotificationOutbox):
        self.store = store
        self.ledger = ledger
        self.outbox = outbox

    async def get(self, invoice_id: UUID) -> Row:
        rows = await self.store.select(INVOICES, {"id": invoice_id}, limit=1)
        if not rows:
            raise NotFoundError(INVOICES, invoice_id)
        return rows[0]

    async def list_invoices(self, ctx: CallerContext) -> list[Row]:
        require_roles(ctx, "view invoices", *_INVOICE_ROLES)
        return await self.store.select(INVOICES, order=[Order("created_at", descending=True)])

    def _clean_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        unknown = set(data) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown invoice field(s): {', '.join(sorted(unknown))}")
        values = dict(data)
        if "amount" in values and to_decimal(values["amount"]) <= 0:
            raise ValidationError("Invoice amount must be positive")
        if "invoice_number" in values and not values["invoice_number"]:
            raise ValidationError("Invoice number cannot be empty")
        return values

    async def create(
        self,
        ctx: CallerContext,
        data: Mapping[str, Any],
        today: date | None = None,
    ) -> Row:
        """Create an invoice in 'menunggu_dp'.

        A duplicate invoice_number is rejected by the store and surfaces
        as DataStoreError.
        """
        require_roles(ctx, "create invoices", *_INVOICE_ROLES)
        values = self._clean_fields(data)
        if not values.get("project_id"):
            raise ValidationError("Project is required")
        if "amount" not in values:
            raise ValidationError("Invoice amount must be positive")

        today = today or date.today()
        values.setdefault("invoice_number", generate_unique_number("INV", today=today))
        values.setdefault("tanggal_terbit", today)
        values["status"] = InvoiceStatus.MENUNGGU_DP.value
        values["created_by"] = ctx.user_id

        invoice = await self.store.insert(INVOICES, values)
        logger.info("Invoice %s created for project %s", invoice["invoice_number"], invoice["project_id"])
        return invoice

    async def update(self, ctx: CallerContext, invoice_id: UUID, data: Mapping[str, Any]) -> Row:
        """Edit non-status fields."""
        require_roles(ctx, "edit invoices", *_INVOICE_ROLES)
        values = self._clean_fields(data)
        if not values:
            return await self.get(invoice_id)
        rows = await self.store.update(INVOICES, {"id": invoice_id}, values)
        if not rows:
            raise NotFoundError(INVOICES, invoice_id)
        return rows[0]

    async def delete(self, ctx: CallerContext, invoice_id: UUID) -> None:
        """Delete an invoice together with its ledger rows."""
        require_roles(ctx, "delete invoices", *_INVOICE_ROLES)
        await self.get(invoice_id)
        await self.ledger.delete_for_invoice(invoice_id)
        await self.store.delete(INVOICES, {"id": invoice_id})
        logger.info("Invoice %s deleted", invoice_id)

    async def set_status(
        self,
        ctx: CallerContext,
        invoice_id: UUID,
        new_status: str,
        today: date | None = None,
    ) -> OperationResult:
        """Move an invoice to another payment status."""
        require_roles(ctx, "change invoice status", *_INVOICE_ROLES)
        invoice = await self.get(invoice_id)
        old_status = invoice["status"]
        InvoiceStateMachine.validate_transition(old_status, new_status)

        paying = InvoiceStateMachine.is_payment(old_status, new_status)
        reversing = InvoiceStateMachine.is_payment_reversal(old_status, new_status)

        patch: dict[str, Any] = {"status": new_status}
        if paying:
            patch["paid_at"] = datetime.now(timezone.utc)
        elif reversing:
            patch["paid_at"] = None

        # Read before the status write; a failed read must leave the invoice untouched
        project = await self._project(invoice["project_id"]) if paying else None

        rows = await self.store.update(INVOICES, {"id": invoice_id}, patch)
        if not rows:
            raise NotFoundError(INVOICES, invoice_id)
        updated = rows[0]
        logger.info("Invoice %s: %s -> %s", invoice_id, old_status, new_status)

        result = OperationResult(row=updated)
        if paying:
            await self._post_income(updated, project, today or date.today())
            if project is not None:
                await self._notify_fee_paid(project, result.warnings)
        elif reversing:
            await self._remove_income(updated)
        return result

    async def toggle_paid(
        self, ctx: CallerContext, invoice_id: UUID, today: date | None = None
    ) -> OperationResult:
        """Flip between 'lunas' and 'menunggu_dp'."""
        invoice = await self.get(invoice_id)
        target = InvoiceStateMachine.toggle_target(invoice["status"])
        return await self.set_status(ctx, invoice_id, target, today=today)

    async def _project(self, project_id: UUID) -> Row | None:
        rows = await self.store.select("projects", {"id": project_id}, limit=1)
        return rows[0] if rows else None

    async def _post_income(self, invoice: Row, project: Row | None, today: date) -> None:
        project_name = project.get("nama_proyek") if project else None
        try:
            await self.ledger.delete_for_invoice(invoice["id"])
            await self.ledger.post_entry(
                tipe=FinanceType.INCOME.value,
                kategori=FinanceCategory.PENDAPATAN.value,
                nominal=invoice["amount"],
                tanggal=today,
                keterangan=income_description(invoice["id"], project_name),
                invoice_id=invoice["id"],
            )
        except DataStoreError as e:
            logger.warning("Income posting failed for invoice %s: %s", invoice["id"], e)
            raise PartialFailureError(
                "Invoice marked paid, but the income could not be recorded in finance",
                saved=invoice,
                cause=e,
            ) from e

    async def _remove_income(self, invoice: Row) -> None:
        try:
            await self.ledger.delete_for_invoice(invoice["id"])
        except DataStoreError as e:
            logger.warning("Income removal failed for invoice %s: %s", invoice["id"], e)
            raise PartialFailureError(
                "Invoice status changed, but the linked income could not be removed from finance",
                saved=invoice,
                cause=e,
            ) from e

    async def _notify_fee_paid(self, project: Row, warnings: list[str]) -> None:
        fee = to_decimal(project.get("fee_developer"))
        developer_id = project.get("developer_id")
        if developer_id is None or fee <= 0:
            return
        try:
            profiles = await self.store.select("profiles", {"id": developer_id}, limit=1)
        except DataStoreError as e:
            logger.warning("Could not resolve developer %s for fee notice: %s", developer_id, e)
            warnings.append("Fee notification skipped: developer lookup failed.")
            return
        if not profiles:
            warnings.append("Fee notification skipped: developer profile not found.")
            return

        developer = profiles[0]
        if not developer.get("phone"):
            warnings.append(
                f"Developer {developer['full_name']} has no phone number; fee notification not sent."
            )
            return

        sent = await self.outbox.notify(
            NotificationKind.FEE_PAID,
            developer["phone"],
            fee_paid_message(project["nama_proyek"], fee),
            reference=str(project["id"]),
        )
        if not sent.success:
            logger.warning("Fee notification for project %s failed: %s", project["id"], sent.message)
            warnings.append(f"Fee notification failed: {sent.message}")
