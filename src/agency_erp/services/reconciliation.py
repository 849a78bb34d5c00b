"""Developer fee reconciliation.

Compares two independently maintained collections:

- developer_payments_tracking: what each developer has earned
  (one row per completed project)
- finances (kategori 'gaji'): what has actually been disbursed

Nothing here is stored. The outstanding balance is recomputed on every
read, so there is no persisted balance to go stale.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from agency_erp.errors import AuthorizationError, NotFoundError
from agency_erp.identity import CallerContext, Role, require_roles
from agency_erp.money import ZERO, format_rupiah, to_decimal
from agency_erp.services.fee_tracking import FeeTrackingService
from agency_erp.services.ledger import FinanceCategory, FinanceType, LedgerService, payment_key
from agency_erp.services.state_machine import ProjectStatus
from agency_erp.store.base import DataStore, in_

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeveloperStat:
    """Derived fee position of one developer."""

    developer_id: UUID
    full_name: str
    pending_fee: Decimal
    total_lifetime_earned: Decimal
    total_lifetime_paid: Decimal
    active_projects_count: int
    completed_projects_count: int

    @property
    def unpaid_balance(self) -> Decimal:
        """Earned minus paid. Negative means overpaid."""
        return self.total_lifetime_earned - self.total_lifetime_paid


@dataclass
class DeveloperSummary:
    """Stats for a set of developers plus aggregate totals."""

    developers: list[DeveloperStat] = field(default_factory=list)

    @property
    def total_pending(self) -> Decimal:
        return sum((d.pending_fee for d in self.developers), ZERO)

    @property
    def total_unpaid(self) -> Decimal:
        """Only positive balances count; overpayments never reduce it."""
        return sum((max(ZERO, d.unpaid_balance) for d in self.developers), ZERO)

    @property
    def total_paid(self) -> Decimal:
        return sum((d.total_lifetime_paid for d in self.developers), ZERO)


@dataclass(frozen=True)
class PayoutResult:
    """Result of the payable action.

    `status` is "paid" when a ledger expense was posted, or
    "nothing_due" when the balance was zero or negative (informational,
    nothing written).
    """

    developer_id: UUID
    status: str
    amount: Decimal
    message: str
    entry_id: UUID | None = None

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"


def is_disbursement_for(entry: dict[str, Any], developer_id: UUID, full_name: str) -> bool:
    """Whether a 'gaji' ledger row pays this developer.

    Rows carrying developer_id are matched on it. Rows without it are
    matched on the exact description.
    """
    if entry.get("kategori") != FinanceCategory.GAJI:
        return False
    linked = entry.get("developer_id")
    if linked is not None:
        return linked == developer_id
    return entry.get("keterangan") == payment_key(full_name)


def compute_developer_stat(
    *,
    developer_id: UUID,
    full_name: str,
    projects: Iterable[dict[str, Any]],
    payments: Iterable[dict[str, Any]],
    disbursements: Iterable[dict[str, Any]],
) -> DeveloperStat:
    """Pure computation of a developer's stat from already-fetched rows."""
    own_projects = [p for p in projects if p.get("developer_id") == developer_id]
    active = [p for p in own_projects if p.get("status") != ProjectStatus.SELESAI]
    own_payments = [p for p in payments if p.get("developer_id") == developer_id]
    paid_rows = [f for f in disbursements if is_disbursement_for(f, developer_id, full_name)]

    return DeveloperStat(
        developer_id=developer_id,
        full_name=full_name,
        pending_fee=sum((to_decimal(p.get("fee_developer")) for p in active), ZERO),
        total_lifetime_earned=sum((to_decimal(p.get("amount_paid")) for p in own_payments), ZERO),
        total_lifetime_paid=sum((to_decimal(f.get("nominal")) for f in paid_rows), ZERO),
        active_projects_count=len(active),
        completed_projects_count=len(own_payments),
    )


class ReconciliationEngine:
    """Computes developer fee positions and posts disbursements."""

    def __init__(
        self,
        store: DataStore,
        ledger: LedgerService,
        fee_tracking: FeeTrackingService,
    ):
        self.store = store
        self.ledger = ledger
        self.fee_tracking = fee_tracking

    async def _profile(self, developer_id: UUID) -> dict[str, Any]:
        rows = await self.store.select("profiles", {"id": developer_id}, limit=1)
        if not rows:
            raise NotFoundError("profiles", developer_id)
        return rows[0]

    async def developer_stat(self, developer_id: UUID) -> DeveloperStat:
        """Compute the stat of one developer from current stored data."""
        profile = await self._profile(developer_id)
        projects = await self.fee_tracking.projects_for(developer_id)
        payments = await self.fee_tracking.payments_for(developer_id)
        disbursements = await self.ledger.fee_disbursements()
        return compute_developer_stat(
            developer_id=developer_id,
            full_name=profile["full_name"],
            projects=projects,
            payments=payments,
            disbursements=disbursements,
        )

    async def all_developer_stats(self, ctx: CallerContext) -> DeveloperSummary:
        """Stats for every developer visible to the caller.

        Admin and finance see all developers; a developer sees only
        themself. Sorted by unpaid balance, largest first.
        """
        if ctx.is_full_access:
            role_rows = await self.store.select("user_roles", {"role": Role.DEVELOPER.value})
            developer_ids = sorted({r["user_id"] for r in role_rows}, key=str)
        elif ctx.has_any(Role.DEVELOPER) and ctx.user_id is not None:
            developer_ids = [ctx.user_id]
        else:
            raise AuthorizationError("view developer fees", ("admin", "finance", "developer"))

        if not developer_ids:
            return DeveloperSummary()

        profiles = await self.store.select("profiles", [in_("id", developer_ids)])
        projects = await self.store.select("projects", [in_("developer_id", developer_ids)])
        payments = await self.store.select(
            "developer_payments_tracking", [in_("developer_id", developer_ids)]
        )
        disbursements = await self.ledger.fee_disbursements()

        stats = [
            compute_developer_stat(
                developer_id=profile["id"],
                full_name=profile["full_name"],
                projects=projects,
                payments=payments,
                disbursements=disbursements,
            )
            for profile in profiles
        ]
        stats.sort(key=lambda s: s.unpaid_balance, reverse=True)
        return DeveloperSummary(developers=stats)

    async def pay_outstanding(
        self,
        ctx: CallerContext,
        developer_id: UUID,
        today: date | None = None,
    ) -> PayoutResult:
        """Post one 'gaji' expense equal to the current unpaid balance.

        A zero or negative balance is a no-op with an informational
        result. If the insert fails, DataStoreError propagates and the
        balance is unchanged.
        """
        require_roles(ctx, "record developer fee payments", Role.ADMIN, Role.FINANCE)
        stat = await self.developer_stat(developer_id)
        amount = stat.unpaid_balance

        if amount <= 0:
            return PayoutResult(
                developer_id=developer_id,
                status="nothing_due",
                amount=amount,
                message=f"No outstanding balance for {stat.full_name}.",
            )

        entry = await self.ledger.post_entry(
            tipe=FinanceType.EXPENSE.value,
            kategori=FinanceCategory.GAJI.value,
            nominal=amount,
            tanggal=today or date.today(),
            keterangan=payment_key(stat.full_name),
            developer_id=developer_id,
            created_by=ctx.user_id,
        )
        return PayoutResult(
            developer_id=developer_id,
            status="paid",
            amount=amount,
            message=f"Fee expense for {stat.full_name} ({format_rupiah(amount)}) recorded.",
            entry_id=entry["id"],
        )
