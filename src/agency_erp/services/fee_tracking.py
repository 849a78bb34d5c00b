"""Fee tracking accessor (developer_payments_tracking and projects)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from agency_erp.errors import ValidationError
from agency_erp.money import to_decimal
from agency_erp.store.base import DataStore, Order, Row

logger = logging.getLogger(__name__)

TRACKING = "developer_payments_tracking"
PROJECTS = "projects"


class FeeTrackingService:
    """Append-only record of realized developer fees."""

    def __init__(self, store: DataStore):
        self.store = store

    async def record_fee_realized(
        self,
        *,
        project_id: UUID,
        developer_id: UUID,
        amount: Decimal,
        paid_at: datetime | None = None,
    ) -> Row:
        """Insert the tracking row for a completed project."""
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("Fee amount must be positive")
        row = await self.store.insert(
            TRACKING,
            {
                "project_id": project_id,
                "developer_id": developer_id,
                "amount_paid": amount,
                "paid_at": paid_at or datetime.now(timezone.utc),
                "notes": f"Fee otomatis dari penyelesaian proyek ID: {str(project_id)[:8]}...",
            },
        )
        logger.info("Fee %s realized for developer %s on project %s", amount, developer_id, project_id)
        return row

    async def payments_for(self, developer_id: UUID) -> list[Row]:
        return await self.store.select(
            TRACKING,
            {"developer_id": developer_id},
            order=[Order("paid_at", descending=True)],
        )

    async def payments_for_project(self, project_id: UUID) -> list[Row]:
        return await self.store.select(TRACKING, {"project_id": project_id})

    async def projects_for(self, developer_id: UUID) -> list[Row]:
        return await self.store.select(PROJECTS, {"developer_id": developer_id})
