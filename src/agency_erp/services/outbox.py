"""Notification outbox.

Notifications are recorded before they are sent, so a gateway outage
leaves a pending row that `dispatch_pending` can retry later instead of
a message that silently never went out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from agency_erp.errors import DataStoreError
from agency_erp.notifier.base import Notifier, NotifyResult
from agency_erp.store.base import DataStore, Order, Row, in_, lt

logger = logging.getLogger(__name__)

OUTBOX = "notification_outbox"


class OutboxStatus(str, Enum):
    """Delivery state of an outbox row."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    INVALID = "invalid"


class NotificationKind(str, Enum):
    """What the notification is about."""

    PROJECT_ASSIGNED = "project_assigned"
    FEE_PAID = "fee_paid"


@dataclass(frozen=True)
class DispatchSummary:
    """Counts from one dispatch_pending run."""

    attempted: int
    sent: int
    failed: int
    invalid: int


class NotificationOutbox:
    """Records notifications and delivers them through a Notifier."""

    def __init__(self, store: DataStore, notifier: Notifier, max_attempts: int = 5):
        self.store = store
        self.notifier = notifier
        self.max_attempts = max_attempts

    async def enqueue(
        self,
        kind: NotificationKind,
        target: str,
        message: str,
        reference: str | None = None,
    ) -> Row:
        """Persist a pending notification."""
        return await self.store.insert(
            OUTBOX,
            {
                "kind": kind.value,
                "target": target,
                "message": message,
                "status": OutboxStatus.PENDING.value,
                "attempts": 0,
                "reference": reference,
            },
        )

    async def deliver(self, entry: Row) -> NotifyResult:
        """Attempt delivery of one outbox row and record the outcome."""
        try:
            result = await self.notifier.send(entry["target"], entry["message"])
        except Exception as e:
            logger.exception("Notifier raised while delivering outbox entry %s", entry["id"])
            result = NotifyResult(False, f"Notifier error: {e}")

        patch: dict[str, Any] = {"attempts": int(entry.get("attempts") or 0) + 1}
        if result.success:
            patch["status"] = OutboxStatus.SENT.value
            patch["sent_at"] = datetime.now(timezone.utc)
            patch["last_error"] = None
        elif result.retryable:
            patch["status"] = OutboxStatus.FAILED.value
            patch["last_error"] = result.message
        else:
            patch["status"] = OutboxStatus.INVALID.value
            patch["last_error"] = result.message

        try:
            await self.store.update(OUTBOX, {"id": entry["id"]}, patch)
        except DataStoreError:
            logger.exception("Could not record delivery outcome for outbox entry %s", entry["id"])
        return result

    async def notify(
        self,
        kind: NotificationKind,
        target: str,
        message: str,
        reference: str | None = None,
    ) -> NotifyResult:
        """Enqueue then deliver once."""
        try:
            entry = await self.enqueue(kind, target, message, reference)
        except DataStoreError as e:
            logger.warning("Could not enqueue %s notification: %s", kind.value, e)
            return NotifyResult(False, f"Notification could not be queued: {e.detail}")
        return await self.deliver(entry)

    async def pending(self, limit: int = 50) -> list[Row]:
        """Rows still eligible for delivery, oldest first."""
        return await self.store.select(
            OUTBOX,
            [
                in_("status", [OutboxStatus.PENDING.value, OutboxStatus.FAILED.value]),
                lt("attempts", self.max_attempts),
            ],
            order=[Order("created_at")],
            limit=limit,
        )

    async def dispatch_pending(self, limit: int = 50) -> DispatchSummary:
        """Retry pending and failed notifications below the attempt cap."""
        rows = await self.pending(limit)
        sent = failed = invalid = 0
        for entry in rows:
            result = await self.deliver(entry)
            if result.success:
                sent += 1
            elif result.retryable:
                failed += 1
            else:
                invalid += 1
        if rows:
            logger.info("Outbox dispatch: %d attempted, %d sent, %d failed", len(rows), sent, failed)
        return DispatchSummary(attempted=len(rows), sent=sent, failed=failed, invalid=invalid)
