"""Outbox of pending side-effect notifications."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agency_erp.models.base import Base, TimestampMixin, uuid_pk


class OutboxMessage(Base, TimestampMixin):
    """Durable record of a notification to deliver."""

    __tablename__ = "notification_outbox"

    id: Mapped[UUID] = uuid_pk()
    kind: Mapped[str] = mapped_column(String, nullable=False)
    target: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference: Mapped[str | None] = mapped_column(String, nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'sent', 'failed', 'invalid')",
            name="notification_outbox_status_check",
        ),
        CheckConstraint(
            "kind IN ('project_assigned', 'fee_paid')",
            name="notification_outbox_kind_check",
        ),
    )
