"""Finance ledger, fee tracking, invoice and ads-report models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from agency_erp.models.base import Base, TimestampMixin, UpdatedAtMixin, uuid_pk


class FinanceEntry(Base, UpdatedAtMixin):
    """Single income or expense ledger row.

    `developer_id` links fee disbursements (kategori 'gaji') to the
    developer explicitly; older rows are matched by `keterangan`.
    """

    __tablename__ = "finances"

    id: Mapped[UUID] = uuid_pk()
    tipe: Mapped[str] = mapped_column(String, nullable=False)
    kategori: Mapped[str] = mapped_column(String, nullable=False)
    nominal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    keterangan: Mapped[str | None] = mapped_column(Text, nullable=True)
    tanggal: Mapped[date] = mapped_column(Date, nullable=False)
    invoice_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("invoices.id", ondelete="SET NULL"),
        nullable=True,
    )
    developer_id: Mapped[UUID | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint("tipe IN ('income', 'expense')", name="finances_tipe_check"),
        CheckConstraint(
            "kategori IN ('pendapatan', 'operasional', 'gaji', 'pajak', 'hosting', 'iklan', 'lainnya')",
            name="finances_kategori_check",
        ),
        CheckConstraint("nominal > 0", name="finances_nominal_positive"),
    )


class DeveloperPaymentTracking(Base):
    """Immutable fee-realized event, written when a project completes."""

    __tablename__ = "developer_payments_tracking"

    id: Mapped[UUID] = uuid_pk()
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    developer_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class Invoice(Base, UpdatedAtMixin):
    """Client invoice for a project."""

    __tablename__ = "invoices"

    id: Mapped[UUID] = uuid_pk()
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    invoice_number: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="menunggu_dp")
    tanggal_terbit: Mapped[date | None] = mapped_column(Date, nullable=True)
    jatuh_tempo: Mapped[date | None] = mapped_column(Date, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'menunggu_dp', 'lunas_dp', 'menunggu_pelunasan', "
            "'lunas', 'overdue', 'batal')",
            name="invoices_status_check",
        ),
        CheckConstraint("amount > 0", name="invoices_amount_positive"),
    )


class AdsReport(Base, TimestampMixin):
    """Daily advertising report (one row per report_date)."""

    __tablename__ = "ads_reports"

    id: Mapped[UUID] = uuid_pk()
    report_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    fee_payment: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    net_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    ads_spend: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    leads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_purchase: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    month: Mapped[str | None] = mapped_column(String, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
