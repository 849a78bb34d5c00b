"""Sales pipeline: service packages, leads and client communications."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agency_erp.models.base import Base, TimestampMixin, UpdatedAtMixin, uuid_pk


class Package(Base, UpdatedAtMixin):
    """Service package a project can be sold from."""

    __tablename__ = "packages"

    id: Mapped[UUID] = uuid_pk()
    nama: Mapped[str] = mapped_column(String, nullable=False)
    deskripsi: Mapped[str | None] = mapped_column(Text, nullable=True)
    harga: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    estimasi_hari: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Lead(Base, UpdatedAtMixin):
    """Prospect not yet converted into a client."""

    __tablename__ = "leads"

    id: Mapped[UUID] = uuid_pk()
    nama: Mapped[str] = mapped_column(String, nullable=False)
    kontak: Mapped[str] = mapped_column(String, nullable=False)
    sumber: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="baru")
    catatan: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_id: Mapped[UUID | None] = mapped_column(ForeignKey("clients.id"), nullable=True)
    converted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "sumber IN ('website', 'referral', 'iklan', 'sosmed', 'lainnya')",
            name="leads_sumber_check",
        ),
        CheckConstraint(
            "status IN ('baru', 'follow_up', 'negosiasi', 'deal', 'gagal')",
            name="leads_status_check",
        ),
    )


class Communication(Base, TimestampMixin):
    """Note of a conversation with a client."""

    __tablename__ = "communications"

    id: Mapped[UUID] = uuid_pk()
    client_id: Mapped[UUID] = mapped_column(ForeignKey("clients.id"), nullable=False)
    subject: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False)
    follow_up_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
