"""Profiles, roles and clients."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from agency_erp.models.base import Base, UpdatedAtMixin, uuid_pk


class Profile(Base, UpdatedAtMixin):
    """Staff member profile (developers receive WhatsApp notifications)."""

    __tablename__ = "profiles"

    id: Mapped[UUID] = uuid_pk()
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)


class UserRole(Base):
    """Role assignment for a profile."""

    __tablename__ = "user_roles"

    id: Mapped[UUID] = uuid_pk()
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'cs', 'developer', 'finance')",
            name="user_roles_role_check",
        ),
        UniqueConstraint("user_id", "role", name="user_roles_user_role_key"),
    )


class Client(Base, UpdatedAtMixin):
    """Agency client."""

    __tablename__ = "clients"

    id: Mapped[UUID] = uuid_pk()
    nama: Mapped[str] = mapped_column(String, nullable=False)
    bisnis: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    whatsapp: Mapped[str | None] = mapped_column(String, nullable=True)
    alamat: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True, default="prospek")
    catatan: Mapped[str | None] = mapped_column(Text, nullable=True)
    renewal_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('prospek', 'negosiasi', 'deal', 'aktif', 'selesai')",
            name="clients_status_check",
        ),
    )
