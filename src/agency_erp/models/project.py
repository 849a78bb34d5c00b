"""Project and checklist models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agency_erp.models.base import Base, TimestampMixin, UpdatedAtMixin, uuid_pk


class Project(Base, UpdatedAtMixin):
    """Client project with an optional assigned developer."""

    __tablename__ = "projects"

    id: Mapped[UUID] = uuid_pk()
    client_id: Mapped[UUID] = mapped_column(ForeignKey("clients.id"), nullable=False)
    package_id: Mapped[UUID | None] = mapped_column(nullable=True)
    nama_proyek: Mapped[str] = mapped_column(String, nullable=False)
    harga: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    ruang_lingkup: Mapped[str | None] = mapped_column(Text, nullable=True)
    developer_id: Mapped[UUID | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    fee_developer: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="briefing")
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tanggal_mulai: Mapped[date | None] = mapped_column(Date, nullable=True)
    tanggal_selesai: Mapped[date | None] = mapped_column(Date, nullable=True)
    estimasi_hari: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('briefing', 'desain', 'development', 'revisi', 'launch', 'selesai')",
            name="projects_status_check",
        ),
        CheckConstraint("progress >= 0 AND progress <= 100", name="projects_progress_check"),
    )


class ProjectChecklist(Base, TimestampMixin):
    """Checklist item; completion ratio drives project progress."""

    __tablename__ = "project_checklists"

    id: Mapped[UUID] = uuid_pk()
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    is_done: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_by: Mapped[UUID | None] = mapped_column(nullable=True)
