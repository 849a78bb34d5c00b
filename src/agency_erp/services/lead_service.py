"""Leads and their conversion into a client with a first project.

Conversion is three independent writes: the client, the project, then
the lead link. A failure after the client exists raises
PartialFailureError carrying the last row that was saved.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from agency_erp.errors import DataStoreError, NotFoundError, PartialFailureError, ValidationError
from agency_erp.identity import CallerContext, Role, require_roles
from agency_erp.money import to_decimal
from agency_erp.services.client_service import CLIENTS, ClientStatus
from agency_erp.services.project_service import ProjectService
from agency_erp.store.base import DataStore, Order, Row

logger = logging.getLogger(__name__)

LEADS = "leads"
EDITABLE_FIELDS = frozenset({"nama", "kontak", "sumber", "status", "catatan"})
DEFAULT_ESTIMATED_DAYS = 7

_LEAD_ROLES = (Role.ADMIN, Role.CS)


class LeadSource(str, Enum):
    WEBSITE = "website"
    REFERRAL = "referral"
    IKLAN = "iklan"
    SOSMED = "sosmed"
    LAINNYA = "lainnya"


class LeadStatus(str, Enum):
    BARU = "baru"
    FOLLOW_UP = "follow_up"
    NEGOSIASI = "negosiasi"
    DEAL = "deal"
    GAGAL = "gagal"


_SOURCES = frozenset(s.value for s in LeadSource)
_STATUSES = frozenset(s.value for s in LeadStatus)


def client_from_lead(lead: Mapping[str, Any]) -> dict[str, Any]:
    """Client row for a converted lead; kontak is an email or a WhatsApp number."""
    kontak = lead["kontak"]
    is_email = "@" in kontak
    return {
        "nama": lead["nama"],
        "bisnis": lead["nama"],
        "email": kontak if is_email else None,
        "whatsapp": None if is_email else kontak,
        "status": ClientStatus.DEAL.value,
        "catatan": f"Dikonversi dari Lead. Sumber: {lead['sumber']}.",
    }


def project_from_lead(
    lead: Mapping[str, Any],
    client_id: UUID,
    harga: Decimal,
    package: Mapping[str, Any] | None,
) -> dict[str, Any]:
    if package is None:
        return {
            "client_id": client_id,
            "nama_proyek": f"Proyek {lead['nama']}",
            "harga": harga,
            "estimasi_hari": DEFAULT_ESTIMATED_DAYS,
        }
    return {
        "client_id": client_id,
        "package_id": package["id"],
        "nama_proyek": f"Proyek {lead['nama']} ({package['nama']})",
        "harga": harga,
        "ruang_lingkup": f"Proyek website berdasarkan paket yang dipilih: {package['nama']}.",
        "estimasi_hari": package.get("estimasi_hari") or DEFAULT_ESTIMATED_DAYS,
    }


@dataclass(frozen=True)
class LeadConversion:
    """Rows written by a successful conversion."""

    client: Row
    project: Row
    lead: Row


class LeadService:
    """Lead pipeline operations for admin and cs."""

    def __init__(self, store: DataStore, projects: ProjectService):
        self.store = store
        self.projects = projects

    async def get(self, lead_id: UUID) -> Row:
        rows = await self.store.select(LEADS, {"id": lead_id}, limit=1)
        if not rows:
            raise NotFoundError(LEADS, lead_id)
        return rows[0]

    async def list_leads(self, ctx: CallerContext, status: str | None = None) -> list[Row]:
        require_roles(ctx, "view leads", *_LEAD_ROLES)
        filters = {"status": status} if status else None
        return await self.store.select(LEADS, filters, order=[Order("created_at", descending=True)])

    def _clean_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        unknown = set(data) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown lead field(s): {', '.join(sorted(unknown))}")
        values = dict(data)
        for name in ("nama", "kontak"):
            if name in values and not (values[name] or "").strip():
                raise ValidationError(f"Lead {name} is required")
        if "sumber" in values and values["sumber"] not in _SOURCES:
            raise ValidationError(f"Unknown lead source '{values['sumber']}'")
        if "status" in values and values["status"] not in _STATUSES:
            raise ValidationError(f"Unknown lead status '{values['status']}'")
        return values

    async def create(self, ctx: CallerContext, data: Mapping[str, Any]) -> Row:
        require_roles(ctx, "create leads", *_LEAD_ROLES)
        values = self._clean_fields(data)
        for name in ("nama", "kontak", "sumber"):
            if name not in values:
                raise ValidationError(f"Lead {name} is required")
        values.setdefault("status", LeadStatus.BARU.value)
        values["created_by"] = ctx.user_id
        return await self.store.insert(LEADS, values)

    async def update(self, ctx: CallerContext, lead_id: UUID, data: Mapping[str, Any]) -> Row:
        require_roles(ctx, "edit leads", *_LEAD_ROLES)
        values = self._clean_fields(data)
        if not values:
            return await self.get(lead_id)
        rows = await self.store.update(LEADS, {"id": lead_id}, values)
        if not rows:
            raise NotFoundError(LEADS, lead_id)
        return rows[0]

    async def delete(self, ctx: CallerContext, lead_id: UUID) -> None:
        require_roles(ctx, "delete leads", *_LEAD_ROLES)
        if not await self.store.delete(LEADS, {"id": lead_id}):
            raise NotFoundError(LEADS, lead_id)

    async def _package(self, package_id: UUID) -> Row:
        rows = await self.store.select("packages", {"id": package_id}, limit=1)
        if not rows:
            raise NotFoundError("packages", package_id)
        if not rows[0]["is_active"]:
            raise ValidationError("Package is not active")
        return rows[0]

    async def convert(
        self,
        ctx: CallerContext,
        lead_id: UUID,
        harga: Any,
        package_id: UUID | None = None,
    ) -> LeadConversion:
        """Turn a lead into a client plus a project in 'briefing'."""
        require_roles(ctx, "convert leads", *_LEAD_ROLES)
        lead = await self.get(lead_id)
        if lead.get("client_id") is not None or lead.get("converted_at") is not None:
            raise ValidationError("Lead has already been converted")
        price = to_decimal(harga)
        if price <= 0:
            raise ValidationError("Project price must be positive")
        package = await self._package(package_id) if package_id is not None else None

        client = await self.store.insert(CLIENTS, {**client_from_lead(lead), "created_by": ctx.user_id})
        logger.info("Lead %s converted to client %s", lead_id, client["id"])

        try:
            created = await self.projects.create(ctx, project_from_lead(lead, client["id"], price, package))
        except DataStoreError as e:
            logger.warning("Project creation failed while converting lead %s: %s", lead_id, e)
            raise PartialFailureError(
                "Client created, but the project could not be created",
                saved=client,
                cause=e,
            ) from e

        try:
            rows = await self.store.update(
                LEADS,
                {"id": lead_id},
                {
                    "status": LeadStatus.DEAL.value,
                    "client_id": client["id"],
                    "converted_at": datetime.now(timezone.utc),
                },
            )
        except DataStoreError as e:
            logger.warning("Lead %s could not be linked to client %s: %s", lead_id, client["id"], e)
            raise PartialFailureError(
                "Client and project created, but the lead could not be marked converted",
                saved=created.row,
                cause=e,
            ) from e
        return LeadConversion(client=client, project=created.row, lead=rows[0] if rows else lead)
