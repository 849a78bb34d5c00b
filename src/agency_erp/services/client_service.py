"""Clients and their communication history.

Deleting a client removes its communication notes and unlinks any leads
that pointed at it. A client that still has projects cannot be deleted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from agency_erp.errors import NotFoundError, ValidationError
from agency_erp.identity import CallerContext, Role, require_roles
from agency_erp.store.base import DataStore, Order, Row

logger = logging.getLogger(__name__)

CLIENTS = "clients"
COMMUNICATIONS = "communications"

EDITABLE_FIELDS = frozenset(
    {"nama", "bisnis", "email", "phone", "whatsapp", "alamat", "status", "catatan", "renewal_date"}
)

_CLIENT_ROLES = (Role.ADMIN, Role.CS)


class ClientStatus(str, Enum):
    """Stage of the relationship with a client."""

    PROSPEK = "prospek"
    NEGOSIASI = "negosiasi"
    DEAL = "deal"
    AKTIF = "aktif"
    SELESAI = "selesai"


_STATUSES = frozenset(s.value for s in ClientStatus)


def clean_client_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(data) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown client field(s): {', '.join(sorted(unknown))}")
    values = dict(data)
    if "nama" in values and not (values["nama"] or "").strip():
        raise ValidationError("Client name is required")
    if values.get("status") is not None and values["status"] not in _STATUSES:
        raise ValidationError(f"Unknown client status '{values['status']}'")
    return values


class ClientService:
    """Client operations for admin and cs."""

    def __init__(self, store: DataStore):
        self.store = store

    async def get(self, client_id: UUID) -> Row:
        rows = await self.store.select(CLIENTS, {"id": client_id}, limit=1)
        if not rows:
            raise NotFoundError(CLIENTS, client_id)
        return rows[0]

    async def get_for(self, ctx: CallerContext, client_id: UUID) -> Row:
        require_roles(ctx, "view clients", *_CLIENT_ROLES)
        return await self.get(client_id)

    async def list_clients(self, ctx: CallerContext) -> list[Row]:
        require_roles(ctx, "view clients", *_CLIENT_ROLES)
        return await self.store.select(CLIENTS, order=[Order("created_at", descending=True)])

    async def create(self, ctx: CallerContext, data: Mapping[str, Any]) -> Row:
        require_roles(ctx, "create clients", *_CLIENT_ROLES)
        values = clean_client_fields(data)
        if "nama" not in values:
            raise ValidationError("Client name is required")
        values["nama"] = values["nama"].strip()
        values.setdefault("status", ClientStatus.PROSPEK.value)
        values["created_by"] = ctx.user_id

        client = await self.store.insert(CLIENTS, values)
        logger.info("Client %s created", client["id"])
        return client

    async def update(self, ctx: CallerContext, client_id: UUID, data: Mapping[str, Any]) -> Row:
        require_roles(ctx, "edit clients", *_CLIENT_ROLES)
        values = clean_client_fields(data)
        if not values:
            return await self.get(client_id)
        rows = await self.store.update(CLIENTS, {"id": client_id}, values)
        if not rows:
            raise NotFoundError(CLIENTS, client_id)
        return rows[0]

    async def delete(self, ctx: CallerContext, client_id: UUID) -> None:
        """Delete a client, its communications, and unlink its leads."""
        require_roles(ctx, "delete clients", *_CLIENT_ROLES)
        await self.get(client_id)
        projects = await self.store.select("projects", {"client_id": client_id}, limit=1)
        if projects:
            raise ValidationError("Client still has projects; delete or move them first")

        await self.store.delete(COMMUNICATIONS, {"client_id": client_id})
        await self.store.update("leads", {"client_id": client_id}, {"client_id": None})
        await self.store.delete(CLIENTS, {"id": client_id})
        logger.info("Client %s deleted", client_id)

    # Communication history

    async def communications(self, ctx: CallerContext, client_id: UUID) -> list[Row]:
        """Notes for a client, newest first."""
        require_roles(ctx, "view client communications", *_CLIENT_ROLES)
        await self.get(client_id)
        return await self.store.select(
            COMMUNICATIONS, {"client_id": client_id}, order=[Order("created_at", descending=True)]
        )

    async def add_communication(
        self,
        ctx: CallerContext,
        client_id: UUID,
        notes: str,
        subject: str | None = None,
        follow_up_date: date | None = None,
    ) -> Row:
        require_roles(ctx, "record client communications", *_CLIENT_ROLES)
        if not notes or not notes.strip():
            raise ValidationError("Communication notes are required")
        await self.get(client_id)
        return await self.store.insert(
            COMMUNICATIONS,
            {
                "client_id": client_id,
                "subject": subject,
                "notes": notes.strip(),
                "follow_up_date": follow_up_date,
                "created_by": ctx.user_id,
            },
        )
