"""Caller identity and role enforcement.

The caller context is passed explicitly into every core operation; the
services check roles themselves instead of relying on the UI to hide
controls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

from agency_erp.errors import AuthorizationError
from agency_erp.store.base import DataStore


class Role(str, Enum):
    """User roles."""

    ADMIN = "admin"
    CS = "cs"
    DEVELOPER = "developer"
    FINANCE = "finance"


@dataclass(frozen=True)
class CallerContext:
    """Who is invoking an operation."""

    user_id: UUID | None
    roles: frozenset[Role] = field(default_factory=frozenset)
    email: str | None = None

    def has_any(self, *roles: Role) -> bool:
        """Check if caller holds at least one of the roles."""
        return any(role in self.roles for role in roles)

    @property
    def is_full_access(self) -> bool:
        """Admin and finance see every developer's figures."""
        return self.has_any(Role.ADMIN, Role.FINANCE)


def require_roles(ctx: CallerContext, action: str, *roles: Role) -> None:
    """Raise AuthorizationError unless caller holds one of the roles."""
    if not ctx.has_any(*roles):
        raise AuthorizationError(action, tuple(r.value for r in roles))


class IdentityProvider(Protocol):
    """Protocol for identity lookups."""

    async def current_user(self, user_id: UUID) -> dict[str, Any] | None:
        """Return {id, email, full_name} for a user, or None."""
        ...

    async def roles_for(self, user_id: UUID) -> list[Role]:
        """Return roles held by the user."""
        ...


class StoreIdentityProvider:
    """Identity lookups backed by the profiles and user_roles collections."""

    def __init__(self, store: DataStore):
        self.store = store

    async def current_user(self, user_id: UUID) -> dict[str, Any] | None:
        rows = await self.store.select("profiles", {"id": user_id}, limit=1)
        if not rows:
            return None
        profile = rows[0]
        return {"id": profile["id"], "email": profile.get("email"), "full_name": profile["full_name"]}

    async def roles_for(self, user_id: UUID) -> list[Role]:
        rows = await self.store.select("user_roles", {"user_id": user_id})
        return [Role(r["role"]) for r in rows]

    async def resolve(self, user_id: UUID) -> CallerContext | None:
        """Build a caller context, or None if the user is unknown."""
        user = await self.current_user(user_id)
        if user is None:
            return None
        roles = await self.roles_for(user_id)
        return CallerContext(user_id=user_id, roles=frozenset(roles), email=user["email"])
