"""Pytest fixtures for agency ERP tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio

from agency_erp.database import create_schema, get_engine, make_session_factory
from agency_erp.errors import DataStoreError
from agency_erp.identity import CallerContext, Role
from agency_erp.notifier.base import NotifyResult
from agency_erp.services.container import Services, build_services
from agency_erp.store.sql import SqlDataStore

# In-memory SQLite shared through a StaticPool; fresh per test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingNotifier:
    """Notifier that records messages instead of calling the gateway."""

    def __init__(self, result: NotifyResult | None = None):
        self.sent: list[tuple[str, str]] = []
        self.result = result or NotifyResult(True, "sent")

    async def send(self, phone: str, message: str) -> NotifyResult:
        self.sent.append((phone, message))
        return self.result


class FailingStore:
    """Wraps a store and fails inserts or selects on selected collections."""

    def __init__(
        self,
        inner: SqlDataStore,
        fail_inserts: set[str] | None = None,
        fail_selects: set[str] | None = None,
    ):
        self.inner = inner
        self.fail_inserts = fail_inserts or set()
        self.fail_selects = fail_selects or set()

    async def insert(self, collection: str, row: Any) -> dict[str, Any]:
        if collection in self.fail_inserts:
            raise DataStoreError("insert", collection, "simulated outage")
        return await self.inner.insert(collection, row)

    async def update(self, collection: str, filters: Any, patch: Any) -> list[dict[str, Any]]:
        return await self.inner.update(collection, filters, patch)

    async def delete(self, collection: str, filters: Any) -> int:
        return await self.inner.delete(collection, filters)

    async def select(self, collection: str, filters: Any = None, order: Any = (), limit: Any = None):
        if collection in self.fail_selects:
            raise DataStoreError("select", collection, "simulated outage")
        return await self.inner.select(collection, filters, order, limit)


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[SqlDataStore, None]:
    """Data store on a fresh in-memory database."""
    engine = get_engine(TEST_DATABASE_URL)
    await create_schema(engine)
    yield SqlDataStore(make_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def services(store: SqlDataStore, notifier: RecordingNotifier) -> Services:
    return build_services(store, notifier)


def caller(user_id: UUID | None, *roles: Role) -> CallerContext:
    return CallerContext(user_id=user_id, roles=frozenset(roles))


@dataclass
class Seed:
    """Helpers for inserting base rows."""

    store: SqlDataStore

    async def user(self, full_name: str, *roles: Role, phone: str | None = None) -> dict[str, Any]:
        profile = await self.store.insert(
            "profiles",
            {"full_name": full_name, "email": f"{full_name.split()[0].lower()}@agency.test", "phone": phone},
        )
        for role in roles:
            await self.store.insert("user_roles", {"user_id": profile["id"], "role": role.value})
        return profile

    async def client(self, nama: str = "Toko Maju") -> dict[str, Any]:
        return await self.store.insert("clients", {"nama": nama, "bisnis": "Retail"})

    async def project(
        self,
        client_id: UUID,
        *,
        nama_proyek: str = "Website Company Profile",
        developer_id: UUID | None = None,
        fee_developer: Decimal | None = None,
        status: str = "briefing",
        tanggal_selesai: date | None = None,
    ) -> dict[str, Any]:
        return await self.store.insert(
            "projects",
            {
                "client_id": client_id,
                "nama_proyek": nama_proyek,
                "harga": Decimal("10000000"),
                "developer_id": developer_id,
                "fee_developer": fee_developer,
                "status": status,
                "tanggal_selesai": tanggal_selesai,
            },
        )

    async def invoice(
        self,
        project_id: UUID,
        amount: Decimal = Decimal("5000000"),
        status: str = "menunggu_dp",
        number: str = "INV-20250101-1234",
    ) -> dict[str, Any]:
        return await self.store.insert(
            "invoices",
            {"project_id": project_id, "invoice_number": number, "amount": amount, "status": status},
        )


@pytest.fixture
def seed(store: SqlDataStore) -> Seed:
    return Seed(store)


@dataclass
class Team:
    """Standard set of users for role-based tests."""

    admin: CallerContext
    cs: CallerContext
    finance: CallerContext
    developer: CallerContext
    developer_profile: dict[str, Any]


@pytest_asyncio.fixture
async def team(seed: Seed) -> Team:
    admin = await seed.user("Admin Agency", Role.ADMIN)
    cs = await seed.user("Citra Service", Role.CS)
    finance = await seed.user("Fina Keuangan", Role.FINANCE)
    dev = await seed.user("Budi Santoso", Role.DEVELOPER, phone="+62 812-3456-7890")
    return Team(
        admin=caller(admin["id"], Role.ADMIN),
        cs=caller(cs["id"], Role.CS),
        finance=caller(finance["id"], Role.FINANCE),
        developer=caller(dev["id"], Role.DEVELOPER),
        developer_profile=dev,
    )
