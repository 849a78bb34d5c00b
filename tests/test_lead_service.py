"""Tests for leads and lead conversion."""

from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio

from agency_erp.errors import AuthorizationError, NotFoundError, PartialFailureError, ValidationError
from agency_erp.services.container import build_services
from agency_erp.services.lead_service import client_from_lead
from tests.conftest import FailingStore


@pytest_asyncio.fixture
async def lead(services, team):
    return await services.leads.create(
        team.cs, {"nama": "Kopi Senja", "kontak": "6281399998888", "sumber": "iklan"}
    )


@pytest_asyncio.fixture
async def package(store):
    return await store.insert(
        "packages",
        {"nama": "Company Profile", "harga": Decimal("3500000"), "estimasi_hari": 14, "is_active": True},
    )


class TestLeadCrud:
    async def test_create_defaults_to_new(self, lead, team):
        assert lead["status"] == "baru"
        assert lead["created_by"] == team.cs.user_id

    async def test_invalid_source_rejected(self, services, team):
        with pytest.raises(ValidationError):
            await services.leads.create(team.cs, {"nama": "A", "kontak": "0812", "sumber": "tiktok"})

    async def test_missing_contact_rejected(self, services, team):
        with pytest.raises(ValidationError):
            await services.leads.create(team.cs, {"nama": "A", "sumber": "website"})

    async def test_filter_by_status(self, services, team, lead):
        await services.leads.update(team.cs, lead["id"], {"status": "follow_up"})

        assert [row["id"] for row in await services.leads.list_leads(team.admin, "follow_up")] == [lead["id"]]
        assert await services.leads.list_leads(team.admin, "baru") == []

    async def test_delete_missing_lead(self, services, team):
        with pytest.raises(NotFoundError):
            await services.leads.delete(team.cs, uuid4())

    async def test_finance_cannot_manage_leads(self, services, team):
        with pytest.raises(AuthorizationError):
            await services.leads.list_leads(team.finance)


class TestLeadConversion:
    async def test_convert_with_package(self, services, team, lead, package, store):
        conversion = await services.leads.convert(team.cs, lead["id"], Decimal("4000000"), package["id"])

        assert conversion.client["nama"] == "Kopi Senja"
        assert conversion.client["whatsapp"] == "6281399998888"
        assert conversion.client["email"] is None
        assert conversion.client["status"] == "deal"
        assert conversion.client["catatan"] == "Dikonversi dari Lead. Sumber: iklan."

        project = conversion.project
        assert project["nama_proyek"] == "Proyek Kopi Senja (Company Profile)"
        assert project["client_id"] == conversion.client["id"]
        assert project["package_id"] == package["id"]
        assert project["harga"] == Decimal("4000000")
        assert project["status"] == "briefing"
        assert project["estimasi_hari"] == 14

        assert conversion.lead["status"] == "deal"
        assert conversion.lead["client_id"] == conversion.client["id"]
        assert conversion.lead["converted_at"] is not None
        assert len(await store.select("projects")) == 1

    async def test_convert_without_package(self, services, team, lead):
        conversion = await services.leads.convert(team.admin, lead["id"], Decimal("1500000"))

        assert conversion.project["nama_proyek"] == "Proyek Kopi Senja"
        assert conversion.project["package_id"] is None
        assert conversion.project["estimasi_hari"] == 7

    async def test_second_conversion_rejected(self, services, team, lead, store):
        await services.leads.convert(team.admin, lead["id"], Decimal("1500000"))

        with pytest.raises(ValidationError):
            await services.leads.convert(team.admin, lead["id"], Decimal("1500000"))
        assert len(await store.select("clients")) == 1

    async def test_non_positive_price_writes_nothing(self, services, team, lead, store):
        with pytest.raises(ValidationError):
            await services.leads.convert(team.admin, lead["id"], Decimal("0"))
        assert await store.select("clients") == []

    async def test_inactive_package_rejected(self, services, team, lead, store):
        retired = await store.insert(
            "packages", {"nama": "Lama", "harga": Decimal("1000000"), "is_active": False}
        )
        with pytest.raises(ValidationError):
            await services.leads.convert(team.admin, lead["id"], Decimal("1000000"), retired["id"])
        assert await store.select("clients") == []

    async def test_project_failure_is_partial(self, store, notifier, team, lead):
        failing = build_services(FailingStore(store, {"projects"}), notifier)

        with pytest.raises(PartialFailureError) as exc_info:
            await failing.leads.convert(team.admin, lead["id"], Decimal("1500000"))

        assert exc_info.value.saved["nama"] == "Kopi Senja"
        stored = await store.select("leads", {"id": lead["id"]})
        assert stored[0]["client_id"] is None

    def test_email_contact_goes_to_email(self):
        client = client_from_lead({"nama": "Studio A", "kontak": "halo@studio.test", "sumber": "referral"})
        assert client["email"] == "halo@studio.test"
        assert client["whatsapp"] is None
