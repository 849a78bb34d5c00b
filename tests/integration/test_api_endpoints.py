"""API endpoint integration tests.

Tests the FastAPI endpoints end to end over SQLite.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from agency_erp.api.app import create_app
from tests.conftest import FailingStore
from tests.integration.conftest import as_user

pytestmark = pytest.mark.asyncio


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.json()["status"] == "alive"


class TestAuthentication:
    async def test_missing_user_header(self, client: AsyncClient):
        response = await client.get("/api/v1/projects")
        assert response.status_code == 401

    async def test_invalid_user_header(self, client: AsyncClient):
        response = await client.get("/api/v1/projects", headers={"X-User-ID": "not-a-uuid"})
        assert response.status_code == 400

    async def test_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/v1/projects", headers={"X-User-ID": str(uuid4())})
        assert response.status_code == 401

    async def test_forbidden_role(self, client: AsyncClient, team):
        response = await client.get("/api/v1/finances", headers=as_user(team.cs))
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"


class TestClientFlow:
    async def test_client_then_project_from_empty_database(self, client: AsyncClient, team):
        created = await client.post(
            "/api/v1/clients", headers=as_user(team.cs), json={"nama": "PT Sinar Jaya", "bisnis": "Distribusi"}
        )
        assert created.status_code == 201
        client_id = created.json()["id"]

        project = await client.post(
            "/api/v1/projects",
            headers=as_user(team.cs),
            json={"client_id": client_id, "nama_proyek": "Website Katalog"},
        )
        assert project.status_code == 201

        blocked = await client.delete(f"/api/v1/clients/{client_id}", headers=as_user(team.admin))
        assert blocked.status_code == 400

    async def test_communication_history(self, client: AsyncClient, team):
        created = await client.post("/api/v1/clients", headers=as_user(team.cs), json={"nama": "Toko Maju"})
        client_id = created.json()["id"]

        note = await client.post(
            f"/api/v1/clients/{client_id}/communications",
            headers=as_user(team.cs),
            json={"notes": "Minta revisi harga", "follow_up_date": "2025-03-01"},
        )
        assert note.status_code == 201

        history = await client.get(f"/api/v1/clients/{client_id}/communications", headers=as_user(team.admin))
        assert [n["notes"] for n in history.json()] == ["Minta revisi harga"]

    async def test_finance_cannot_list_clients(self, client: AsyncClient, team):
        response = await client.get("/api/v1/clients", headers=as_user(team.finance))
        assert response.status_code == 403

    async def test_lead_conversion(self, client: AsyncClient, team):
        lead = await client.post(
            "/api/v1/leads",
            headers=as_user(team.cs),
            json={"nama": "Kopi Senja", "kontak": "halo@kopisenja.test", "sumber": "referral"},
        )
        assert lead.status_code == 201

        converted = await client.post(
            f"/api/v1/leads/{lead.json()['id']}/convert", headers=as_user(team.cs), json={"harga": "2500000"}
        )

        assert converted.status_code == 200
        body = converted.json()
        assert body["client"]["email"] == "halo@kopisenja.test"
        assert body["project"]["client_id"] == body["client"]["id"]
        assert body["lead"]["status"] == "deal"

        again = await client.post(
            f"/api/v1/leads/{lead.json()['id']}/convert", headers=as_user(team.cs), json={"harga": "2500000"}
        )
        assert again.status_code == 400


class TestProjectFlow:
    """Create, assign, complete, then pay the developer."""

    async def test_full_fee_cycle(self, client: AsyncClient, seed, team, notifier):
        customer = await seed.client("CV Berkah")

        created = await client.post(
            "/api/v1/projects",
            headers=as_user(team.cs),
            json={
                "client_id": str(customer["id"]),
                "nama_proyek": "Sistem Kasir",
                "developer_id": str(team.developer.user_id),
                "fee_developer": "2000000",
            },
        )
        assert created.status_code == 201
        body = created.json()
        assert body["warnings"] == []
        project_id = body["data"]["id"]
        assert len(notifier.sent) == 1

        done = await client.post(f"/api/v1/projects/{project_id}/done", headers=as_user(team.developer))
        assert done.status_code == 200
        assert done.json()["data"]["status"] == "selesai"

        again = await client.post(f"/api/v1/projects/{project_id}/done", headers=as_user(team.developer))
        assert again.status_code == 409
        assert again.json()["code"] == "INVALID_TRANSITION"

        stats = await client.get("/api/v1/developers/stats", headers=as_user(team.finance))
        assert stats.status_code == 200
        developer = stats.json()["developers"][0]
        assert Decimal(developer["unpaid_balance"]) == Decimal("2000000")

        payout = await client.post(
            f"/api/v1/developers/{team.developer.user_id}/payout", headers=as_user(team.finance)
        )
        assert payout.json()["status"] == "paid"

        stats = await client.get("/api/v1/developers/stats", headers=as_user(team.finance))
        assert Decimal(stats.json()["totals"]["unpaid"]) == Decimal("0")

        payout = await client.post(
            f"/api/v1/developers/{team.developer.user_id}/payout", headers=as_user(team.finance)
        )
        assert payout.json()["status"] == "nothing_due"

    async def test_missing_project(self, client: AsyncClient, team):
        response = await client.get(f"/api/v1/projects/{uuid4()}", headers=as_user(team.admin))
        assert response.status_code == 404

    async def test_checklist_progress(self, client: AsyncClient, seed, team):
        customer = await seed.client()
        project = await seed.project(customer["id"], developer_id=team.developer.user_id)

        item = await client.post(
            f"/api/v1/projects/{project['id']}/checklist",
            headers=as_user(team.developer),
            json={"title": "Integrasi payment gateway"},
        )
        assert item.status_code == 201

        toggled = await client.patch(
            f"/api/v1/projects/checklist/{item.json()['id']}", headers=as_user(team.developer), json={}
        )
        assert toggled.json()["is_done"] is True

        fetched = await client.get(f"/api/v1/projects/{project['id']}", headers=as_user(team.developer))
        assert fetched.json()["progress"] == 100

    async def test_developer_cannot_read_unassigned_project(self, client: AsyncClient, seed, team):
        customer = await seed.client()
        project = await seed.project(customer["id"])

        fetched = await client.get(f"/api/v1/projects/{project['id']}", headers=as_user(team.developer))
        checklist = await client.get(
            f"/api/v1/projects/{project['id']}/checklist", headers=as_user(team.developer)
        )

        assert fetched.status_code == 403
        assert checklist.status_code == 403


class TestInvoiceFlow:
    async def test_toggle_paid_posts_and_removes_income(self, client: AsyncClient, seed, team):
        customer = await seed.client()
        project = await seed.project(customer["id"])
        created = await client.post(
            "/api/v1/invoices",
            headers=as_user(team.cs),
            json={"project_id": str(project["id"]), "amount": "3000000"},
        )
        assert created.status_code == 201
        invoice_id = created.json()["id"]

        paid = await client.post(f"/api/v1/invoices/{invoice_id}/toggle-paid", headers=as_user(team.finance))
        assert paid.json()["data"]["status"] == "lunas"

        summary = await client.get("/api/v1/finances/summary", headers=as_user(team.finance))
        assert Decimal(summary.json()["total_income"]) == Decimal("3000000")
        assert Decimal(summary.json()["pph_final"]) == Decimal("15000")

        reverted = await client.post(f"/api/v1/invoices/{invoice_id}/toggle-paid", headers=as_user(team.finance))
        assert reverted.json()["data"]["status"] == "menunggu_dp"

        entries = await client.get("/api/v1/finances", headers=as_user(team.admin))
        assert entries.json() == []

    async def test_invalid_amount(self, client: AsyncClient, seed, team):
        customer = await seed.client()
        project = await seed.project(customer["id"])
        response = await client.post(
            "/api/v1/invoices",
            headers=as_user(team.cs),
            json={"project_id": str(project["id"]), "amount": "-5"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestAdsReportFlow:
    async def test_create_and_summarize(self, client: AsyncClient, team):
        created = await client.post(
            "/api/v1/ads-reports",
            headers=as_user(team.admin),
            json={
                "report_date": "2025-02-03",
                "revenue": "2000000",
                "ads_spend": "500000",
                "leads": 10,
                "total_purchase": 2,
            },
        )
        assert created.status_code == 201
        assert created.json()["month"] == "Februari 2025"

        duplicate = await client.post(
            "/api/v1/ads-reports",
            headers=as_user(team.admin),
            json={"report_date": "2025-02-03"},
        )
        assert duplicate.status_code == 400

        summary = await client.get("/api/v1/ads-reports/summary", headers=as_user(team.finance))
        data = summary.json()
        assert Decimal(data["roas"]) == Decimal("4")
        assert Decimal(data["cost_per_lead"]) == Decimal("50000")

        ledger = await client.get("/api/v1/finances", headers=as_user(team.finance), params={"kategori": "iklan"})
        assert len(ledger.json()) == 1

    async def test_partial_failure_response(self, store, notifier, team):
        app = create_app(store=FailingStore(store, {"finances"}), notifier=notifier)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as failing_client:
            response = await failing_client.post(
                "/api/v1/ads-reports",
                headers=as_user(team.admin),
                json={"report_date": "2025-02-04", "ads_spend": "100000"},
            )

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "PARTIAL_FAILURE"
        assert body["saved"]["report_date"] == "2025-02-04"


class TestOutboxDispatch:
    async def test_dispatch_requires_admin(self, client: AsyncClient, team):
        response = await client.post("/api/v1/outbox/dispatch", headers=as_user(team.finance))
        assert response.status_code == 403

    async def test_dispatch_empty(self, client: AsyncClient, team):
        response = await client.post("/api/v1/outbox/dispatch", headers=as_user(team.admin))
        assert response.json() == {"attempted": 0, "sent": 0, "failed": 0, "invalid": 0}
