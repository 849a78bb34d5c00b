"""Tests for project lifecycle: completion, assignment, checklist, archive."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from agency_erp.errors import AuthorizationError, PartialFailureError, ValidationError
from agency_erp.identity import Role
from agency_erp.notifier.base import NotifyResult
from agency_erp.services.container import build_services
from agency_erp.services.project_service import assignment_message, compute_progress, is_in_archive
from agency_erp.services.state_machine import InvalidTransitionError
from tests.conftest import FailingStore, RecordingNotifier, caller


class TestCompletion:
    """Entering selesai realizes the developer fee exactly once."""

    async def test_mark_done_records_fee(self, seed, services, team, store):
        client = await seed.client()
        project = await seed.project(
            client["id"],
            developer_id=team.developer.user_id,
            fee_developer=Decimal("2500000"),
            status="launch",
        )

        result = await services.projects.mark_done(team.cs, project["id"], today=date(2025, 3, 1))

        assert result.row["status"] == "selesai"
        assert result.row["tanggal_selesai"] == date(2025, 3, 1)
        rows = await store.select("developer_payments_tracking")
        assert len(rows) == 1
        assert rows[0]["amount_paid"] == Decimal("2500000")
        assert rows[0]["developer_id"] == team.developer.user_id
        assert rows[0]["notes"] == f"Fee otomatis dari penyelesaian proyek ID: {str(project['id'])[:8]}..."

    async def test_second_completion_rejected(self, seed, services, team, store):
        client = await seed.client()
        project = await seed.project(
            client["id"], developer_id=team.developer.user_id, fee_developer=Decimal("1000000")
        )
        await services.projects.mark_done(team.admin, project["id"])

        with pytest.raises(InvalidTransitionError):
            await services.projects.mark_done(team.admin, project["id"])

        assert len(await store.select("developer_payments_tracking")) == 1

    async def test_reopen_and_complete_again_realizes_again(self, seed, services, team, store):
        """Each completion transition is a new realization."""
        client = await seed.client()
        project = await seed.project(
            client["id"], developer_id=team.developer.user_id, fee_developer=Decimal("1000000")
        )
        await services.projects.mark_done(team.admin, project["id"])
        await services.projects.change_status(team.admin, project["id"], "revisi")
        await services.projects.mark_done(team.admin, project["id"])

        assert len(await store.select("developer_payments_tracking")) == 2

    async def test_no_developer_no_fee_row(self, seed, services, team, store):
        client = await seed.client()
        project = await seed.project(client["id"], fee_developer=Decimal("1000000"))

        result = await services.projects.mark_done(team.admin, project["id"])

        assert result.row["status"] == "selesai"
        assert await store.select("developer_payments_tracking") == []

    async def test_zero_fee_no_fee_row(self, seed, services, team, store):
        client = await seed.client()
        project = await seed.project(client["id"], developer_id=team.developer.user_id)

        await services.projects.mark_done(team.admin, project["id"])

        assert await store.select("developer_payments_tracking") == []

    async def test_completion_sends_no_notification(self, seed, services, team, notifier):
        client = await seed.client()
        project = await seed.project(
            client["id"], developer_id=team.developer.user_id, fee_developer=Decimal("1000000")
        )
        await services.projects.mark_done(team.admin, project["id"])
        assert notifier.sent == []

    async def test_tracking_failure_is_partial(self, seed, store, notifier, team):
        client = await seed.client()
        project = await seed.project(
            client["id"], developer_id=team.developer.user_id, fee_developer=Decimal("1000000")
        )
        failing = build_services(FailingStore(store, {"developer_payments_tracking"}), notifier)

        with pytest.raises(PartialFailureError) as exc_info:
            await failing.projects.mark_done(team.admin, project["id"])

        assert exc_info.value.saved["status"] == "selesai"
        stored = await store.select("projects", {"id": project["id"]})
        assert stored[0]["status"] == "selesai"

    async def test_assigned_developer_may_complete(self, seed, services, team):
        client = await seed.client()
        project = await seed.project(client["id"], developer_id=team.developer.user_id)

        result = await services.projects.mark_done(team.developer, project["id"])

        assert result.row["status"] == "selesai"

    async def test_other_developer_may_not_complete(self, seed, services, team):
        other = await seed.user("Ani Wijaya", Role.DEVELOPER)
        client = await seed.client()
        project = await seed.project(client["id"], developer_id=team.developer.user_id)

        with pytest.raises(AuthorizationError):
            await services.projects.mark_done(caller(other["id"], Role.DEVELOPER), project["id"])

    async def test_finance_may_not_change_status(self, seed, services, team):
        client = await seed.client()
        project = await seed.project(client["id"])
        with pytest.raises(AuthorizationError):
            await services.projects.change_status(team.finance, project["id"], "desain")


class TestAssignmentNotification:
    """Developer gets a WhatsApp message only when assignment changes."""

    async def test_create_with_developer_notifies(self, seed, services, team, notifier):
        client = await seed.client("PT Sinar Jaya")

        result = await services.projects.create(
            team.admin,
            {
                "client_id": client["id"],
                "nama_proyek": "Toko Online",
                "developer_id": team.developer.user_id,
                "tanggal_selesai": date(2025, 4, 9),
            },
        )

        assert result.clean
        assert notifier.sent == [
            (
                "+62 812-3456-7890",
                "👨‍💻 Kamu mendapat tugas baru: *Toko Online* dari *PT Sinar Jaya*. "
                "Deadline: *09 April 2025*. Silakan cek di dashboard developer kamu.",
            )
        ]

    async def test_outbox_records_delivery(self, seed, services, team, store):
        client = await seed.client()
        await services.projects.create(
            team.admin,
            {"client_id": client["id"], "nama_proyek": "Landing Page", "developer_id": team.developer.user_id},
        )

        outbox = await store.select("notification_outbox")
        assert len(outbox) == 1
        assert outbox[0]["kind"] == "project_assigned"
        assert outbox[0]["status"] == "sent"
        assert outbox[0]["attempts"] == 1

    async def test_update_without_developer_change_is_silent(self, seed, services, team, notifier):
        client = await seed.client()
        created = await services.projects.create(
            team.admin,
            {"client_id": client["id"], "nama_proyek": "Landing Page", "developer_id": team.developer.user_id},
        )
        notifier.sent.clear()

        await services.projects.update(
            team.cs,
            created.row["id"],
            {"nama_proyek": "Landing Page v2", "developer_id": team.developer.user_id},
        )

        assert notifier.sent == []

    async def test_reassignment_notifies_new_developer(self, seed, services, team, notifier):
        other = await seed.user("Ani Wijaya", Role.DEVELOPER, phone="6285711112222")
        client = await seed.client()
        created = await services.projects.create(
            team.admin,
            {"client_id": client["id"], "nama_proyek": "Landing Page", "developer_id": team.developer.user_id},
        )
        notifier.sent.clear()

        await services.projects.update(team.admin, created.row["id"], {"developer_id": other["id"]})

        assert [phone for phone, _ in notifier.sent] == ["6285711112222"]

    async def test_first_assignment_by_update_notifies_once(self, seed, services, team, notifier):
        client = await seed.client("PT Sinar Jaya")
        project = await seed.project(client["id"], nama_proyek="Aplikasi Kasir")

        result = await services.projects.update(
            team.cs, project["id"], {"developer_id": team.developer.user_id}
        )

        assert result.clean
        assert len(notifier.sent) == 1
        phone, message = notifier.sent[0]
        assert phone == "+62 812-3456-7890"
        assert "*Aplikasi Kasir* dari *PT Sinar Jaya*" in message

    async def test_missing_phone_is_warning(self, seed, services, team, notifier):
        silent = await seed.user("Tanpa Nomor", Role.DEVELOPER)
        client = await seed.client()

        result = await services.projects.create(
            team.admin,
            {"client_id": client["id"], "nama_proyek": "Landing Page", "developer_id": silent["id"]},
        )

        assert result.row["developer_id"] == silent["id"]
        assert notifier.sent == []
        assert any("no phone number" in w for w in result.warnings)

    async def test_gateway_failure_is_warning(self, seed, store, team):
        failing_channel = RecordingNotifier(NotifyResult(False, "device disconnected"))
        services = build_services(store, failing_channel)
        client = await seed.client()

        result = await services.projects.create(
            team.admin,
            {"client_id": client["id"], "nama_proyek": "Landing Page", "developer_id": team.developer.user_id},
        )

        assert not result.clean
        assert "device disconnected" in result.warnings[0]
        outbox = await store.select("notification_outbox")
        assert outbox[0]["status"] == "failed"
        assert outbox[0]["last_error"] == "device disconnected"

    def test_message_fallbacks(self):
        message = assignment_message(None, None, None)
        assert "*Proyek Baru*" in message
        assert "*Klien Tidak Diketahui*" in message
        assert "*Belum Ditentukan*" in message


class TestProjectCrud:
    async def test_create_requires_name_and_client(self, seed, services, team):
        client = await seed.client()
        with pytest.raises(ValidationError):
            await services.projects.create(team.admin, {"client_id": client["id"], "nama_proyek": ""})
        with pytest.raises(ValidationError):
            await services.projects.create(team.admin, {"nama_proyek": "Tanpa Klien"})

    async def test_developer_cannot_create(self, seed, services, team):
        client = await seed.client()
        with pytest.raises(AuthorizationError):
            await services.projects.create(team.developer, {"client_id": client["id"], "nama_proyek": "X"})

    async def test_update_with_status_runs_completion(self, seed, services, team, store):
        client = await seed.client()
        project = await seed.project(
            client["id"], developer_id=team.developer.user_id, fee_developer=Decimal("750000")
        )

        result = await services.projects.update(
            team.cs, project["id"], {"status": "selesai", "ruang_lingkup": "5 halaman"}
        )

        assert result.row["status"] == "selesai"
        assert result.row["ruang_lingkup"] == "5 halaman"
        assert len(await store.select("developer_payments_tracking")) == 1

    async def test_delete_removes_checklist(self, seed, services, team, store):
        client = await seed.client()
        project = await seed.project(client["id"])
        await services.projects.add_checklist_item(team.cs, project["id"], "Setup hosting")

        await services.projects.delete(team.admin, project["id"])

        assert await store.select("projects") == []
        assert await store.select("project_checklists") == []

    async def test_list_splits_archive(self, seed, services, team):
        client = await seed.client()
        today = date(2025, 6, 1)
        active = await seed.project(client["id"], nama_proyek="Aktif")
        recent = await seed.project(
            client["id"], nama_proyek="Baru Selesai", status="selesai", tanggal_selesai=today - timedelta(days=10)
        )
        old = await seed.project(
            client["id"], nama_proyek="Lama", status="selesai", tanggal_selesai=today - timedelta(days=31)
        )
        manual = await seed.project(client["id"], nama_proyek="Manual")
        await services.projects.set_archived(team.admin, manual["id"], True)

        listing = await services.projects.list_projects(team.admin, today=today)

        assert {p["id"] for p in listing.active} == {active["id"], recent["id"]}
        assert {p["id"] for p in listing.archive} == {old["id"], manual["id"]}

    async def test_developer_lists_only_assigned(self, seed, services, team):
        client = await seed.client()
        mine = await seed.project(client["id"], developer_id=team.developer.user_id)
        await seed.project(client["id"])

        listing = await services.projects.list_projects(team.developer)

        assert [p["id"] for p in listing.active] == [mine["id"]]

    async def test_developer_reads_only_assigned_project(self, seed, services, team):
        client = await seed.client()
        mine = await seed.project(client["id"], developer_id=team.developer.user_id)
        other = await seed.project(client["id"])

        assert (await services.projects.get_for(team.developer, mine["id"]))["id"] == mine["id"]
        with pytest.raises(AuthorizationError):
            await services.projects.get_for(team.developer, other["id"])
        with pytest.raises(AuthorizationError):
            await services.projects.checklist_for(team.developer, other["id"])
        assert await services.projects.checklist_for(team.cs, other["id"]) == []

    async def test_developer_without_user_id_is_rejected(self, seed, services):
        client = await seed.client()
        await seed.project(client["id"])

        with pytest.raises(AuthorizationError):
            await services.projects.list_projects(caller(None, Role.DEVELOPER))

    def test_archive_threshold_boundary(self):
        today = date(2025, 6, 1)
        project = {"status": "selesai", "is_archived": False, "tanggal_selesai": today - timedelta(days=30)}
        assert is_in_archive(project, today) is False
        project["tanggal_selesai"] = today - timedelta(days=31)
        assert is_in_archive(project, today) is True
        assert is_in_archive({**project, "status": "revisi"}, today) is False


class TestChecklist:
    async def test_progress_follows_checklist(self, seed, services, team, store):
        client = await seed.client()
        project = await seed.project(client["id"], developer_id=team.developer.user_id)
        first = await services.projects.add_checklist_item(team.developer, project["id"], "Desain")
        await services.projects.add_checklist_item(team.developer, project["id"], "Coding")
        await services.projects.add_checklist_item(team.developer, project["id"], "Testing")

        await services.projects.toggle_checklist_item(team.developer, first["id"])

        stored = await services.projects.get(project["id"])
        assert stored["progress"] == 33

        await services.projects.delete_checklist_item(team.cs, first["id"])
        stored = await services.projects.get(project["id"])
        assert stored["progress"] == 0

    async def test_unassigned_developer_cannot_edit(self, seed, services, team):
        client = await seed.client()
        project = await seed.project(client["id"])
        with pytest.raises(AuthorizationError):
            await services.projects.add_checklist_item(team.developer, project["id"], "Coding")

    def test_compute_progress(self):
        assert compute_progress(0, 0) == 0
        assert compute_progress(1, 8) == 13
        assert compute_progress(2, 3) == 67
        assert compute_progress(3, 3) == 100
