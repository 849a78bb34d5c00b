"""Project lifecycle: CRUD, status transitions, checklist and archive.

Completing a project realizes the developer fee by appending one row to
developer_payments_tracking. Assigning a developer sends a WhatsApp
notification through the outbox.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from agency_erp.dates import format_long_date
from agency_erp.errors import (
    AuthorizationError,
    DataStoreError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from agency_erp.identity import CallerContext, Role, require_roles
from agency_erp.money import to_decimal
from agency_erp.services.fee_tracking import FeeTrackingService
from agency_erp.services.outbox import NotificationKind, NotificationOutbox
from agency_erp.services.results import OperationResult
from agency_erp.services.state_machine import ProjectStateMachine, ProjectStatus
from agency_erp.store.base import DataStore, Order, Row

logger = logging.getLogger(__name__)

PROJECTS = "projects"
CHECKLISTS = "project_checklists"
DEFAULT_ARCHIVE_THRESHOLD_DAYS = 30

EDITABLE_FIELDS = frozenset(
    {
        "client_id",
        "package_id",
        "nama_proyek",
        "harga",
        "ruang_lingkup",
        "developer_id",
        "fee_developer",
        "tanggal_mulai",
        "tanggal_selesai",
        "estimasi_hari",
    }
)

_ASSIGNMENT_TEMPLATE = (
    "👨‍💻 Kamu mendapat tugas baru: *{project}* dari *{client}*. "
    "Deadline: *{deadline}*. Silakan cek di dashboard developer kamu."
)


def assignment_message(project_name: str | None, client_name: str | None, deadline: date | None) -> str:
    return _ASSIGNMENT_TEMPLATE.format(
        project=project_name or "Proyek Baru",
        client=client_name or "Klien Tidak Diketahui",
        deadline=format_long_date(deadline) if deadline else "Belum Ditentukan",
    )


def compute_progress(done: int, total: int) -> int:
    """Percentage of checklist items done, rounded half up."""
    if total <= 0:
        return 0
    return math.floor(done * 100 / total + 0.5)


def is_in_archive(
    project: Mapping[str, Any],
    today: date,
    threshold_days: int = DEFAULT_ARCHIVE_THRESHOLD_DAYS,
) -> bool:
    """Archived manually, or finished more than threshold_days ago."""
    if project.get("is_archived"):
        return True
    if project.get("status") != ProjectStatus.SELESAI:
        return False
    finished = project.get("tanggal_selesai")
    if finished is None:
        return False
    if isinstance(finished, datetime):
        finished = finished.date()
    return (today - finished).days > threshold_days


@dataclass
class ProjectListing:
    """Projects split into the active board and the archive."""

    active: list[Row] = field(default_factory=list)
    archive: list[Row] = field(default_factory=list)


class ProjectService:
    """Project operations with role checks and side effects."""

    def __init__(
        self,
        store: DataStore,
        fee_tracking: FeeTrackingService,
        outbox: NotificationOutbox,
        archive_threshold_days: int = DEFAULT_ARCHIVE_THRESHOLD_DAYS,
    ):
        self.store = store
        self.fee_tracking = fee_tracking
        self.outbox = outbox
        self.archive_threshold_days = archive_threshold_days

    async def get(self, project_id: UUID) -> Row:
        rows = await self.store.select(PROJECTS, {"id": project_id}, limit=1)
        if not rows:
            raise NotFoundError(PROJECTS, project_id)
        return rows[0]

    async def get_for(self, ctx: CallerContext, project_id: UUID) -> Row:
        """Project as seen by the caller; developers only see their own."""
        project = await self.get(project_id)
        self._require_participant(ctx, project, "view this project")
        return project

    def _require_manager(self, ctx: CallerContext, action: str) -> None:
        require_roles(ctx, action, Role.ADMIN, Role.CS)

    def _require_participant(self, ctx: CallerContext, project: Row, action: str) -> None:
        """Admin, cs, or the developer assigned to this project."""
        if ctx.has_any(Role.ADMIN, Role.CS):
            return
        if (
            ctx.has_any(Role.DEVELOPER)
            and ctx.user_id is not None
            and project.get("developer_id") == ctx.user_id
        ):
            return
        raise AuthorizationError(action, ("admin", "cs", "assigned developer"))

    async def list_projects(self, ctx: CallerContext, today: date | None = None) -> ProjectListing:
        """Projects visible to the caller, newest first.

        A caller who is only a developer sees the projects assigned to them.
        """
        require_roles(ctx, "view projects", Role.ADMIN, Role.CS, Role.DEVELOPER)
        filters: dict[str, Any] = {}
        if not ctx.has_any(Role.ADMIN, Role.CS):
            if ctx.user_id is None:
                raise AuthorizationError("view projects", ("admin", "cs", "assigned developer"))
            filters["developer_id"] = ctx.user_id
        rows = await self.store.select(
            PROJECTS, filters or None, order=[Order("created_at", descending=True)]
        )

        today = today or date.today()
        listing = ProjectListing()
        for row in rows:
            if is_in_archive(row, today, self.archive_threshold_days):
                listing.archive.append(row)
            else:
                listing.active.append(row)
        return listing

    def _clean_fields(self, data: Mapping[str, Any]) -> dict[str, Any]:
        unknown = set(data) - EDITABLE_FIELDS - {"status"}
        if unknown:
            raise ValidationError(f"Unknown project field(s): {', '.join(sorted(unknown))}")
        values = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        if "fee_developer" in values and values["fee_developer"] is not None:
            if to_decimal(values["fee_developer"]) < 0:
                raise ValidationError("Developer fee cannot be negative")
        if "harga" in values and to_decimal(values["harga"]) < 0:
            raise ValidationError("Project price cannot be negative")
        return values

    async def create(self, ctx: CallerContext, data: Mapping[str, Any]) -> OperationResult:
        """Create a project and notify the assigned developer, if any."""
        self._require_manager(ctx, "create projects")
        values = self._clean_fields(data)
        if not values.get("nama_proyek"):
            raise ValidationError("Project name is required")
        if not values.get("client_id"):
            raise ValidationError("Client is required")

        status = data.get("status") or ProjectStatus.BRIEFING.value
        if status not in ProjectStateMachine.VALID_TRANSITIONS:
            raise ValidationError(f"Unknown project status '{status}'")
        values["status"] = status

        project = await self.store.insert(PROJECTS, values)
        logger.info("Project %s created", project["id"])

        result = OperationResult(row=project)
        if project.get("developer_id"):
            await self._notify_assignment(project, result.warnings)
        return result

    async def update(
        self,
        ctx: CallerContext,
        project_id: UUID,
        data: Mapping[str, Any],
        today: date | None = None,
    ) -> OperationResult:
        """Edit project fields.

        A status change in the payload goes through change_status so the
        completion side effects apply exactly as for the status control.
        """
        self._require_manager(ctx, "edit projects")
        previous = await self.get(project_id)
        values = self._clean_fields(data)

        status = data.get("status")
        if status is not None and status not in ProjectStateMachine.VALID_TRANSITIONS:
            raise ValidationError(f"Unknown project status '{status}'")

        project = previous
        if values:
            rows = await self.store.update(PROJECTS, {"id": project_id}, values)
            if not rows:
                raise NotFoundError(PROJECTS, project_id)
            project = rows[0]

        result = OperationResult(row=project)
        new_developer = project.get("developer_id")
        if new_developer and new_developer != previous.get("developer_id"):
            await self._notify_assignment(project, result.warnings)

        if status is not None and status != project["status"]:
            transition = await self.change_status(ctx, project_id, status, today=today)
            result.row = transition.row
            result.warnings.extend(transition.warnings)
        return result

    async def change_status(
        self,
        ctx: CallerContext,
        project_id: UUID,
        new_status: str,
        today: date | None = None,
    ) -> OperationResult:
        """Move a project to another status.

        Entering 'selesai' stamps tanggal_selesai and realizes the
        developer fee when one is assigned.
        """
        project = await self.get(project_id)
        self._require_participant(ctx, project, "change project status")
        old_status = project["status"]
        ProjectStateMachine.validate_transition(old_status, new_status)

        today = today or date.today()
        patch: dict[str, Any] = {"status": new_status}
        completing = ProjectStateMachine.is_completion(old_status, new_status)
        if completing:
            patch["tanggal_selesai"] = today

        rows = await self.store.update(PROJECTS, {"id": project_id}, patch)
        if not rows:
            raise NotFoundError(PROJECTS, project_id)
        updated = rows[0]
        logger.info("Project %s: %s -> %s", project_id, old_status, new_status)

        if completing:
            await self._realize_fee(updated)
        return OperationResult(row=updated)

    async def mark_done(
        self, ctx: CallerContext, project_id: UUID, today: date | None = None
    ) -> OperationResult:
        return await self.change_status(ctx, project_id, ProjectStatus.SELESAI.value, today=today)

    async def _realize_fee(self, project: Row) -> None:
        fee = to_decimal(project.get("fee_developer"))
        developer_id = project.get("developer_id")
        if fee <= 0 or developer_id is None:
            return
        try:
            await self.fee_tracking.record_fee_realized(
                project_id=project["id"],
                developer_id=developer_id,
                amount=fee,
                paid_at=datetime.now(timezone.utc),
            )
        except DataStoreError as e:
            logger.warning("Fee tracking failed for completed project %s: %s", project["id"], e)
            raise PartialFailureError(
                "Project status updated, but the developer fee could not be recorded",
                saved=project,
                cause=e,
            ) from e

    async def _notify_assignment(self, project: Row, warnings: list[str]) -> None:
        """Send the new-task message to the assigned developer."""
        try:
            profiles = await self.store.select("profiles", {"id": project["developer_id"]}, limit=1)
            clients = await self.store.select("clients", {"id": project["client_id"]}, limit=1)
        except DataStoreError as e:
            logger.warning("Could not resolve assignment recipients for %s: %s", project["id"], e)
            warnings.append("Assignment notification skipped: recipient lookup failed.")
            return

        if not profiles:
            warnings.append("Assignment notification skipped: developer profile not found.")
            return
        developer = profiles[0]
        if not developer.get("phone"):
            warnings.append(
                f"Developer {developer['full_name']} has no phone number; "
                "assignment notification not sent."
            )
            return

        client_name = clients[0]["nama"] if clients else None
        message = assignment_message(project.get("nama_proyek"), client_name, project.get("tanggal_selesai"))
        sent = await self.outbox.notify(
            NotificationKind.PROJECT_ASSIGNED,
            developer["phone"],
            message,
            reference=str(project["id"]),
        )
        if not sent.success:
            logger.warning("Assignment notification for %s failed: %s", project["id"], sent.message)
            warnings.append(f"Assignment notification failed: {sent.message}")

    async def set_archived(self, ctx: CallerContext, project_id: UUID, archived: bool) -> Row:
        self._require_manager(ctx, "archive projects")
        rows = await self.store.update(PROJECTS, {"id": project_id}, {"is_archived": archived})
        if not rows:
            raise NotFoundError(PROJECTS, project_id)
        return rows[0]

    async def delete(self, ctx: CallerContext, project_id: UUID) -> None:
        """Delete a project and its checklist."""
        self._require_manager(ctx, "delete projects")
        await self.get(project_id)
        await self.store.delete(CHECKLISTS, {"project_id": project_id})
        await self.store.delete(PROJECTS, {"id": project_id})
        logger.info("Project %s deleted", project_id)

    # Checklist

    async def checklist(self, project_id: UUID) -> list[Row]:
        return await self.store.select(CHECKLISTS, {"project_id": project_id}, order=[Order("created_at")])

    async def checklist_for(self, ctx: CallerContext, project_id: UUID) -> list[Row]:
        project = await self.get(project_id)
        self._require_participant(ctx, project, "view the project checklist")
        return await self.checklist(project_id)

    async def _checklist_item(self, item_id: UUID) -> Row:
        rows = await self.store.select(CHECKLISTS, {"id": item_id}, limit=1)
        if not rows:
            raise NotFoundError(CHECKLISTS, item_id)
        return rows[0]

    async def recompute_progress(self, project_id: UUID) -> int:
        """Store and return the checklist completion percentage."""
        items = await self.checklist(project_id)
        progress = compute_progress(sum(1 for i in items if i["is_done"]), len(items))
        await self.store.update(PROJECTS, {"id": project_id}, {"progress": progress})
        return progress

    async def add_checklist_item(self, ctx: CallerContext, project_id: UUID, title: str) -> Row:
        project = await self.get(project_id)
        self._require_participant(ctx, project, "edit the project checklist")
        if not title or not title.strip():
            raise ValidationError("Checklist title is required")
        item = await self.store.insert(
            CHECKLISTS,
            {"project_id": project_id, "title": title.strip(), "is_done": False, "updated_by": ctx.user_id},
        )
        await self.recompute_progress(project_id)
        return item

    async def toggle_checklist_item(
        self, ctx: CallerContext, item_id: UUID, is_done: bool | None = None
    ) -> Row:
        """Set an item's done flag; flips it when is_done is None."""
        item = await self._checklist_item(item_id)
        project = await self.get(item["project_id"])
        self._require_participant(ctx, project, "edit the project checklist")
        done = (not item["is_done"]) if is_done is None else is_done
        rows = await self.store.update(
            CHECKLISTS, {"id": item_id}, {"is_done": done, "updated_by": ctx.user_id}
        )
        await self.recompute_progress(item["project_id"])
        return rows[0]

    async def delete_checklist_item(self, ctx: CallerContext, item_id: UUID) -> None:
        item = await self._checklist_item(item_id)
        project = await self.get(item["project_id"])
        self._require_participant(ctx, project, "edit the project checklist")
        await self.store.delete(CHECKLISTS, {"id": item_id})
        await self.recompute_progress(item["project_id"])
