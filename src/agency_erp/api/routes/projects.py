"""Project API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from agency_erp.api.dependencies import Caller, ServicesDep
from agency_erp.api.schemas import (
    ArchiveRequest,
    ChecklistCreate,
    ChecklistItemResponse,
    ChecklistToggle,
    ErrorResponse,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectResult,
    ProjectUpdate,
    StatusChange,
)
from agency_erp.services.results import OperationResult

router = APIRouter(prefix="/projects", tags=["projects"])

_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _result(result: OperationResult) -> ProjectResult:
    return ProjectResult(
        data=ProjectResponse.model_validate(result.row),
        warnings=result.warnings,
    )


# ============================================================================
# Project CRUD
# ============================================================================


@router.get("", response_model=ProjectListResponse, responses=_ERRORS)
async def list_projects(
    services: ServicesDep,
    caller: Caller,
    today: Annotated[date | None, Query()] = None,
) -> ProjectListResponse:
    """List projects split into the active board and the archive."""
    listing = await services.projects.list_projects(caller, today=today)
    return ProjectListResponse(
        active=[ProjectResponse.model_validate(p) for p in listing.active],
        archive=[ProjectResponse.model_validate(p) for p in listing.archive],
    )


@router.post("", response_model=ProjectResult, status_code=status.HTTP_201_CREATED, responses=_ERRORS)
async def create_project(services: ServicesDep, caller: Caller, payload: ProjectCreate) -> ProjectResult:
    """Create a project; notifies the assigned developer."""
    result = await services.projects.create(caller, payload.model_dump(exclude_none=True))
    return _result(result)


@router.get("/{project_id}", response_model=ProjectResponse, responses=_ERRORS)
async def get_project(
    services: ServicesDep,
    caller: Caller,
    project_id: Annotated[UUID, Path()],
) -> ProjectResponse:
    project = await services.projects.get_for(caller, project_id)
    return ProjectResponse.model_validate(project)


@router.patch("/{project_id}", response_model=ProjectResult, responses=_ERRORS)
async def update_project(
    services: ServicesDep,
    caller: Caller,
    project_id: Annotated[UUID, Path()],
    payload: ProjectUpdate,
) -> ProjectResult:
    """Edit a project. Only the fields sent are changed."""
    result = await services.projects.update(caller, project_id, payload.model_dump(exclude_unset=True))
    return _result(result)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS)
async def delete_project(
    services: ServicesDep,
    caller: Caller,
    project_id: Annotated[UUID, Path()],
) -> None:
    await services.projects.delete(caller, project_id)


# ============================================================================
# Status and archive
# ============================================================================


@router.post("/{project_id}/status", response_model=ProjectResult, responses=_ERRORS)
async def change_project_status(
    services: ServicesDep,
    caller: Caller,
    project_id: Annotated[UUID, Path()],
    payload: StatusChange,
) -> ProjectResult:
    """Move a project to another status."""
    result = await services.projects.change_status(caller, project_id, payload.status)
    return _result(result)


@router.post("/{project_id}/done", response_model=ProjectResult, responses=_ERRORS)
async def mark_project_done(
    services: ServicesDep,
    caller: Caller,
    project_id: Annotated[UUID, Path()],
) -> ProjectResult:
    """Complete a project and realize the developer fee."""
    result = await services.projects.mark_done(caller, project_id)
    return _result(result)


@router.post("/{project_id}/archive", response_model=ProjectResponse, responses=_ERRORS)
async def archive_project(
    services: ServicesDep,
    caller: Caller,
    project_id: Annotated[UUID, Path()],
    payload: ArchiveRequest,
) -> ProjectResponse:
    project = await services.projects.set_archived(caller, project_id, payload.archived)
    return ProjectResponse.model_validate(project)


# ============================================================================
# Checklist
# ============================================================================


@router.get("/{project_id}/checklist", response_model=list[ChecklistItemResponse], responses=_ERRORS)
async def list_checklist(
    services: ServicesDep,
    caller: Caller,
    project_id: Annotated[UUID, Path()],
) -> list[ChecklistItemResponse]:
    items = await services.projects.checklist_for(caller, project_id)
    return [ChecklistItemResponse.model_validate(i) for i in items]


@router.post(
    "/{project_id}/checklist",
    response_model=ChecklistItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def add_checklist_item(
    services: ServicesDep,
    caller: Caller,
    project_id: Annotated[UUID, Path()],
    payload: ChecklistCreate,
) -> ChecklistItemResponse:
    item = await services.projects.add_checklist_item(caller, project_id, payload.title)
    return ChecklistItemResponse.model_validate(item)


@router.patch("/checklist/{item_id}", response_model=ChecklistItemResponse, responses=_ERRORS)
async def toggle_checklist_item(
    services: ServicesDep,
    caller: Caller,
    item_id: Annotated[UUID, Path()],
    payload: ChecklistToggle,
) -> ChecklistItemResponse:
    item = await services.projects.toggle_checklist_item(caller, item_id, payload.is_done)
    return ChecklistItemResponse.model_validate(item)


@router.delete("/checklist/{item_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS)
async def delete_checklist_item(
    services: ServicesDep,
    caller: Caller,
    item_id: Annotated[UUID, Path()],
) -> None:
    await services.projects.delete_checklist_item(caller, item_id)
