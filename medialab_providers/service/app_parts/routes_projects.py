"""Project workspace endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from .deps import ServiceContainer, get_container, get_user_id
from .schemas import ProjectBody, ProjectPatchBody

router = APIRouter(prefix="/api/projects")


@router.get("")
def list_projects(
    include_archived: bool = False,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    projects = services.projects.list(user_id, include_archived=include_archived)
    return {"ok": True, "projects": [p.to_dict() for p in projects]}


@router.post("", status_code=201)
def create_project(
    body: ProjectBody,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    project = services.projects.create(
        user_id,
        body.name,
        description=body.description,
        budget_cents=body.budget_cents,
        settings=body.settings,
    )
    return {"ok": True, "project": project.to_dict()}


@router.get("/{project_id}")
def get_project(
    project_id: str,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    return {"ok": True, "project": services.projects.get(user_id, project_id).to_dict()}


@router.patch("/{project_id}")
def patch_project(
    project_id: str,
    body: ProjectPatchBody,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    changes = body.model_dump(exclude_unset=True)
    project = services.projects.update(user_id, project_id, changes)
    return {"ok": True, "project": project.to_dict()}


@router.delete("/{project_id}")
def archive_project(
    project_id: str,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    services.projects.archive(user_id, project_id)
    return {"ok": True, "archived": project_id}


@router.get("/{project_id}/stats")
def get_project_stats(
    project_id: str,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    return {"ok": True, "stats": services.projects.stats(user_id, project_id)}
