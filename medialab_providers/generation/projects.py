"""Project workspace operations.

Projects group generations under a tracked budget. Budgets are recorded and
reported, never enforced. All reads and writes are scoped to the caller:
another user's project raises ``ForbiddenError``, a missing one
``NotFoundError``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..base.errors import ForbiddenError, NotFoundError, ValidationError
from ..base.logging import LogContext, get_logger, log_event
from ..persistence import UowFactory, sqlite_uow_factory
from ..persistence.interfaces import IUnitOfWork, Project

_logger = get_logger("projects")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_name(name: Any) -> str:
    value = str(name or "").strip()
    if not value:
        raise ValidationError("name is required", field="name")
    if len(value) > 255:
        raise ValidationError("name must be at most 255 characters", field="name")
    return value


def _clean_budget(value: Any) -> int:
    try:
        cents = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("budget_cents must be an integer", field="budget_cents") from exc
    if cents < 0:
        raise ValidationError("budget_cents must be >= 0", field="budget_cents")
    return cents


def owned_project(uow: IUnitOfWork, project_id: str, user_id: str) -> Project:
    """Load ``project_id`` inside ``uow`` and check that ``user_id`` owns it."""
    project = uow.projects.get(project_id)
    if project is None:
        raise NotFoundError("Project not found", project_id=project_id)
    if project.user_id != user_id:
        raise ForbiddenError("Project belongs to another user", project_id=project_id)
    return project


class ProjectService:
    def __init__(self, uow_factory: Optional[UowFactory] = None) -> None:
        self._uow_factory = uow_factory or sqlite_uow_factory()

    def create(
        self,
        user_id: str,
        name: str,
        *,
        description: Optional[str] = None,
        budget_cents: int = 0,
        settings: Optional[Dict[str, Any]] = None,
    ) -> Project:
        project = Project(
            id="",
            user_id=user_id,
            name=_clean_name(name),
            description=description,
            budget_cents=_clean_budget(budget_cents),
            settings=dict(settings or {}),
        )
        with self._uow_factory() as uow:
            uow.projects.add(project)
        log_event(_logger, "projects.create", LogContext(user_id=user_id), project_id=project.id)
        return project

    def list(self, user_id: str, *, include_archived: bool = False) -> List[Project]:
        with self._uow_factory() as uow:
            return uow.projects.list_for_user(user_id, include_archived=include_archived)

    def get(self, user_id: str, project_id: str) -> Project:
        with self._uow_factory() as uow:
            return owned_project(uow, project_id, user_id)

    def update(self, user_id: str, project_id: str, changes: Dict[str, Any]) -> Project:
        """Update name, description, thumbnail, budget or settings."""
        cleaned: Dict[str, Any] = {}
        for key, value in changes.items():
            if key == "name":
                cleaned[key] = _clean_name(value)
            elif key == "budget_cents":
                cleaned[key] = _clean_budget(value)
            elif key == "settings":
                if not isinstance(value, dict):
                    raise ValidationError("settings must be an object", field="settings")
                cleaned[key] = value
            elif key in ("description", "thumbnail_url"):
                cleaned[key] = value
        with self._uow_factory() as uow:
            owned_project(uow, project_id, user_id)
            updated = uow.projects.update(project_id, cleaned, _now())
        return updated

    def archive(self, user_id: str, project_id: str) -> None:
        """Soft-delete; archiving twice is a no-op."""
        with self._uow_factory() as uow:
            owned_project(uow, project_id, user_id)
            uow.projects.archive(project_id, _now())
        log_event(_logger, "projects.archive", LogContext(user_id=user_id), project_id=project_id)

    def stats(self, user_id: str, project_id: str) -> Dict[str, Any]:
        with self._uow_factory() as uow:
            project = owned_project(uow, project_id, user_id)
            totals = uow.projects.stats(project_id)
        remaining = project.budget_cents - project.spent_cents if project.budget_cents else None
        return {
            "project_id": project_id,
            "generation_count": totals["generation_count"],
            "total_cost_cents": totals["total_cost_cents"],
            "budget_cents": project.budget_cents,
            "spent_cents": project.spent_cents,
            "remaining_cents": remaining,
        }

    def add_spent(self, project_id: str, cents: int) -> None:
        with self._uow_factory() as uow:
            uow.projects.add_spent(project_id, cents, _now())


__all__ = ["ProjectService", "owned_project"]
