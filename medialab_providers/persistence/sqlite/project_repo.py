"""SQLite-backed implementation of ``IProjectRepo``.

Archiving is a soft delete (``archived_at``); archived projects are hidden
from listings by default but remain addressable by id.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..interfaces.repos import IProjectRepo, Project
from .helpers import _dump_json, _project_from_row, _to_iso, new_id, utc_now

_COLUMNS = (
    "id, user_id, name, description, thumbnail_url, budget_cents, spent_cents, "
    "settings_json, archived_at, created_at, updated_at"
)
_UPDATABLE = {"name", "description", "thumbnail_url", "budget_cents", "settings"}


class ProjectRepoSqlite(IProjectRepo):
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def add(self, project: Project) -> Project:
        now = utc_now()
        project.id = project.id or new_id()
        project.created_at = project.created_at or now
        project.updated_at = project.updated_at or now
        self.conn.execute(
            f"INSERT INTO projects({_COLUMNS}) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",  # nosec B608 - static column list
            (
                project.id,
                project.user_id,
                project.name,
                project.description,
                project.thumbnail_url,
                int(project.budget_cents),
                int(project.spent_cents),
                _dump_json(project.settings),
                _to_iso(project.archived_at),
                _to_iso(project.created_at),
                _to_iso(project.updated_at),
            ),
        )
        return project

    def get(self, project_id: str) -> Optional[Project]:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM projects WHERE id = ?",  # nosec B608 - static column list
            (project_id,),
        )
        row = cur.fetchone()
        return _project_from_row(row) if row else None

    def list_for_user(self, user_id: str, *, include_archived: bool = False) -> List[Project]:
        sql = f"SELECT {_COLUMNS} FROM projects WHERE user_id = ?"  # nosec B608 - static column list
        if not include_archived:
            sql += " AND archived_at IS NULL"
        sql += " ORDER BY created_at DESC, rowid DESC"
        cur = self.conn.execute(sql, (user_id,))
        return [_project_from_row(r) for r in cur.fetchall()]

    def update(self, project_id: str, changes: Dict[str, Any], when: datetime) -> Optional[Project]:
        """Apply whitelisted field changes; unknown keys are ignored."""
        sets: List[str] = []
        params: List[Any] = []
        for key, value in changes.items():
            if key not in _UPDATABLE:
                continue
            if key == "settings":
                sets.append("settings_json = ?")
                params.append(_dump_json(value))
            else:
                sets.append(f"{key} = ?")
                params.append(value)
        if sets:
            sets.append("updated_at = ?")
            params.extend([_to_iso(when), project_id])
            self.conn.execute(
                f"UPDATE projects SET {', '.join(sets)} WHERE id = ?",  # nosec B608 - whitelisted columns
                params,
            )
        return self.get(project_id)

    def archive(self, project_id: str, when: datetime) -> bool:
        cur = self.conn.execute(
            "UPDATE projects SET archived_at = ?, updated_at = ? WHERE id = ? AND archived_at IS NULL",
            (_to_iso(when), _to_iso(when), project_id),
        )
        return cur.rowcount > 0

    def add_spent(self, project_id: str, cents: int, when: datetime) -> None:
        if cents <= 0:
            return
        self.conn.execute(
            "UPDATE projects SET spent_cents = spent_cents + ?, updated_at = ? WHERE id = ?",
            (int(cents), _to_iso(when), project_id),
        )

    def stats(self, project_id: str) -> Dict[str, int]:
        """Return ``generation_count`` and ``total_cost_cents`` of completed generations."""
        cur = self.conn.execute(
            "SELECT COUNT(*), COALESCE(SUM(cost_cents), 0) FROM generations "
            "WHERE project_id = ? AND status = 'completed'",
            (project_id,),
        )
        row = cur.fetchone() or (0, 0)
        return {"generation_count": int(row[0] or 0), "total_cost_cents": int(row[1] or 0)}
