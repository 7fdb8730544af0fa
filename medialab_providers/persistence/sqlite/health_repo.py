"""SQLite-backed implementation of ``IHealthRepo``.

Rows are keyed by ``(provider, user_id)`` with ``''`` standing for the
global row. Upserts are last-write-wins.
"""

from __future__ import annotations

import sqlite3
from typing import List, Optional

from ..interfaces.repos import IHealthRepo, ProviderHealth
from .helpers import GLOBAL_USER, _health_from_row, _to_iso

_COLUMNS = (
    "provider, user_id, status, last_success_at, last_failure_at, failure_count, "
    "avg_response_time_ms, error_message, checked_at"
)


class HealthRepoSqlite(IHealthRepo):
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def get(self, provider: str, user_id: Optional[str]) -> Optional[ProviderHealth]:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM provider_health WHERE provider = ? AND user_id = ?",  # nosec B608 - static column list
            (provider.lower(), user_id or GLOBAL_USER),
        )
        row = cur.fetchone()
        return _health_from_row(row) if row else None

    def upsert(self, health: ProviderHealth) -> None:
        self.conn.execute(
            f"""
            INSERT INTO provider_health({_COLUMNS})
            VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(provider, user_id) DO UPDATE SET
                status = excluded.status,
                last_success_at = excluded.last_success_at,
                last_failure_at = excluded.last_failure_at,
                failure_count = excluded.failure_count,
                avg_response_time_ms = excluded.avg_response_time_ms,
                error_message = excluded.error_message,
                checked_at = excluded.checked_at
            """,  # nosec B608 - static column list
            (
                health.provider.lower(),
                health.user_id or GLOBAL_USER,
                health.status.value,
                _to_iso(health.last_success_at),
                _to_iso(health.last_failure_at),
                int(health.failure_count),
                health.avg_response_time_ms,
                health.error_message,
                _to_iso(health.checked_at),
            ),
        )

    def list_for_user(self, user_id: str) -> List[ProviderHealth]:
        """Return the user's rows plus global rows for providers the user has none for."""
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM provider_health WHERE user_id IN (?, ?) "  # nosec B608 - static column list
            "ORDER BY provider ASC, user_id DESC",
            (user_id, GLOBAL_USER),
        )
        seen = set()
        out: List[ProviderHealth] = []
        for r in cur.fetchall():
            if r["provider"] in seen:
                continue
            seen.add(r["provider"])
            out.append(_health_from_row(r))
        return out
