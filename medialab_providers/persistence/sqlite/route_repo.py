"""SQLite-backed implementation of ``IRouteRepo``.

``UNIQUE(user_id, provider)`` enforces at most one route per provider per
user; ``upsert`` updates the existing row in place.
"""

from __future__ import annotations

import sqlite3
from typing import List

from ..interfaces.repos import IRouteRepo, ProviderRoute
from .helpers import _route_from_row, _to_iso, new_id, utc_now

_COLUMNS = "id, user_id, provider, priority, is_enabled, fallback_provider, created_at, updated_at"


class RouteRepoSqlite(IRouteRepo):
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def list_for_user(self, user_id: str, *, enabled_only: bool = False) -> List[ProviderRoute]:
        sql = f"SELECT {_COLUMNS} FROM provider_routes WHERE user_id = ?"  # nosec B608 - static column list
        if enabled_only:
            sql += " AND is_enabled = 1"
        sql += " ORDER BY priority ASC, provider ASC"
        cur = self.conn.execute(sql, (user_id,))
        return [_route_from_row(r) for r in cur.fetchall()]

    def upsert(self, route: ProviderRoute) -> ProviderRoute:
        now = utc_now()
        route.provider = route.provider.lower()
        self.conn.execute(
            """
            INSERT INTO provider_routes(id, user_id, provider, priority, is_enabled, fallback_provider, created_at, updated_at)
            VALUES(?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, provider) DO UPDATE SET
                priority = excluded.priority,
                is_enabled = excluded.is_enabled,
                fallback_provider = excluded.fallback_provider,
                updated_at = excluded.updated_at
            """,
            (
                route.id or new_id(),
                route.user_id,
                route.provider,
                int(route.priority),
                1 if route.is_enabled else 0,
                route.fallback_provider.lower() if route.fallback_provider else None,
                _to_iso(now),
                _to_iso(now),
            ),
        )
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM provider_routes WHERE user_id = ? AND provider = ?",  # nosec B608 - static column list
            (route.user_id, route.provider),
        )
        return _route_from_row(cur.fetchone())

    def delete(self, user_id: str, provider: str) -> bool:
        cur = self.conn.execute(
            "DELETE FROM provider_routes WHERE user_id = ? AND provider = ?",
            (user_id, provider.lower()),
        )
        return cur.rowcount > 0
