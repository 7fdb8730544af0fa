"""SQLite Unit of Work implementation.

Coordinates repository operations within a single transaction boundary. The
context manager commits on clean exit and rolls back when an exception
escapes. Repositories never commit on their own.
"""

from __future__ import annotations

import sqlite3

from ..interfaces.repos import IUnitOfWork
from .credential_repo import CredentialRepoSqlite
from .generation_repo import GenerationRepoSqlite
from .health_repo import HealthRepoSqlite
from .project_repo import ProjectRepoSqlite
from .route_repo import RouteRepoSqlite


class UnitOfWorkSqlite(IUnitOfWork):
    """Aggregates the SQLite repositories over one connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self.credentials = CredentialRepoSqlite(conn)
        self.generations = GenerationRepoSqlite(conn)
        self.routes = RouteRepoSqlite(conn)
        self.health = HealthRepoSqlite(conn)
        self.projects = ProjectRepoSqlite(conn)
        self._active = False

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def __enter__(self) -> "UnitOfWorkSqlite":
        self._active = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self._active = False

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        """Rollback the current transaction (idempotent)."""
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()
