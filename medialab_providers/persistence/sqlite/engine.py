"""SQLite engine helpers for the persistence layer.

Purpose
-------
Open connections with the configured PRAGMAs and make sure the schema
exists. Standard library only (``sqlite3``); no side effects at import time.

Reliability strategy
--------------------
- ``busy_timeout`` mitigates lock contention between the request path and
  background generation tasks, which open their own connections.
- WAL journaling with NORMAL synchronous mode.
- Connections are opened with ``check_same_thread=False`` because FastAPI
  runs sync dependencies in a worker thread while the background task may
  run on the event loop thread. A single connection is never used
  concurrently: each unit of work owns its connection.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ...config import get_settings
from ...config.defaults import (
    SQLITE_BUSY_TIMEOUT_MS,
    SQLITE_JOURNAL_MODE,
    SQLITE_SYNCHRONOUS,
)


def get_db_path(db_path: Optional[str] = None) -> Path:
    """Return the database file path (``settings.db_path`` when omitted)."""
    return Path(db_path or get_settings().db_path).expanduser()


def create_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Open a SQLite connection and apply PRAGMA settings.

    Timestamps are returned as raw ISO8601 strings; repositories parse them
    explicitly (no ``detect_types``).
    """
    path = get_db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA journal_mode={SQLITE_JOURNAL_MODE};")
    conn.execute(f"PRAGMA synchronous={SQLITE_SYNCHRONOUS};")
    conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")  # ms
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create required tables if they do not exist, then commit.

    Schema overview
    ---------------
    - ``projects``: user workspaces with tracked budget/spend
    - ``credentials``: encrypted provider API keys (hex parts only)
    - ``generations``: generation records and their terminal outcome
    - ``provider_routes``: per-user priority list, one row per provider
    - ``provider_health``: health per provider, ``user_id = ''`` for global
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            thumbnail_url TEXT,
            budget_cents INTEGER NOT NULL DEFAULT 0,
            spent_cents INTEGER NOT NULL DEFAULT 0,
            settings_json TEXT NOT NULL DEFAULT '{}',
            archived_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS credentials (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            provider TEXT NOT NULL,
            key_name TEXT NOT NULL,
            key_preview TEXT NOT NULL,
            ciphertext TEXT NOT NULL,
            iv TEXT NOT NULL,
            auth_tag TEXT NOT NULL,
            salt TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            last_used_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_credentials_user_provider ON credentials(user_id, provider)"
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS generations (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            provider TEXT NOT NULL,
            model TEXT NOT NULL,
            generation_type TEXT NOT NULL,
            prompt TEXT NOT NULL,
            parameters_json TEXT NOT NULL DEFAULT '{}',
            status TEXT NOT NULL,
            result_json TEXT,
            error_message TEXT,
            tokens_input INTEGER,
            tokens_output INTEGER,
            tokens_total INTEGER,
            cost_cents INTEGER NOT NULL DEFAULT 0,
            duration_ms INTEGER,
            started_at TEXT,
            completed_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_generations_user_created ON generations(user_id, created_at)"
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS provider_routes (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            provider TEXT NOT NULL,
            priority INTEGER NOT NULL,
            is_enabled INTEGER NOT NULL DEFAULT 1,
            fallback_provider TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE(user_id, provider)
        );
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS provider_health (
            provider TEXT NOT NULL,
            user_id TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL,
            last_success_at TEXT,
            last_failure_at TEXT,
            failure_count INTEGER NOT NULL DEFAULT 0,
            avg_response_time_ms INTEGER,
            error_message TEXT,
            checked_at TEXT,
            UNIQUE(provider, user_id)
        );
        """
    )
    conn.commit()


@contextmanager
def db_session(db_path: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    """Open a connection with the schema ensured and close it on exit."""
    conn = create_connection(db_path)
    try:
        init_schema(conn)
        yield conn
    finally:
        conn.close()


__all__ = ["get_db_path", "create_connection", "init_schema", "db_session"]
