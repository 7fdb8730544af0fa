"""SQLite-backed implementation of ``ICredentialRepo``.

Stores hex-encoded AES-GCM parts only; plaintext never reaches this module.
Provider keys are lower-cased on write and on lookup. No implicit commits.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from ..interfaces.repos import Credential, ICredentialRepo
from .helpers import _credential_from_row, _to_iso, new_id, utc_now

_COLUMNS = (
    "id, user_id, provider, key_name, key_preview, ciphertext, iv, auth_tag, salt, "
    "is_active, last_used_at, created_at, updated_at"
)


class CredentialRepoSqlite(ICredentialRepo):
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def add(self, credential: Credential) -> Credential:
        """Insert a credential, assigning id and timestamps when missing."""
        now = utc_now()
        credential.id = credential.id or new_id()
        credential.provider = credential.provider.lower()
        credential.created_at = credential.created_at or now
        credential.updated_at = credential.updated_at or now
        self.conn.execute(
            f"INSERT INTO credentials({_COLUMNS}) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",  # nosec B608 - static column list
            (
                credential.id,
                credential.user_id,
                credential.provider,
                credential.key_name,
                credential.key_preview,
                credential.ciphertext,
                credential.iv,
                credential.auth_tag,
                credential.salt,
                1 if credential.is_active else 0,
                _to_iso(credential.last_used_at),
                _to_iso(credential.created_at),
                _to_iso(credential.updated_at),
            ),
        )
        return credential

    def get(self, credential_id: str) -> Optional[Credential]:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM credentials WHERE id = ?",  # nosec B608 - static column list
            (credential_id,),
        )
        row = cur.fetchone()
        return _credential_from_row(row) if row else None

    def list_for_user(self, user_id: str) -> List[Credential]:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM credentials WHERE user_id = ? "  # nosec B608 - static column list
            "ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        )
        return [_credential_from_row(r) for r in cur.fetchall()]

    def get_most_recent_active(self, user_id: str, provider: str) -> Optional[Credential]:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM credentials "  # nosec B608 - static column list
            "WHERE user_id = ? AND provider = ? AND is_active = 1 "
            "ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (user_id, provider.lower()),
        )
        row = cur.fetchone()
        return _credential_from_row(row) if row else None

    def touch_last_used(self, credential_id: str, when: datetime) -> None:
        self.conn.execute(
            "UPDATE credentials SET last_used_at = ? WHERE id = ?",
            (_to_iso(when), credential_id),
        )

    def set_active(self, credential_id: str, is_active: bool, when: datetime) -> None:
        self.conn.execute(
            "UPDATE credentials SET is_active = ?, updated_at = ? WHERE id = ?",
            (1 if is_active else 0, _to_iso(when), credential_id),
        )

    def delete(self, credential_id: str) -> bool:
        cur = self.conn.execute("DELETE FROM credentials WHERE id = ?", (credential_id,))
        return cur.rowcount > 0

    def delete_for_provider(self, user_id: str, provider: str) -> int:
        cur = self.conn.execute(
            "DELETE FROM credentials WHERE user_id = ? AND provider = ?",
            (user_id, provider.lower()),
        )
        return int(cur.rowcount)
