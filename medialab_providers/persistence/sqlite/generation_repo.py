"""SQLite-backed implementation of ``IGenerationRepo``.

``complete`` guards the terminal transition in SQL (``status`` not yet
terminal), so a record is updated to ``completed``/``failed`` at most once.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..interfaces.repos import (
    GenerationOutcome,
    GenerationRecord,
    GenerationStatus,
    IGenerationRepo,
)
from .helpers import _dump_json, _generation_from_row, _to_iso, new_id, utc_now

_COLUMNS = (
    "id, project_id, user_id, provider, model, generation_type, prompt, parameters_json, "
    "status, result_json, error_message, tokens_input, tokens_output, tokens_total, "
    "cost_cents, duration_ms, started_at, completed_at, created_at, updated_at"
)
_TERMINAL = (GenerationStatus.COMPLETED.value, GenerationStatus.FAILED.value)


class GenerationRepoSqlite(IGenerationRepo):
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def add(self, record: GenerationRecord) -> GenerationRecord:
        now = utc_now()
        record.id = record.id or new_id()
        record.started_at = record.started_at or now
        record.created_at = record.created_at or now
        record.updated_at = record.updated_at or now
        self.conn.execute(
            f"INSERT INTO generations({_COLUMNS}) "  # nosec B608 - static column list
            "VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.project_id,
                record.user_id,
                record.provider,
                record.model,
                record.generation_type,
                record.prompt,
                _dump_json(record.parameters),
                record.status.value,
                _dump_json(record.result) if record.result is not None else None,
                record.error_message,
                record.tokens_input,
                record.tokens_output,
                record.tokens_total,
                record.cost_cents,
                record.duration_ms,
                _to_iso(record.started_at),
                _to_iso(record.completed_at),
                _to_iso(record.created_at),
                _to_iso(record.updated_at),
            ),
        )
        return record

    def get(self, generation_id: str) -> Optional[GenerationRecord]:
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM generations WHERE id = ?",  # nosec B608 - static column list
            (generation_id,),
        )
        row = cur.fetchone()
        return _generation_from_row(row) if row else None

    def complete(self, generation_id: str, outcome: GenerationOutcome, when: datetime) -> bool:
        """Move a non-terminal record to ``outcome.status``.

        ``tokens_total`` is the sum of input and output when either is known.
        ``provider`` is only overwritten when the outcome names one.
        """
        if not outcome.status.is_terminal:
            raise ValueError(f"Outcome status must be terminal, got {outcome.status.value!r}")
        tokens_total: Optional[int] = None
        if outcome.tokens_input is not None or outcome.tokens_output is not None:
            tokens_total = (outcome.tokens_input or 0) + (outcome.tokens_output or 0)
        cur = self.conn.execute(
            """
            UPDATE generations SET
                status = ?,
                provider = COALESCE(?, provider),
                result_json = ?,
                error_message = ?,
                tokens_input = ?,
                tokens_output = ?,
                tokens_total = ?,
                cost_cents = ?,
                duration_ms = ?,
                completed_at = ?,
                updated_at = ?
            WHERE id = ? AND status NOT IN (?, ?)
            """,
            (
                outcome.status.value,
                outcome.provider,
                _dump_json(outcome.result) if outcome.result is not None else None,
                outcome.error_message,
                outcome.tokens_input,
                outcome.tokens_output,
                tokens_total,
                max(0, int(outcome.cost_cents or 0)),
                outcome.duration_ms,
                _to_iso(when),
                _to_iso(when),
                generation_id,
                *_TERMINAL,
            ),
        )
        return cur.rowcount > 0

    def list(
        self,
        user_id: str,
        *,
        project_id: Optional[str] = None,
        generation_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[GenerationRecord]:
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]
        if project_id:
            clauses.append("project_id = ?")
            params.append(project_id)
        if generation_type:
            clauses.append("generation_type = ?")
            params.append(generation_type)
        params.extend([max(0, int(limit)), max(0, int(offset))])
        cur = self.conn.execute(
            f"SELECT {_COLUMNS} FROM generations WHERE {' AND '.join(clauses)} "  # nosec B608 - fixed clause set
            "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
            params,
        )
        return [_generation_from_row(r) for r in cur.fetchall()]

    def stats(self, user_id: str, project_id: Optional[str] = None) -> Dict[str, Any]:
        """Aggregate counts and cost for a user (optionally one project).

        Cost totals only include completed generations.
        """
        where = "user_id = ?"
        params: List[Any] = [user_id]
        if project_id:
            where += " AND project_id = ?"
            params.append(project_id)

        cur = self.conn.execute(
            f"SELECT status, COUNT(*), COALESCE(SUM(cost_cents), 0) FROM generations WHERE {where} "  # nosec B608 - fixed clause set
            "GROUP BY status",
            params,
        )
        counts = {s.value: 0 for s in GenerationStatus}
        total_cost = 0
        for status, count, cost in cur.fetchall():
            counts[status] = int(count)
            if status == GenerationStatus.COMPLETED.value:
                total_cost = int(cost)

        by_type = self._group_counts("generation_type", where, params)
        by_provider = self._group_counts("provider", where, params)
        total = sum(counts.values())
        completed = counts[GenerationStatus.COMPLETED.value]
        return {
            "total": total,
            "completed": completed,
            "failed": counts[GenerationStatus.FAILED.value],
            "processing": counts[GenerationStatus.PROCESSING.value] + counts[GenerationStatus.PENDING.value],
            "total_cost_cents": total_cost,
            "average_cost_cents": round(total_cost / completed) if completed else 0,
            "by_type": by_type,
            "by_provider": by_provider,
        }

    def _group_counts(self, column: str, where: str, params: List[Any]) -> Dict[str, int]:
        cur = self.conn.execute(
            f"SELECT {column}, COUNT(*) FROM generations WHERE {where} GROUP BY {column}",  # nosec B608 - internal column names
            params,
        )
        return {str(r[0]): int(r[1]) for r in cur.fetchall()}
