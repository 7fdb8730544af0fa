"""Shared helper functions for the SQLite repository adapters.

Parsing and row-to-DTO conversion live here so each repository module stays
small. Timestamps are stored as ISO8601 strings and normalized to
timezone-aware UTC ``datetime`` objects on read.
"""

from __future__ import annotations

import json
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from ..interfaces.repos import (
    Credential,
    GenerationRecord,
    GenerationStatus,
    HealthStatus,
    Project,
    ProviderHealth,
    ProviderRoute,
)

GLOBAL_USER = ""


def new_id() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO8601, treating naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _parse_created_at(raw: Any) -> datetime:
    """Parse a stored timestamp into an aware UTC ``datetime``.

    Malformed input yields the epoch rather than raising so a single bad row
    cannot break a listing.
    """
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, str):
        with suppress(ValueError, TypeError):
            dt = datetime.fromisoformat(raw)
            return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(0, tz=timezone.utc)


def _parse_optional(raw: Any) -> Optional[datetime]:
    return None if raw is None else _parse_created_at(raw)


def _load_json(raw: Optional[str], default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return default


def _dump_json(value: Any) -> str:
    return json.dumps(value if value is not None else {}, ensure_ascii=False, default=str)


def _credential_from_row(r: Any) -> Credential:
    return Credential(
        id=r["id"],
        user_id=r["user_id"],
        provider=r["provider"],
        key_name=r["key_name"],
        key_preview=r["key_preview"],
        ciphertext=r["ciphertext"],
        iv=r["iv"],
        auth_tag=r["auth_tag"],
        salt=r["salt"],
        is_active=bool(r["is_active"]),
        last_used_at=_parse_optional(r["last_used_at"]),
        created_at=_parse_created_at(r["created_at"]),
        updated_at=_parse_created_at(r["updated_at"]),
    )


def _generation_from_row(r: Any) -> GenerationRecord:
    return GenerationRecord(
        id=r["id"],
        project_id=r["project_id"],
        user_id=r["user_id"],
        provider=r["provider"],
        model=r["model"],
        generation_type=r["generation_type"],
        prompt=r["prompt"],
        parameters=_load_json(r["parameters_json"], {}),
        status=GenerationStatus(r["status"]),
        result=_load_json(r["result_json"], None),
        error_message=r["error_message"],
        tokens_input=r["tokens_input"],
        tokens_output=r["tokens_output"],
        tokens_total=r["tokens_total"],
        cost_cents=int(r["cost_cents"] or 0),
        duration_ms=r["duration_ms"],
        started_at=_parse_optional(r["started_at"]),
        completed_at=_parse_optional(r["completed_at"]),
        created_at=_parse_created_at(r["created_at"]),
        updated_at=_parse_created_at(r["updated_at"]),
    )


def _route_from_row(r: Any) -> ProviderRoute:
    return ProviderRoute(
        id=r["id"],
        user_id=r["user_id"],
        provider=r["provider"],
        priority=int(r["priority"]),
        is_enabled=bool(r["is_enabled"]),
        fallback_provider=r["fallback_provider"],
        created_at=_parse_created_at(r["created_at"]),
        updated_at=_parse_created_at(r["updated_at"]),
    )


def _health_from_row(r: Any) -> ProviderHealth:
    try:
        status = HealthStatus(r["status"])
    except ValueError:
        status = HealthStatus.UNKNOWN
    return ProviderHealth(
        provider=r["provider"],
        user_id=r["user_id"] or None,
        status=status,
        last_success_at=_parse_optional(r["last_success_at"]),
        last_failure_at=_parse_optional(r["last_failure_at"]),
        failure_count=int(r["failure_count"] or 0),
        avg_response_time_ms=r["avg_response_time_ms"],
        error_message=r["error_message"],
        checked_at=_parse_optional(r["checked_at"]),
    )


def _project_from_row(r: Any) -> Project:
    settings: Dict[str, Any] = _load_json(r["settings_json"], {})
    return Project(
        id=r["id"],
        user_id=r["user_id"],
        name=r["name"],
        description=r["description"],
        thumbnail_url=r["thumbnail_url"],
        budget_cents=int(r["budget_cents"] or 0),
        spent_cents=int(r["spent_cents"] or 0),
        settings=settings if isinstance(settings, dict) else {},
        archived_at=_parse_optional(r["archived_at"]),
        created_at=_parse_created_at(r["created_at"]),
        updated_at=_parse_created_at(r["updated_at"]),
    )
