"""Schema and repository tests for the SQLite persistence adapter."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

import pytest

from medialab_providers.persistence import open_uow
from medialab_providers.persistence.interfaces import (
    Credential,
    GenerationOutcome,
    GenerationRecord,
    GenerationStatus,
    HealthStatus,
    Project,
    ProviderHealth,
    ProviderRoute,
)
from medialab_providers.persistence.sqlite import create_connection, init_schema
from medialab_providers.persistence.sqlite.helpers import _parse_created_at

NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _project(uow, user_id: str = "u1", name: str = "Demo") -> Project:
    return uow.projects.add(Project(id="", user_id=user_id, name=name, budget_cents=500))


def _generation(uow, project: Project, **overrides) -> GenerationRecord:
    fields = dict(
        id="",
        project_id=project.id,
        user_id=project.user_id,
        provider="auto",
        model="",
        generation_type="text",
        prompt="hello",
    )
    fields.update(overrides)
    return uow.generations.add(GenerationRecord(**fields))


def _credential(provider: str = "OpenAI", user_id: str = "u1") -> Credential:
    return Credential(
        id="",
        user_id=user_id,
        provider=provider,
        key_name="main",
        key_preview="SK-A",
        ciphertext="00",
        iv="11",
        auth_tag="22",
        salt="33",
    )


def test_schema_creates_tables_and_is_idempotent(db_path: str):
    conn = create_connection(db_path)
    try:
        init_schema(conn)
        init_schema(conn)
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        names = {r[0] for r in rows}
        for table in ("projects", "credentials", "generations", "provider_routes", "provider_health"):
            assert table in names, f"missing table {table}"  # nosec B101
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1  # nosec B101
    finally:
        conn.close()


def test_uow_rolls_back_on_error(db_path: str):
    with pytest.raises(RuntimeError):
        with open_uow(db_path) as uow:
            _project(uow)
            raise RuntimeError("boom")
    with open_uow(db_path) as uow:
        assert uow.projects.list_for_user("u1") == []  # nosec B101


def test_generation_requires_existing_project(db_path: str):
    with pytest.raises(sqlite3.IntegrityError):
        with open_uow(db_path) as uow:
            uow.generations.add(
                GenerationRecord(
                    id="", project_id="missing", user_id="u1", provider="auto", model="", generation_type="text", prompt="x"
                )
            )


def test_credentials_most_recent_active_wins(db_path: str):
    with open_uow(db_path) as uow:
        first = uow.credentials.add(_credential())
        second = uow.credentials.add(_credential("openai"))
        assert first.provider == "openai"  # nosec B101
        assert uow.credentials.get_most_recent_active("u1", "OPENAI").id == second.id  # nosec B101
        uow.credentials.set_active(second.id, False, NOW)
        assert uow.credentials.get_most_recent_active("u1", "openai").id == first.id  # nosec B101
        assert uow.credentials.delete_for_provider("u1", "openai") == 2  # nosec B101
        assert uow.credentials.get_most_recent_active("u1", "openai") is None  # nosec B101


def test_credential_repr_hides_ciphertext():
    text = repr(_credential())
    assert "ciphertext" not in text and "auth_tag" not in text  # nosec B101
    assert "ciphertext" not in _credential().to_public_dict()  # nosec B101


def test_generation_completes_exactly_once(db_path: str):
    with open_uow(db_path) as uow:
        record = _generation(uow, _project(uow))
        done = GenerationOutcome(
            status=GenerationStatus.COMPLETED,
            provider="fal",
            result={"content": "https://x", "metadata": {}},
            tokens_input=2,
            tokens_output=1,
            cost_cents=100,
            duration_ms=50,
        )
        assert uow.generations.complete(record.id, done, NOW) is True  # nosec B101
        late = GenerationOutcome(status=GenerationStatus.FAILED, error_message="late")
        assert uow.generations.complete(record.id, late, NOW) is False  # nosec B101

        stored = uow.generations.get(record.id)
        assert stored.status is GenerationStatus.COMPLETED  # nosec B101
        assert stored.provider == "fal"  # nosec B101
        assert stored.tokens_total == 3  # nosec B101
        assert stored.result["content"] == "https://x"  # nosec B101
        assert stored.completed_at == NOW  # nosec B101
        assert stored.error_message is None  # nosec B101


def test_complete_rejects_non_terminal_status(db_path: str):
    with open_uow(db_path) as uow:
        record = _generation(uow, _project(uow))
        with pytest.raises(ValueError):
            uow.generations.complete(record.id, GenerationOutcome(status=GenerationStatus.PROCESSING), NOW)


def test_generation_list_and_stats(db_path: str):
    with open_uow(db_path) as uow:
        project = _project(uow)
        other = _project(uow, name="Other")
        a = _generation(uow, project)
        b = _generation(uow, project, generation_type="image")
        _generation(uow, other)
        uow.generations.complete(a.id, GenerationOutcome(GenerationStatus.COMPLETED, provider="openai", cost_cents=10), NOW)
        uow.generations.complete(b.id, GenerationOutcome(GenerationStatus.FAILED, provider="fal", cost_cents=99), NOW)

        assert len(uow.generations.list("u1")) == 3  # nosec B101
        assert [g.id for g in uow.generations.list("u1", project_id=project.id, generation_type="image")] == [b.id]  # nosec B101
        assert len(uow.generations.list("u1", limit=1, offset=1)) == 1  # nosec B101

        stats = uow.generations.stats("u1", project.id)
        assert stats["total"] == 2  # nosec B101
        assert stats["completed"] == 1 and stats["failed"] == 1  # nosec B101
        assert stats["total_cost_cents"] == 10  # nosec B101
        assert stats["by_type"] == {"text": 1, "image": 1}  # nosec B101
        assert uow.generations.stats("u1")["processing"] == 1  # nosec B101


def test_routes_are_unique_per_user_and_provider(db_path: str):
    with open_uow(db_path) as uow:
        uow.routes.upsert(ProviderRoute(user_id="u1", provider="FAL", priority=2))
        updated = uow.routes.upsert(ProviderRoute(user_id="u1", provider="fal", priority=0, fallback_provider="Veo3"))
        uow.routes.upsert(ProviderRoute(user_id="u1", provider="openai", priority=1, is_enabled=False))

        assert updated.priority == 0 and updated.fallback_provider == "veo3"  # nosec B101
        assert [r.provider for r in uow.routes.list_for_user("u1")] == ["fal", "openai"]  # nosec B101
        assert [r.provider for r in uow.routes.list_for_user("u1", enabled_only=True)] == ["fal"]  # nosec B101
        assert uow.routes.delete("u1", "FAL") is True  # nosec B101
        assert uow.routes.delete("u1", "fal") is False  # nosec B101


def test_health_rows_prefer_user_over_global(db_path: str):
    with open_uow(db_path) as uow:
        uow.health.upsert(ProviderHealth(provider="fal", user_id=None, status=HealthStatus.DOWN))
        uow.health.upsert(ProviderHealth(provider="openai", user_id=None, status=HealthStatus.DEGRADED))
        uow.health.upsert(ProviderHealth(provider="fal", user_id="u1", status=HealthStatus.HEALTHY, failure_count=0))

        assert uow.health.get("fal", None).status is HealthStatus.DOWN  # nosec B101
        assert uow.health.get("FAL", "u1").status is HealthStatus.HEALTHY  # nosec B101
        listed = {h.provider: h.status for h in uow.health.list_for_user("u1")}
        assert listed == {"fal": HealthStatus.HEALTHY, "openai": HealthStatus.DEGRADED}  # nosec B101


def test_project_update_archive_and_spend(db_path: str):
    with open_uow(db_path) as uow:
        project = _project(uow)
        updated = uow.projects.update(project.id, {"name": "Renamed", "user_id": "u2", "settings": {"a": 1}}, NOW)
        assert updated.name == "Renamed" and updated.user_id == "u1"  # nosec B101
        assert updated.settings == {"a": 1}  # nosec B101

        uow.projects.add_spent(project.id, 25, NOW)
        uow.projects.add_spent(project.id, -5, NOW)
        assert uow.projects.get(project.id).spent_cents == 25  # nosec B101

        assert uow.projects.archive(project.id, NOW) is True  # nosec B101
        assert uow.projects.archive(project.id, NOW) is False  # nosec B101
        assert uow.projects.list_for_user("u1") == []  # nosec B101
        assert len(uow.projects.list_for_user("u1", include_archived=True)) == 1  # nosec B101


def test_malformed_timestamp_parses_to_epoch():
    assert _parse_created_at("not-a-date") == datetime.fromtimestamp(0, tz=timezone.utc)  # nosec B101
