"""Repository & Unit of Work protocol definitions for the media lab datastore.

This module declares the contracts used by the credential store, router,
generation service and FastAPI layer. Concrete implementations live under
``persistence/sqlite/``.

Design Principles:
- No concrete behavior; pure structural typing via ``Protocol``.
- Dataclasses represent DTOs crossing repository boundaries.
- Transaction control belongs to the ``IUnitOfWork`` implementation;
  repositories never commit.

Failure / Error Semantics:
- Repositories return ``None`` (or ``False``) for missing rows and raise only
  backend exceptions (I/O, integrity). Ownership checks (Forbidden vs
  NotFound) are the caller's concern.

Secrets:
- ``Credential`` carries ciphertext parts only. They are excluded from
  ``repr`` and from :meth:`Credential.to_public_dict`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class GenerationStatus(str, Enum):
    """Lifecycle states of a generation record."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.COMPLETED, GenerationStatus.FAILED)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


# ---------- Data Transfer Objects ----------


@dataclass
class Credential:
    """Encrypted third-party API key scoped to one user and one provider.

    Attributes
    ----------
    provider:
        Provider identity as the user stored it (may be a display alias).
    key_preview:
        First characters of the key, upper-cased, for display only.
    ciphertext, iv, auth_tag, salt:
        Hex-encoded AES-GCM parts. Opaque outside the crypto module.
    """

    id: str
    user_id: str
    provider: str
    key_name: str
    key_preview: str
    ciphertext: str = field(repr=False)
    iv: str = field(repr=False)
    auth_tag: str = field(repr=False)
    salt: str = field(repr=False)
    is_active: bool = True
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_public_dict(self) -> Dict[str, Any]:
        """Serializable view without any secret material."""
        return {
            "id": self.id,
            "provider": self.provider,
            "key_name": self.key_name,
            "key_preview": self.key_preview,
            "is_active": self.is_active,
            "last_used_at": _iso(self.last_used_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class GenerationRecord:
    """One tracked generation request.

    Created in ``processing``; moved exactly once to ``completed`` or
    ``failed``. ``result`` holds ``{"content": ..., "metadata": {...}}`` on
    success.
    """

    id: str
    project_id: str
    user_id: str
    provider: str
    model: str
    generation_type: str
    prompt: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    status: GenerationStatus = GenerationStatus.PROCESSING
    result: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    tokens_input: Optional[int] = None
    tokens_output: Optional[int] = None
    tokens_total: Optional[int] = None
    cost_cents: int = 0
    duration_ms: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "provider": self.provider,
            "model": self.model,
            "generation_type": self.generation_type,
            "prompt": self.prompt,
            "parameters": dict(self.parameters),
            "status": self.status.value,
            "result": self.result,
            "error_message": self.error_message,
            "tokens_input": self.tokens_input,
            "tokens_output": self.tokens_output,
            "tokens_total": self.tokens_total,
            "cost_cents": self.cost_cents,
            "duration_ms": self.duration_ms,
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class GenerationOutcome:
    """Terminal update applied to a generation record."""

    status: GenerationStatus
    provider: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    tokens_input: Optional[int] = None
    tokens_output: Optional[int] = None
    cost_cents: int = 0
    duration_ms: Optional[int] = None


@dataclass
class ProviderRoute:
    """One entry of a user's provider priority list (ascending = tried first)."""

    user_id: str
    provider: str
    priority: int
    is_enabled: bool = True
    fallback_provider: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "provider": self.provider,
            "priority": self.priority,
            "is_enabled": self.is_enabled,
            "fallback_provider": self.fallback_provider,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class ProviderHealth:
    """Recent-reliability signal for a provider.

    ``user_id`` is ``None`` for the global row.
    """

    provider: str
    user_id: Optional[str] = None
    status: HealthStatus = HealthStatus.UNKNOWN
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    failure_count: int = 0
    avg_response_time_ms: Optional[int] = None
    error_message: Optional[str] = None
    checked_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "status": self.status.value,
            "last_success_at": _iso(self.last_success_at),
            "last_failure_at": _iso(self.last_failure_at),
            "failure_count": self.failure_count,
            "avg_response_time_ms": self.avg_response_time_ms,
            "error_message": self.error_message,
            "checked_at": _iso(self.checked_at),
        }


@dataclass
class Project:
    """A user's workspace grouping generations under a tracked budget."""

    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    budget_cents: int = 0
    spent_cents: int = 0
    settings: Dict[str, Any] = field(default_factory=dict)
    archived_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "budget_cents": self.budget_cents,
            "spent_cents": self.spent_cents,
            "settings": dict(self.settings),
            "archived_at": _iso(self.archived_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


# ---------- Repository Protocols ----------


class ICredentialRepo(Protocol):
    """Encrypted credential rows. Provider keys are stored lower-cased."""

    def add(self, credential: Credential) -> Credential:
        ...

    def get(self, credential_id: str) -> Optional[Credential]:
        ...

    def list_for_user(self, user_id: str) -> List[Credential]:
        """Return the user's credentials, newest first."""
        ...

    def get_most_recent_active(self, user_id: str, provider: str) -> Optional[Credential]:
        """Return the most recently created active credential for ``(user, provider)``.

        Ties on ``created_at`` resolve to the later insert.
        """
        ...

    def touch_last_used(self, credential_id: str, when: datetime) -> None:
        ...

    def set_active(self, credential_id: str, is_active: bool, when: datetime) -> None:
        ...

    def delete(self, credential_id: str) -> bool:
        ...

    def delete_for_provider(self, user_id: str, provider: str) -> int:
        """Delete every credential of ``(user, provider)``; return the count."""
        ...


class IGenerationRepo(Protocol):
    def add(self, record: GenerationRecord) -> GenerationRecord:
        ...

    def get(self, generation_id: str) -> Optional[GenerationRecord]:
        ...

    def complete(self, generation_id: str, outcome: GenerationOutcome, when: datetime) -> bool:
        """Apply a terminal update when the record is not terminal yet.

        Returns
        -------
        bool
            ``True`` when the row transitioned, ``False`` when it was missing
            or already terminal (the update is then a no-op).
        """
        ...

    def list(
        self,
        user_id: str,
        *,
        project_id: Optional[str] = None,
        generation_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[GenerationRecord]:
        """Newest-first page of a user's generations."""
        ...

    def stats(self, user_id: str, project_id: Optional[str] = None) -> Dict[str, Any]:
        ...


class IRouteRepo(Protocol):
    """Per-user provider routing configuration (one row per provider)."""

    def list_for_user(self, user_id: str, *, enabled_only: bool = False) -> List[ProviderRoute]:
        """Return routes ordered by ascending priority, then provider."""
        ...

    def upsert(self, route: ProviderRoute) -> ProviderRoute:
        ...

    def delete(self, user_id: str, provider: str) -> bool:
        ...


class IHealthRepo(Protocol):
    """Provider health rows keyed by ``(provider, user_id or global)``."""

    def get(self, provider: str, user_id: Optional[str]) -> Optional[ProviderHealth]:
        ...

    def upsert(self, health: ProviderHealth) -> None:
        ...

    def list_for_user(self, user_id: str) -> List[ProviderHealth]:
        ...


class IProjectRepo(Protocol):
    def add(self, project: Project) -> Project:
        ...

    def get(self, project_id: str) -> Optional[Project]:
        ...

    def list_for_user(self, user_id: str, *, include_archived: bool = False) -> List[Project]:
        ...

    def update(self, project_id: str, changes: Dict[str, Any], when: datetime) -> Optional[Project]:
        ...

    def archive(self, project_id: str, when: datetime) -> bool:
        ...

    def add_spent(self, project_id: str, cents: int, when: datetime) -> None:
        ...

    def stats(self, project_id: str) -> Dict[str, int]:
        ...


class IUnitOfWork(Protocol):
    """Transaction boundary aggregating repositories.

    Usage::

        with uow:
            uow.generations.add(...)
            uow.projects.add_spent(...)
        # commit on success; rollback on exception
    """

    credentials: ICredentialRepo
    generations: IGenerationRepo
    routes: IRouteRepo
    health: IHealthRepo
    projects: IProjectRepo

    def __enter__(self) -> "IUnitOfWork":
        ...

    def __exit__(self, exc_type, exc, tb) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


__all__ = [
    "GenerationStatus",
    "HealthStatus",
    "Credential",
    "GenerationRecord",
    "GenerationOutcome",
    "ProviderRoute",
    "ProviderHealth",
    "Project",
    "ICredentialRepo",
    "IGenerationRepo",
    "IRouteRepo",
    "IHealthRepo",
    "IProjectRepo",
    "IUnitOfWork",
]
