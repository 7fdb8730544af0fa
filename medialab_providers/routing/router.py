"""Health-aware provider router with fallback.

The router turns a user's routing configuration into an executed generation:

1. Load the user's enabled :class:`ProviderRoute` rows (ascending priority).
   No routes and no preferred provider fails fast with
   ``NoProviderAvailableError(reason="no_providers_configured")``.
2. Walk candidates in order. A candidate is skipped (logged, never fatal)
   when its health is ``down``, when no active credential resolves, when the
   registry cannot build it, or when it does not support the requested type.
3. Execute on the first passing candidate, time the call and record health:
   success marks ``healthy`` and resets the failure streak, failure marks
   ``degraded``. Only :meth:`ProviderRouter.check_provider_health` marks a
   provider ``down``.
4. On failure, try the route's ``fallback_provider`` next (when untried),
   then the remaining candidates, up to ``max_attempts`` executions. The
   same provider is never executed twice for one request.

Preferred provider
------------------
A preferred provider other than ``auto`` goes first and bypasses the health
gate. It still needs an active credential and type support.

Health granularity
------------------
Health rows are keyed by provider and user. Reads fall back to the global
row (``user_id`` unset) and then to ``unknown``, which is routable.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Protocol, Set, Tuple

from ..base.aliases import resolve_provider_alias
from ..base.errors import (
    CryptoError,
    ErrorCode,
    MediaLabError,
    NoProviderAvailableError,
    NotFoundError,
    ValidationError,
    classify_exception,
)
from ..base.factory import ProviderFactory
from ..base.interfaces import MediaProvider
from ..base.logging import LogContext, get_logger, log_event, normalized_log_event
from ..base.models import GenerationRequest, GenerationResponse, GenerationType, HealthCheckResponse
from ..config import get_settings
from ..config.defaults import AUTO_PROVIDER
from ..credentials import CredentialStore
from ..persistence import UowFactory, sqlite_uow_factory
from ..persistence.interfaces import HealthStatus, ProviderHealth, ProviderRoute

_logger = get_logger("router")


class AdapterFactory(Protocol):
    """Subset of :class:`ProviderFactory` the router depends on."""

    def create(self, name: str, api_key: str, **kwargs: Any) -> MediaProvider:
        ...

    def is_registered(self, name: str) -> bool:
        ...


@dataclass(frozen=True)
class RoutingContext:
    """Who is generating what, and with which provider preference.

    ``preferred_provider`` of ``None``, ``""`` or ``"auto"`` means no
    preference.
    """

    user_id: str
    generation_type: GenerationType
    preferred_provider: Optional[str] = None
    project_id: Optional[str] = None
    generation_id: Optional[str] = None

    @property
    def preference(self) -> Optional[str]:
        value = (self.preferred_provider or "").strip().lower()
        return None if value in ("", AUTO_PROVIDER) else value


@dataclass(frozen=True)
class SelectedRoute:
    """A candidate that passed every routing check.

    ``provider_name`` is the stored (user-facing) name used for credentials
    and health; ``registry_key`` is the alias-resolved adapter key.
    """

    provider_name: str
    registry_key: str
    adapter: MediaProvider
    route: Optional[ProviderRoute] = None


@dataclass(frozen=True)
class AttemptRecord:
    provider: str
    success: bool
    duration_ms: int
    error: Optional[str] = None


@dataclass(frozen=True)
class RoutingOutcome:
    """Result of :meth:`ProviderRouter.execute_with_fallback`.

    ``response`` is the successful response, or the last failure when every
    attempt failed. ``selected`` is the route that produced it.
    """

    response: GenerationResponse
    selected: SelectedRoute
    attempts: Tuple[AttemptRecord, ...] = field(default_factory=tuple)

    @property
    def provider_name(self) -> str:
        return self.selected.provider_name

    @property
    def adapter(self) -> MediaProvider:
        return self.selected.adapter


@dataclass
class _Candidate:
    name: str
    route: Optional[ProviderRoute]
    bypass_health: bool = False


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


class ProviderRouter:
    """Select, execute and track providers for one user at a time.

    Parameters
    ----------
    uow_factory:
        Opens a Unit of Work per datastore round trip.
    credentials:
        Credential store used to decrypt keys. Built over ``uow_factory``
        when omitted.
    factory:
        Adapter factory; defaults to :class:`ProviderFactory`.
    """

    def __init__(
        self,
        uow_factory: Optional[UowFactory] = None,
        credentials: Optional[CredentialStore] = None,
        factory: Optional[AdapterFactory] = None,
    ) -> None:
        self._uow_factory = uow_factory or sqlite_uow_factory()
        self._credentials = credentials or CredentialStore(self._uow_factory)
        self._factory: AdapterFactory = factory or ProviderFactory

    # ----- configuration -----
    def get_user_routes(self, user_id: str) -> List[ProviderRoute]:
        """Enabled routes for ``user_id`` ordered by ascending priority."""
        with self._uow_factory() as uow:
            return uow.routes.list_for_user(user_id, enabled_only=True)

    def list_routes(self, user_id: str) -> List[ProviderRoute]:
        with self._uow_factory() as uow:
            return uow.routes.list_for_user(user_id)

    def _validate_provider(self, provider: str, field_name: str) -> str:
        name = (provider or "").strip().lower()
        if not name:
            raise ValidationError(f"{field_name} is required", field=field_name)
        if not self._factory.is_registered(resolve_provider_alias(name)):
            raise ValidationError(f"Unknown provider '{provider}'", field=field_name)
        return name

    def upsert_route(
        self,
        user_id: str,
        provider: str,
        *,
        priority: int,
        is_enabled: bool = True,
        fallback_provider: Optional[str] = None,
    ) -> ProviderRoute:
        """Create or update the user's route for ``provider``."""
        name = self._validate_provider(provider, "provider")
        fallback = self._validate_provider(fallback_provider, "fallback_provider") if fallback_provider else None
        if fallback == name:
            raise ValidationError("fallback_provider must differ from provider", field="fallback_provider")
        if priority < 0:
            raise ValidationError("priority must be >= 0", field="priority")
        route = ProviderRoute(
            user_id=user_id,
            provider=name,
            priority=int(priority),
            is_enabled=is_enabled,
            fallback_provider=fallback,
        )
        with self._uow_factory() as uow:
            saved = uow.routes.upsert(route)
        log_event(_logger, "router.route_saved", LogContext(provider=name, user_id=user_id), priority=saved.priority)
        return saved

    def delete_route(self, user_id: str, provider: str) -> None:
        with self._uow_factory() as uow:
            removed = uow.routes.delete(user_id, provider)
        if not removed:
            raise NotFoundError(f"No route configured for {provider}", provider=provider)

    # ----- health -----
    def get_provider_health(self, provider: str, user_id: Optional[str] = None) -> ProviderHealth:
        """Return the user row, else the global row, else an ``unknown`` record."""
        with self._uow_factory() as uow:
            health = uow.health.get(provider, user_id) if user_id else None
            if health is None:
                health = uow.health.get(provider, None)
        return health or ProviderHealth(provider=provider.lower(), user_id=user_id)

    def list_provider_health(self, user_id: str) -> List[ProviderHealth]:
        with self._uow_factory() as uow:
            return uow.health.list_for_user(user_id)

    def update_provider_health(
        self,
        provider: str,
        user_id: Optional[str],
        success: bool,
        error: Optional[str] = None,
        response_time_ms: Optional[int] = None,
        *,
        failure_status: HealthStatus = HealthStatus.DEGRADED,
    ) -> ProviderHealth:
        """Upsert the ``(provider, user)`` health row after an attempt.

        Success: ``healthy``, failure streak reset, response time averaged with
        the previous value. Failure: ``failure_status`` (``degraded`` unless a
        health check says ``down``), streak incremented, error recorded.
        """
        now = _now()
        with self._uow_factory() as uow:
            previous = uow.health.get(provider, user_id)
            health = previous or ProviderHealth(provider=provider.lower(), user_id=user_id)
            if success:
                health.status = HealthStatus.HEALTHY
                health.last_success_at = now
                health.failure_count = 0
                health.error_message = None
                if response_time_ms is not None:
                    prev_avg = health.avg_response_time_ms
                    health.avg_response_time_ms = (
                        int(response_time_ms) if prev_avg is None else (prev_avg + int(response_time_ms)) // 2
                    )
            else:
                health.status = failure_status
                health.last_failure_at = now
                health.failure_count += 1
                health.error_message = error
            health.checked_at = now
            uow.health.upsert(health)
        return health

    async def _record_health(
        self, provider: str, user_id: str, response: GenerationResponse, duration_ms: int
    ) -> None:
        try:
            await asyncio.to_thread(
                self.update_provider_health,
                provider,
                user_id,
                response.success,
                None if response.success else response.error,
                duration_ms if response.success else None,
            )
        except sqlite3.Error:
            _logger.exception("router.health_update_failed provider=%s", provider)

    async def check_provider_health(self, user_id: str, provider: str) -> Tuple[HealthCheckResponse, ProviderHealth]:
        """Run the adapter health check with the user's key and record the result.

        A failed check marks the provider ``down``.

        Raises
        ------
        NotFoundError
            No active credential for ``provider``.
        """
        name = provider.strip().lower()
        api_key = await asyncio.to_thread(self._credentials.get_active, user_id, name)
        adapter = self._factory.create(resolve_provider_alias(name), api_key)
        check = await adapter.health_check()
        health = await asyncio.to_thread(
            self.update_provider_health,
            name,
            user_id,
            check.healthy,
            check.error,
            check.response_time_ms,
            failure_status=HealthStatus.DOWN,
        )
        log_event(
            _logger,
            "router.health_check",
            LogContext(provider=name, user_id=user_id),
            healthy=check.healthy,
            response_time_ms=check.response_time_ms,
        )
        return check, health

    # ----- selection -----
    async def _candidates(self, ctx: RoutingContext) -> List[_Candidate]:
        routes = await asyncio.to_thread(self.get_user_routes, ctx.user_id)
        preferred = ctx.preference
        if not routes and preferred is None:
            raise NoProviderAvailableError(
                "No providers configured for this user",
                reason=NoProviderAvailableError.NO_PROVIDERS_CONFIGURED,
                user_id=ctx.user_id,
            )
        candidates = [_Candidate(r.provider, r) for r in routes]
        if preferred is not None:
            matched = next((c for c in candidates if c.name == preferred), None)
            if matched is not None:
                candidates.remove(matched)
            else:
                matched = _Candidate(preferred, None)
            matched.bypass_health = True
            candidates.insert(0, matched)
        return candidates

    def _skip(
        self, ctx: RoutingContext, provider: str, reason: str, *, level: int = logging.WARNING, **fields: Any
    ) -> None:
        normalized_log_event(
            _logger,
            "router.candidate",
            LogContext(provider=provider, user_id=ctx.user_id, generation_id=ctx.generation_id),
            phase="skip",
            level=level,
            reason=reason,
            type=ctx.generation_type.value,
            **fields,
        )

    async def _try_candidate(
        self, ctx: RoutingContext, request: GenerationRequest, candidate: _Candidate
    ) -> Optional[SelectedRoute]:
        name = candidate.name
        if not candidate.bypass_health:
            health = await asyncio.to_thread(self.get_provider_health, name, ctx.user_id)
            if health.status is HealthStatus.DOWN:
                self._skip(ctx, name, "unhealthy", status=health.status.value)
                return None
        try:
            api_key = await asyncio.to_thread(self._credentials.get_active, ctx.user_id, name)
        except CryptoError as exc:
            self._skip(ctx, name, "credential_unreadable", level=logging.ERROR, error_code=exc.code.value)
            return None
        except NotFoundError:
            self._skip(ctx, name, "no_credential")
            return None
        registry_key = resolve_provider_alias(name)
        try:
            adapter = self._factory.create(registry_key, api_key)
        except MediaLabError as exc:
            self._skip(ctx, name, "adapter_unavailable", error_code=exc.code.value, error=exc.message)
            return None
        if not adapter.supports(request.type):
            self._skip(ctx, name, "unsupported_type")
            return None
        return SelectedRoute(provider_name=name, registry_key=registry_key, adapter=adapter, route=candidate.route)

    async def _select(
        self, ctx: RoutingContext, request: GenerationRequest, queue: List[_Candidate], tried: Set[str]
    ) -> Optional[SelectedRoute]:
        while queue:
            candidate = queue.pop(0)
            if candidate.name in tried:
                continue
            tried.add(candidate.name)
            selected = await self._try_candidate(ctx, request, candidate)
            if selected is not None:
                return selected
        return None

    def _unavailable(self, ctx: RoutingContext) -> NoProviderAvailableError:
        return NoProviderAvailableError(
            f"No suitable provider found for generation type: {ctx.generation_type.value}. "
            "Ensure at least one enabled provider with an active API key supports this type.",
            reason=NoProviderAvailableError.ALL_UNAVAILABLE,
            generation_type=ctx.generation_type.value,
        )

    async def route_generation(self, ctx: RoutingContext, request: GenerationRequest) -> SelectedRoute:
        """Return the first candidate passing the health, credential and capability checks.

        Raises
        ------
        NoProviderAvailableError
            ``no_providers_configured`` for an empty configuration,
            ``all_unavailable`` when every candidate was skipped.
        """
        selected = await self._select(ctx, request, await self._candidates(ctx), set())
        if selected is None:
            raise self._unavailable(ctx)
        normalized_log_event(
            _logger,
            "router.select",
            LogContext(provider=selected.provider_name, user_id=ctx.user_id, generation_id=ctx.generation_id),
            phase="finish",
            type=request.type.value,
        )
        return selected

    # ----- execution -----
    async def _execute(self, selected: SelectedRoute, request: GenerationRequest) -> GenerationResponse:
        try:
            return await selected.adapter.generate(request)
        except Exception as exc:  # noqa: BLE001 - third-party adapters may raise
            code = classify_exception(exc)
            return GenerationResponse.failure(str(exc) or type(exc).__name__, error_code=code.value)

    async def execute_with_fallback(
        self,
        ctx: RoutingContext,
        request: GenerationRequest,
        max_attempts: Optional[int] = None,
    ) -> RoutingOutcome:
        """Route and execute, falling back across candidates on failure.

        Every execution updates that provider's health before the next
        attempt. When all attempts fail the outcome carries the last failure
        response (its ``error`` is the last observed error).

        Raises
        ------
        NoProviderAvailableError
            Nothing was executable (see :meth:`route_generation`).
        """
        limit = max_attempts if max_attempts is not None else get_settings().router_max_attempts
        limit = max(1, int(limit))
        queue = await self._candidates(ctx)
        tried: Set[str] = set()
        attempts: List[AttemptRecord] = []
        last: Optional[Tuple[SelectedRoute, GenerationResponse]] = None

        while len(attempts) < limit:
            selected = await self._select(ctx, request, queue, tried)
            if selected is None:
                break
            attempt_no = len(attempts) + 1
            log_ctx = LogContext(provider=selected.provider_name, user_id=ctx.user_id, generation_id=ctx.generation_id)
            normalized_log_event(_logger, "router.execute", log_ctx, phase="start", attempt=attempt_no)
            t0 = time.perf_counter()
            response = await self._execute(selected, request)
            duration = _elapsed_ms(t0)
            await self._record_health(selected.provider_name, ctx.user_id, response, duration)
            attempts.append(AttemptRecord(selected.provider_name, response.success, duration, response.error))
            last = (selected, response)

            if response.success:
                normalized_log_event(
                    _logger,
                    "router.execute",
                    log_ctx,
                    phase="finish",
                    attempt=attempt_no,
                    tokens=response.tokens,
                    duration_ms=duration,
                )
                return RoutingOutcome(response=response, selected=selected, attempts=tuple(attempts))

            normalized_log_event(
                _logger,
                "router.execute",
                log_ctx,
                phase="error",
                attempt=attempt_no,
                error_code=response.error_code or ErrorCode.UNKNOWN.value,
                level=logging.WARNING,
                error=response.error,
                duration_ms=duration,
            )
            fallback = selected.route.fallback_provider if selected.route else None
            if fallback and fallback not in tried:
                existing = next((c for c in queue if c.name == fallback), None)
                if existing is not None:
                    queue.remove(existing)
                queue.insert(0, existing or _Candidate(fallback, None))

        if last is None:
            raise self._unavailable(ctx)
        selected, response = last
        return RoutingOutcome(response=response, selected=selected, attempts=tuple(attempts))


__all__ = [
    "AdapterFactory",
    "AttemptRecord",
    "ProviderRouter",
    "RoutingContext",
    "RoutingOutcome",
    "SelectedRoute",
]
