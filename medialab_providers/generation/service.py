"""Generation lifecycle: accept, execute in the background, record once.

``submit`` validates the request, stores a ``processing`` record and spawns a
detached asyncio task, returning the record immediately. The task runs
:meth:`GenerationService.run`, whose entire body sits inside a catch-all so
the record always reaches ``completed`` or ``failed``. The terminal update is
guarded in SQL, so a record transitions at most once; a second update is
logged and ignored.

On success the cost is the chosen adapter's estimate for the request and is
added to the project's ``spent_cents``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set

from ..base.errors import MediaLabError, NotFoundError, ValidationError
from ..base.factory import ProviderFactory
from ..base.aliases import resolve_provider_alias
from ..base.logging import LogContext, get_logger, log_event, normalized_log_event
from ..base.models import CostEstimate, GenerationRequest, GenerationType
from ..config.defaults import AUTO_PROVIDER
from ..credentials import CredentialStore
from ..persistence import UowFactory, sqlite_uow_factory
from ..persistence.interfaces import (
    GenerationOutcome,
    GenerationRecord,
    GenerationStatus,
)
from ..routing import ProviderRouter, RoutingContext, RoutingOutcome
from .projects import owned_project

_logger = get_logger("generation")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


class GenerationService:
    """Owns generation records and the background execution path.

    Parameters
    ----------
    uow_factory:
        Opens a Unit of Work per datastore round trip.
    router:
        Provider router; built over ``uow_factory`` when omitted.
    """

    def __init__(self, uow_factory: Optional[UowFactory] = None, router: Optional[ProviderRouter] = None) -> None:
        self._uow_factory = uow_factory or sqlite_uow_factory()
        self._router = router or ProviderRouter(self._uow_factory)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    async def wait_for_pending(self) -> None:
        """Await every in-flight background task (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ----- submission -----
    async def submit(
        self,
        user_id: str,
        project_id: str,
        *,
        generation_type: str,
        prompt: str,
        model: str = "",
        provider: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> GenerationRecord:
        """Create the ``processing`` record and start execution in the background.

        Raises
        ------
        ValidationError
            Unknown type or empty prompt.
        NotFoundError, ForbiddenError
            The project is missing or owned by another user.
        """
        request = GenerationRequest(
            type=generation_type,  # type: ignore[arg-type]
            model=model,
            prompt=prompt,
            parameters=dict(parameters or {}),
        )
        preferred = (provider or "").strip().lower() or AUTO_PROVIDER
        record = GenerationRecord(
            id="",
            project_id=project_id,
            user_id=user_id,
            provider=preferred,
            model=request.model,
            generation_type=request.type.value,
            prompt=request.prompt,
            parameters=dict(request.parameters),
            status=GenerationStatus.PROCESSING,
        )
        await asyncio.to_thread(self._insert, record)

        log_event(
            _logger,
            "generation.accepted",
            LogContext(user_id=user_id, generation_id=record.id, model=request.model or None),
            type=request.type.value,
            provider=preferred,
        )
        self._spawn(self.run(record.id, user_id, project_id, request, preferred))
        return record

    def _insert(self, record: GenerationRecord) -> None:
        with self._uow_factory() as uow:
            owned_project(uow, record.project_id, record.user_id)
            uow.generations.add(record)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("generation.task_failed", exc_info=(type(exc), exc, exc.__traceback__))

    # ----- execution -----
    async def run(
        self,
        generation_id: str,
        user_id: str,
        project_id: str,
        request: GenerationRequest,
        preferred_provider: Optional[str] = None,
    ) -> Optional[GenerationRecord]:
        """Route and execute ``request`` and record its terminal state."""
        ctx = RoutingContext(
            user_id=user_id,
            generation_type=request.type,
            preferred_provider=preferred_provider,
            project_id=project_id,
            generation_id=generation_id,
        )
        t0 = time.perf_counter()
        try:
            routed = await self._router.execute_with_fallback(ctx, request)
            outcome = self._outcome_from(routed, request, _elapsed_ms(t0))
        except asyncio.CancelledError:
            # Written synchronously: the task may not get another chance to run.
            self._finish(
                generation_id,
                project_id,
                GenerationOutcome(
                    status=GenerationStatus.FAILED,
                    error_message="Generation cancelled",
                    duration_ms=_elapsed_ms(t0),
                ),
            )
            raise
        except Exception as exc:  # noqa: BLE001 - every failure must reach the record
            message = exc.message if isinstance(exc, MediaLabError) else (str(exc) or type(exc).__name__)
            outcome = GenerationOutcome(
                status=GenerationStatus.FAILED,
                error_message=message,
                duration_ms=_elapsed_ms(t0),
            )
            normalized_log_event(
                _logger,
                "generation.run",
                LogContext(user_id=user_id, generation_id=generation_id),
                phase="error",
                error_code=getattr(getattr(exc, "code", None), "value", None),
                level=logging.WARNING,
                error=message,
            )
        return await asyncio.to_thread(self._finish, generation_id, project_id, outcome)

    def _outcome_from(self, routed: RoutingOutcome, request: GenerationRequest, duration_ms: int) -> GenerationOutcome:
        response = routed.response
        if not response.success:
            return GenerationOutcome(
                status=GenerationStatus.FAILED,
                provider=routed.provider_name,
                error_message=response.error or "Generation failed",
                duration_ms=duration_ms,
            )
        tokens = response.tokens
        return GenerationOutcome(
            status=GenerationStatus.COMPLETED,
            provider=routed.provider_name,
            result=response.result.to_dict() if response.result else {"content": "", "metadata": {}},
            tokens_input=tokens.input if tokens else None,
            tokens_output=tokens.output if tokens else None,
            cost_cents=self._cost_of(routed, request),
            duration_ms=duration_ms,
        )

    def _cost_of(self, routed: RoutingOutcome, request: GenerationRequest) -> int:
        try:
            return routed.adapter.estimate_cost(request).amount_cents
        except MediaLabError as exc:
            log_event(
                _logger,
                "generation.cost_unavailable",
                LogContext(provider=routed.provider_name),
                level=logging.WARNING,
                error=exc.message,
            )
            return 0

    def _finish(self, generation_id: str, project_id: str, outcome: GenerationOutcome) -> Optional[GenerationRecord]:
        with self._uow_factory() as uow:
            changed = uow.generations.complete(generation_id, outcome, _now())
            if changed and outcome.status is GenerationStatus.COMPLETED:
                uow.projects.add_spent(project_id, outcome.cost_cents, _now())
            record = uow.generations.get(generation_id)
        ctx = LogContext(provider=outcome.provider, generation_id=generation_id)
        if not changed:
            log_event(
                _logger,
                "generation.terminal_update_ignored",
                ctx,
                level=logging.WARNING,
                status=outcome.status.value,
            )
            return record
        normalized_log_event(
            _logger,
            "generation.run",
            ctx,
            phase="finish",
            status=outcome.status.value,
            cost_cents=outcome.cost_cents,
            duration_ms=outcome.duration_ms,
        )
        return record

    # ----- reads -----
    def list(
        self,
        user_id: str,
        *,
        project_id: Optional[str] = None,
        generation_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[GenerationRecord]:
        if generation_type is not None:
            try:
                generation_type = GenerationType.parse(generation_type).value
            except ValueError as exc:
                raise ValidationError(f"Unsupported generation type: {generation_type}", field="type") from exc
        if not 1 <= limit <= 100:
            raise ValidationError("limit must be between 1 and 100", field="limit")
        if offset < 0:
            raise ValidationError("offset must be >= 0", field="offset")
        with self._uow_factory() as uow:
            if project_id:
                owned_project(uow, project_id, user_id)
            return uow.generations.list(
                user_id,
                project_id=project_id,
                generation_type=generation_type,
                limit=limit,
                offset=offset,
            )

    def get(self, user_id: str, generation_id: str) -> GenerationRecord:
        with self._uow_factory() as uow:
            record = uow.generations.get(generation_id)
        if record is None or record.user_id != user_id:
            raise NotFoundError("Generation not found", generation_id=generation_id)
        return record

    def stats(self, user_id: str, project_id: Optional[str] = None) -> Dict[str, Any]:
        with self._uow_factory() as uow:
            if project_id:
                owned_project(uow, project_id, user_id)
            return uow.generations.stats(user_id, project_id)


async def estimate_cost(
    credentials: CredentialStore,
    user_id: str,
    provider: str,
    request: GenerationRequest,
) -> CostEstimate:
    """Estimate ``request`` on ``provider`` using the caller's stored key.

    No generation call is made. The key only builds the adapter.
    """
    name = (provider or "").strip().lower()
    if not name or name == AUTO_PROVIDER:
        raise ValidationError("Provider is required", field="provider")
    api_key = await asyncio.to_thread(credentials.get_active, user_id, name)
    adapter = ProviderFactory.create(resolve_provider_alias(name), api_key)
    return adapter.estimate_cost(request)


__all__ = ["GenerationService", "estimate_cost"]
