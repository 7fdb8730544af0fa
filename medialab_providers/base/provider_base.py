"""BaseMediaProvider: shared lifecycle for every provider adapter.

Purpose:
- Implement the :class:`MediaProvider` surface once (capability checks,
  structured logging, timing, failure conversion) so concrete adapters only
  supply the provider-specific pieces.

Subclasses must implement:
- ``name`` and ``supported_types`` class attributes.
- ``_generate(request)``: perform the provider call and return a
  ``GenerationResponse``. It may raise freely; every exception is converted
  into a failed response here.
- ``estimate_cost(request)``: static price-table arithmetic.
- ``_ping()``: the cheapest request that proves the credential works.

They may override ``_list_models()`` for a live model query; the default
returns the static ``fallback_models`` catalog.

Secrets policy:
- The credential is held privately, excluded from ``repr`` and redacted from
  every error message that leaves the adapter.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import FrozenSet, List, Optional, Tuple

import httpx

from .errors import ErrorCode, MediaLabError, ValidationError, classify_exception
from .http import get_async_client
from .logging import LogContext, get_logger, log_event, normalized_log_event
from .models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationType,
    HealthCheckResponse,
)
from .timeouts import get_timeout_config

_REDACTED = "[redacted]"


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


class BaseMediaProvider:
    """Reusable base class implementing the ``MediaProvider`` protocol."""

    name: str = ""
    supported_types: FrozenSet[GenerationType] = frozenset()
    fallback_models: Tuple[str, ...] = ()
    base_url: Optional[str] = None

    def __init__(self, api_key: str, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        if not isinstance(api_key, str) or not api_key.strip():
            raise ValidationError("api_key is required", provider=self.name)
        self._api_key = api_key.strip()
        self._http_client = http_client
        self._logger = get_logger(f"providers.{self.name}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    # ----- Abstract surface -----
    async def _generate(self, request: GenerationRequest) -> GenerationResponse:  # pragma: no cover - abstract
        raise NotImplementedError

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:  # pragma: no cover - abstract
        raise NotImplementedError

    async def _ping(self) -> None:  # pragma: no cover - abstract
        """Issue a minimal request; raise on any failure."""
        raise NotImplementedError

    async def _list_models(self) -> List[str]:
        return list(self.fallback_models)

    # ----- Capability & basic info -----
    def get_name(self) -> str:
        return self.name

    def get_supported_types(self) -> FrozenSet[GenerationType]:
        return frozenset(self.supported_types)

    def supports(self, generation_type: GenerationType | str) -> bool:
        try:
            parsed = GenerationType.parse(generation_type)
        except ValueError:
            return False
        return parsed in self.get_supported_types()

    @property
    def http(self) -> httpx.AsyncClient:
        """Injected client when provided, else the pooled client for ``base_url``."""
        if self._http_client is not None:
            return self._http_client
        return get_async_client(self.base_url, f"provider:{self.name}")

    # ----- Generation -----
    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run ``_generate`` with capability gating, logging and failure conversion."""
        ctx = LogContext(provider=self.name, model=request.model or None)
        if not self.supports(request.type):
            message = f"{self.name} does not support {request.type.value} generation"
            normalized_log_event(
                self._logger,
                "provider.generate",
                ctx,
                phase="skip",
                error_code=ErrorCode.UNSUPPORTED.value,
                level=logging.WARNING,
                type=request.type.value,
            )
            return GenerationResponse.failure(message, error_code=ErrorCode.UNSUPPORTED.value)

        t0 = time.perf_counter()
        normalized_log_event(self._logger, "provider.generate", ctx, phase="start", type=request.type.value)
        try:
            response = await self._generate(request)
        except Exception as exc:  # noqa: BLE001 - every failure becomes a failed response
            code = classify_exception(exc)
            message = self._describe(exc)
            duration = _elapsed_ms(t0)
            normalized_log_event(
                self._logger,
                "provider.generate",
                ctx,
                phase="error",
                error_code=code.value,
                level=logging.WARNING,
                error=message,
                duration_ms=duration,
            )
            return GenerationResponse.failure(message, error_code=code.value, duration_ms=duration)

        if response.duration_ms is None:
            response = GenerationResponse(
                success=response.success,
                result=response.result,
                error=response.error,
                error_code=response.error_code,
                tokens=response.tokens,
                duration_ms=_elapsed_ms(t0),
            )
        normalized_log_event(
            self._logger,
            "provider.generate",
            ctx,
            phase="finish",
            error_code=response.error_code,
            tokens=response.tokens,
            success=response.success,
            duration_ms=response.duration_ms,
        )
        return response

    # ----- Health / models -----
    async def health_check(self) -> HealthCheckResponse:
        """Time ``_ping`` under the health timeout; report rather than raise."""
        t0 = time.perf_counter()
        try:
            await asyncio.wait_for(self._ping(), timeout=get_timeout_config().health_timeout_seconds)
        except Exception as exc:  # noqa: BLE001 - reported in the response
            message = self._describe(exc)
            log_event(
                self._logger,
                "provider.health",
                LogContext(provider=self.name),
                level=logging.WARNING,
                healthy=False,
                error=message,
            )
            return HealthCheckResponse(healthy=False, error=message, response_time_ms=_elapsed_ms(t0))
        return HealthCheckResponse(healthy=True, response_time_ms=_elapsed_ms(t0))

    async def get_available_models(self) -> List[str]:
        try:
            models = await self._list_models()
        except Exception as exc:  # noqa: BLE001 - curated list fallback
            log_event(
                self._logger,
                "provider.models.fallback",
                LogContext(provider=self.name),
                level=logging.WARNING,
                error=self._describe(exc),
            )
            return list(self.fallback_models)
        return models or list(self.fallback_models)

    async def validate_api_key(self) -> bool:
        return (await self.health_check()).healthy

    # ----- helpers -----
    def _redact(self, text: str) -> str:
        return text.replace(self._api_key, _REDACTED) if self._api_key else text

    def _describe(self, exc: BaseException) -> str:
        """Return a non-empty, credential-free message for ``exc``."""
        if isinstance(exc, MediaLabError):
            text = exc.message
        elif isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            text = f"{self.name} request timed out"
        else:
            text = str(exc) or type(exc).__name__
        return self._redact(text)


__all__ = ["BaseMediaProvider"]
