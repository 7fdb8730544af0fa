"""Shared testing utilities for adapter, router and service tests.

Purpose:
    Keep the transport fakes and stub adapters in one place so individual
    test modules stay focused on behavior.

Exports:
    - ``assert_true``: explicit AssertionError helper (Bandit B101 friendly).
    - ``recording_client``: ``httpx.AsyncClient`` over ``httpx.MockTransport``
      that records every request it serves.
    - ``StubProvider``: configurable ``BaseMediaProvider`` without network.
    - ``FakeFactory``: in-memory adapter factory for the router.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import httpx

from medialab_providers.base.errors import ProviderTransportError
from medialab_providers.base.factory import UnknownProviderError
from medialab_providers.base.models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationType,
    TokenUsage,
)
from medialab_providers.base.provider_base import BaseMediaProvider

Handler = Callable[[httpx.Request], httpx.Response]


def assert_true(condition: bool, message: str) -> None:
    """Raise AssertionError with ``message`` if ``condition`` is False."""
    if not condition:
        raise AssertionError(message)


def recording_client(handler: Handler) -> Tuple[httpx.AsyncClient, List[httpx.Request]]:
    """Return a client routed to ``handler`` and the list of requests it saw."""
    seen: List[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(_record)), seen


def request_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8") or "{}")


def failing_handler(status: int = 500, body: Optional[Dict[str, Any]] = None) -> Handler:
    payload = body if body is not None else {"error": {"message": "upstream exploded"}}
    return lambda request: httpx.Response(status, json=payload)


def unexpected_call(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected network call: {request.method} {request.url}")


class StubProvider(BaseMediaProvider):
    """Adapter whose outcome is fixed at construction.

    ``fail`` makes every generation (and the health check) raise a transport
    error with that message.
    """

    def __init__(
        self,
        api_key: str = "stub-key-0000",
        *,
        name: str = "stub",
        types: Iterable[GenerationType] = (GenerationType.TEXT,),
        fail: Optional[str] = None,
        tokens: Optional[TokenUsage] = TokenUsage(input=2, output=1),
        cost_cents: int = 7,
    ) -> None:
        self.name = name
        self.supported_types = frozenset(types)
        super().__init__(api_key)
        self.fail = fail
        self.tokens = tokens
        self.cost_cents = cost_cents
        self.calls = 0

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        self.calls += 1
        if self.fail:
            raise ProviderTransportError(self.fail, provider=self.name)
        return GenerationResponse.ok(
            f"{self.name}: {request.prompt}",
            {"model": request.model or "stub-1"},
            tokens=self.tokens,
        )

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        return CostEstimate(self.cost_cents, {"flat_estimate_cents": self.cost_cents})

    async def _ping(self) -> None:
        if self.fail:
            raise ProviderTransportError(self.fail, provider=self.name)


class FakeFactory:
    """Adapter factory over pre-built adapters keyed by registry name."""

    def __init__(self, adapters: Dict[str, BaseMediaProvider]) -> None:
        self.adapters = adapters
        self.created: List[str] = []
        self.received_keys: Dict[str, str] = {}

    def is_registered(self, name: str) -> bool:
        return name in self.adapters

    def create(self, name: str, api_key: str, **kwargs: Any) -> BaseMediaProvider:
        if name not in self.adapters:
            raise UnknownProviderError(f"Unknown provider '{name}'", provider=name)
        self.created.append(name)
        self.received_keys[name] = api_key
        return self.adapters[name]


__all__ = [
    "assert_true",
    "recording_client",
    "request_json",
    "failing_handler",
    "unexpected_call",
    "StubProvider",
    "FakeFactory",
]
