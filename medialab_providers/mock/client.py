"""Deterministic in-process mock provider for offline development and tests.

Purpose
-------
Implement the full ``MediaProvider`` contract without network traffic so the
router, generation service and HTTP layer can run end to end. Registered in
the factory only while ``MEDIALAB_USE_MOCKS`` is truthy.

Behavior
--------
* Every generation type is supported. Text echoes the prompt; image returns
  a 1x1 PNG data URI; video and audio return stable placeholder URLs.
* ``parameters["mock_fail"]`` forces a failed response (message taken from
  the value when it is a string) to exercise fallback paths.
* Every estimate is a flat 1 cent.
"""

from __future__ import annotations

import hashlib

from ..base.errors import ProviderTransportError
from ..base.models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationType,
    TokenUsage,
)
from ..base.pricing import estimate_prompt_tokens
from ..base.provider_base import BaseMediaProvider

FLAT_PRICE_CENTS = 1
MOCK_MODEL = "mock-1"
_PIXEL_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class MockProvider(BaseMediaProvider):
    """Adapter returning canned content for every generation type."""

    name = "mock"
    supported_types = frozenset(GenerationType)
    fallback_models = (MOCK_MODEL,)

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        failure = request.parameters.get("mock_fail")
        if failure:
            detail = failure if isinstance(failure, str) else "forced failure"
            raise ProviderTransportError(f"Mock provider error: {detail}", provider=self.name)

        digest = hashlib.sha256(request.prompt.encode("utf-8")).hexdigest()[:12]
        if request.type is GenerationType.TEXT:
            content = f"Mock response to: {request.prompt}"
        elif request.type is GenerationType.IMAGE:
            content = f"data:image/png;base64,{_PIXEL_PNG}"
        else:
            content = f"https://mock.medialab.invalid/{request.type.value}/{digest}"
        tokens = TokenUsage(input=estimate_prompt_tokens(request.prompt), output=estimate_prompt_tokens(content))
        return GenerationResponse.ok(
            content,
            {"model": request.model or MOCK_MODEL, "fingerprint": digest},
            tokens=tokens if request.type is GenerationType.TEXT else None,
            duration_ms=0,
        )

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        return CostEstimate(FLAT_PRICE_CENTS, {"flat_estimate_cents": FLAT_PRICE_CENTS})

    async def _ping(self) -> None:
        return None


__all__ = ["MockProvider"]
