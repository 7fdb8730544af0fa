"""MediaProvider Protocol (single-class module).

Defines the capability set every provider adapter implements.
"""

from __future__ import annotations

from typing import FrozenSet, List, Protocol, runtime_checkable

from ..models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationType,
    HealthCheckResponse,
)


@runtime_checkable
class MediaProvider(Protocol):
    """Uniform interface over one external generation API.

    Implementations normalize their provider's request/response shapes into
    the package value objects and never leak SDK objects upstream.
    """

    def get_name(self) -> str:
        """Canonical registry key, e.g. ``"openai"`` or ``"nano-banana"``."""
        ...

    def get_supported_types(self) -> FrozenSet[GenerationType]:
        ...

    def supports(self, generation_type: GenerationType | str) -> bool:
        """Pure membership check against ``get_supported_types()``."""
        ...

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Execute one generation.

        Failure handling: never raise for provider-side problems (HTTP error,
        malformed payload, poll timeout, unsupported type). Return a response
        with ``success=False`` and a non-empty ``error`` instead.
        """
        ...

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        """Price a request from static tables; performs no network I/O."""
        ...

    async def health_check(self) -> HealthCheckResponse:
        """Issue a minimal request and report reachability and latency."""
        ...

    async def get_available_models(self) -> List[str]:
        """Return live model ids, or a curated list when the live query fails."""
        ...

    async def validate_api_key(self) -> bool:
        ...
