"""
Provider-agnostic domain models (value objects) public surface.

Re-exports the one-class-per-file implementations under
``medialab_providers.base.models_parts``.
"""

from .models_parts import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationResult,
    GenerationType,
    HealthCheckResponse,
    TokenUsage,
)

__all__ = [
    "CostEstimate",
    "GenerationRequest",
    "GenerationResponse",
    "GenerationResult",
    "GenerationType",
    "HealthCheckResponse",
    "TokenUsage",
]
