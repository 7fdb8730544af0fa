"""
Providers Base Package

Exports the provider-agnostic contract, value objects, the shared adapter base
class and the provider factory:
- Interfaces: ``MediaProvider`` protocol
- Models: request/response/estimate/health value objects
- Factory: lazy creation of adapters by canonical key, plus alias resolution
"""

from .aliases import resolve_provider_alias
from .factory import ProviderFactory, UnknownProviderError
from .interfaces import MediaProvider
from .models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationResult,
    GenerationType,
    HealthCheckResponse,
    TokenUsage,
)
from .provider_base import BaseMediaProvider
from .timeouts import TimeoutConfig, get_timeout_config

__all__ = [
    "MediaProvider",
    "BaseMediaProvider",
    "CostEstimate",
    "GenerationRequest",
    "GenerationResponse",
    "GenerationResult",
    "GenerationType",
    "HealthCheckResponse",
    "TokenUsage",
    "ProviderFactory",
    "UnknownProviderError",
    "resolve_provider_alias",
    "TimeoutConfig",
    "get_timeout_config",
]
