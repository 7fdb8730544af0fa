"""medialab_providers package

Provider abstraction and routing layer for a multi-tenant AI media lab.

Purpose:
    Offer one generate/estimate/health/list-models contract over several
    third-party generation APIs, a credential store for per-user encrypted API
    keys, a health-aware router with fallback, and the generation record
    lifecycle. The FastAPI service under ``medialab_providers.service`` is a
    thin HTTP shell over these pieces.

Public API (re-exported):
    - Version: ``__version__``
    - Errors: :class:`MediaLabError` and its subclasses, :class:`ErrorCode`
    - Factory: :func:`create`, :class:`ProviderFactory`
    - Values: :class:`GenerationRequest`, :class:`GenerationResponse`,
      :class:`GenerationType`, :class:`CostEstimate`,
      :class:`HealthCheckResponse`
"""

from typing import Any

from .base.aliases import resolve_provider_alias
from .base.errors import (
    CryptoError,
    ErrorCode,
    ForbiddenError,
    MediaLabError,
    NoProviderAvailableError,
    NotFoundError,
    ProviderTimeoutError,
    ProviderTransportError,
    UnauthorizedError,
    ValidationError,
)
from .base.factory import ProviderFactory, UnknownProviderError
from .base.interfaces import MediaProvider
from .base.models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationType,
    HealthCheckResponse,
)

__version__ = "0.1.0"


def create(provider_name: str, api_key: str, **kwargs: Any) -> MediaProvider:
    """Instantiate an adapter by provider or display name (``google`` -> ``gemini``)."""
    return ProviderFactory.create(resolve_provider_alias(provider_name), api_key, **kwargs)


__all__ = [
    "__version__",
    "create",
    "resolve_provider_alias",
    "ProviderFactory",
    "UnknownProviderError",
    "MediaProvider",
    "ErrorCode",
    "MediaLabError",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ProviderTransportError",
    "ProviderTimeoutError",
    "NoProviderAvailableError",
    "CryptoError",
    "CostEstimate",
    "GenerationRequest",
    "GenerationResponse",
    "GenerationType",
    "HealthCheckResponse",
]
