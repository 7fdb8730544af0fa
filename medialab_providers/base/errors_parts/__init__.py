"""Errors parts package public surface.

Prefer importing from ``medialab_providers.base.errors`` for the stable surface.
"""

from .classification import classify_exception, classify_status
from .domain_errors import (
    CryptoError,
    ForbiddenError,
    MediaLabError,
    NoProviderAvailableError,
    NotFoundError,
    ProviderTimeoutError,
    ProviderTransportError,
    UnauthorizedError,
    ValidationError,
)
from .error_code import ErrorCode

__all__ = [
    "ErrorCode",
    "classify_exception",
    "classify_status",
    "MediaLabError",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ProviderTransportError",
    "ProviderTimeoutError",
    "NoProviderAvailableError",
    "CryptoError",
]
