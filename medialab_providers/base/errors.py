"""Error taxonomy public surface.

Re-exports the one-class-per-file implementations under
``medialab_providers.base.errors_parts`` behind a stable import path.
"""

from .errors_parts import (
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
    classify_exception,
    classify_status,
)

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
