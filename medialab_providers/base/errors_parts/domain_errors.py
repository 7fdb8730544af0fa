"""
Domain error hierarchy raised across the routing, credential and service
layers.

Each class pins an :class:`ErrorCode` and an HTTP status so the service layer
can translate any :class:`MediaLabError` into a response without a lookup
table of its own. Provider transport failures are raised inside adapters but
always converted into a failed ``GenerationResponse`` before leaving them.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from .error_code import ErrorCode


class MediaLabError(Exception):
    """Base class for expected, user-actionable failures."""

    code: ErrorCode = ErrorCode.INTERNAL
    http_status: int = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON error payload used by the HTTP layer."""
        payload: Dict[str, Any] = {"ok": False, "error": self.code.value, "message": self.message}
        if self.context:
            payload["context"] = self.context
        return payload


class ValidationError(MediaLabError):
    """Malformed or missing request fields; never retried."""

    code = ErrorCode.VALIDATION
    http_status = 400


class NotFoundError(MediaLabError):
    """Unknown provider key, missing credential or missing record."""

    code = ErrorCode.NOT_FOUND
    http_status = 404


class UnauthorizedError(MediaLabError):
    code = ErrorCode.AUTH
    http_status = 401


class ForbiddenError(MediaLabError):
    code = ErrorCode.FORBIDDEN
    http_status = 403


class ProviderTransportError(MediaLabError):
    """Network or HTTP failure while talking to an external provider.

    Raised inside adapters only; ``generate`` converts it into a failed
    ``GenerationResponse``. ``code`` may be narrowed per instance from the
    HTTP status (e.g. ``auth`` for 401).
    """

    code = ErrorCode.TRANSIENT
    http_status = 502

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status: Optional[int] = None,
        code: Optional[ErrorCode] = None,
        **context: Any,
    ) -> None:
        super().__init__(message, provider=provider, status=status, **context)
        self.provider = provider
        self.status = status
        if code is not None:
            self.code = code


class ProviderTimeoutError(ProviderTransportError):
    """A submit-then-poll job did not finish within its maximum wait."""

    code = ErrorCode.TIMEOUT
    http_status = 504


class NoProviderAvailableError(MediaLabError):
    """Routing found no usable candidate.

    ``reason`` distinguishes a user with no enabled routes
    (``no_providers_configured``) from one whose configured providers were all
    unhealthy, uncredentialed, incapable or failing (``all_unavailable``).
    """

    code = ErrorCode.UNAVAILABLE
    http_status = 503

    NO_PROVIDERS_CONFIGURED = "no_providers_configured"
    ALL_UNAVAILABLE = "all_unavailable"

    def __init__(self, message: str, *, reason: str, **context: Any) -> None:
        super().__init__(message, reason=reason, **context)
        self.reason = reason


class CryptoError(MediaLabError):
    """Encrypt or decrypt failure (corrupt record, wrong master key)."""

    code = ErrorCode.CRYPTO
    http_status = 500


__all__ = [
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
