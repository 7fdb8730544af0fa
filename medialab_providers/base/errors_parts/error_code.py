"""
Normalized provider error codes.

Values are lowercase snake_case and form a stable contract for logs, the
``provider_health`` error fields and HTTP error payloads.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Failure categories for provider calls and domain errors."""

    AUTH = "auth"
    FORBIDDEN = "forbidden"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    TRANSIENT = "transient"
    UNSUPPORTED = "unsupported"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER_ERROR = "server_error"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"
    CRYPTO = "crypto"
    UNKNOWN = "unknown"


__all__ = ["ErrorCode"]
