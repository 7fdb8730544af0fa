"""Timeout configuration for provider HTTP traffic.

TimeoutConfig
    Normalized timeout values (seconds) used by the shared HTTP client pool
    and by adapter health checks. Submit-then-poll wall-clock limits are
    adapter constants (see ``config.defaults``) because they depend on the
    media type, not on the transport.

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use and whenever the relevant variables change. Supported variables
    (all optional, positive floats):
        MEDIALAB_TIMEOUT_HTTP_SECONDS
        MEDIALAB_TIMEOUT_CONNECT_SECONDS
        MEDIALAB_TIMEOUT_HEALTH_SECONDS
"""
from __future__ import annotations

import os
from dataclasses import dataclass

import httpx

_ENV_NAMES = (
    "MEDIALAB_TIMEOUT_HTTP_SECONDS",
    "MEDIALAB_TIMEOUT_CONNECT_SECONDS",
    "MEDIALAB_TIMEOUT_HEALTH_SECONDS",
)


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        http_timeout_seconds: Read/write timeout for a single provider call.
        connect_timeout_seconds: TCP/TLS connect timeout.
        health_timeout_seconds: Overall timeout for a health-check request.
    """

    http_timeout_seconds: float = 120.0
    connect_timeout_seconds: float = 10.0
    health_timeout_seconds: float = 15.0

    def as_httpx(self) -> httpx.Timeout:
        """Return the equivalent ``httpx.Timeout`` for generation calls."""
        return httpx.Timeout(self.http_timeout_seconds, connect=self.connect_timeout_seconds)


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float) -> float:
    """Parse a positive float from the environment, falling back to ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached :class:`TimeoutConfig`."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(os.getenv(n, "") for n in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED
    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        http_timeout_seconds=_parse_env_float(_ENV_NAMES[0], defaults.http_timeout_seconds),
        connect_timeout_seconds=_parse_env_float(_ENV_NAMES[1], defaults.connect_timeout_seconds),
        health_timeout_seconds=_parse_env_float(_ENV_NAMES[2], defaults.health_timeout_seconds),
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = ["TimeoutConfig", "get_timeout_config"]
