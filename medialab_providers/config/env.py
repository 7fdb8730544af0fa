"""medialab_providers.config.env
=============================

Environment variable names and small helpers for reading them.

Purpose
-------
- Provide a single source of truth for the environment variables the
  package reads (master encryption key, database path, mock toggle, ...).
- Offer helpers that never raise on unset variables; callers decide how to
  treat missing values.

Design Notes
------------
Provider API keys are *not* read from the environment here. Per-user
credentials live encrypted in the credential store and are resolved by the
router at request time.
"""

from __future__ import annotations

import os
from typing import Optional

ENCRYPTION_MASTER_KEY_ENV = "ENCRYPTION_MASTER_KEY"  # pragma: allowlist secret - env var name
DB_PATH_ENV = "MEDIALAB_DB_PATH"
CONFIG_FILE_ENV = "MEDIALAB_CONFIG_FILE"
USE_MOCKS_ENV = "MEDIALAB_USE_MOCKS"
APP_URL_ENV = "MEDIALAB_APP_URL"
LOG_LEVEL_ENV = "MEDIALAB_LOG_LEVEL"
CORS_ORIGINS_ENV = "MEDIALAB_CORS_ORIGINS"
MAX_ATTEMPTS_ENV = "MEDIALAB_ROUTER_MAX_ATTEMPTS"

_TRUTHY = {"1", "true", "yes", "on"}


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the provided string looks like a placeholder value.

    Heuristics: contains 'placeholder', 'changeme', 'example', or starts with
    'test_'. The check is case-insensitive and ignores surrounding spaces.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return (
        "placeholder" in v
        or "changeme" in v
        or "example" in v
        or v.startswith("test_")
    )


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Return a non-empty, non-placeholder environment value or ``default``."""
    val = os.environ.get(name)
    if not val or is_placeholder(val):
        return default
    return val.strip()


def env_flag(name: str, default: bool = False) -> bool:
    """Interpret an environment variable as a boolean toggle."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def mocks_enabled() -> bool:
    """Whether the in-process mock provider should be registered."""
    return env_flag(USE_MOCKS_ENV)


__all__ = [
    "ENCRYPTION_MASTER_KEY_ENV",
    "DB_PATH_ENV",
    "CONFIG_FILE_ENV",
    "USE_MOCKS_ENV",
    "APP_URL_ENV",
    "LOG_LEVEL_ENV",
    "CORS_ORIGINS_ENV",
    "MAX_ATTEMPTS_ENV",
    "is_placeholder",
    "get_env",
    "env_flag",
    "mocks_enabled",
]
