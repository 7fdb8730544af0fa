"""Unified configuration layer.

Goals
-----
* Centralize service-level settings (database path, CORS origins, routing
  attempts, public app URL).
* Merge sources in a predictable order:
    1. Built-in defaults (``config.defaults``)
    2. Optional external config file (JSON or YAML) named by
       ``MEDIALAB_CONFIG_FILE``
    3. Environment variables (``.env`` is loaded first via python-dotenv)
* Provide a single call site: ``get_settings()``.

External Config File (Optional)
-------------------------------
JSON is attempted first, then YAML. Structure example:

```
db_path: ~/.medialab/medialab.db
cors_origins: "http://localhost:3000"
router_max_attempts: 2
app_url: https://media.example.org
```

Public API
----------
* get_settings(refresh: bool = False) -> Settings
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .defaults import (
    APP_DEFAULT_URL,
    DEFAULT_DB_FILENAME,
    ROUTER_DEFAULT_MAX_ATTEMPTS,
    SERVICE_CORS_DEFAULT_ORIGINS,
)
from .env import (
    APP_URL_ENV,
    CONFIG_FILE_ENV,
    CORS_ORIGINS_ENV,
    DB_PATH_ENV,
    MAX_ATTEMPTS_ENV,
    get_env,
)

DEFAULT_DB_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class Settings:
    """Resolved service settings.

    Attributes:
        db_path: SQLite database file path.
        cors_origins: Allowed CORS origins for the HTTP service.
        router_max_attempts: Default bound for fallback attempts.
        app_url: Public URL of the application (sent as referer to some APIs).
    """

    db_path: str
    cors_origins: List[str]
    router_max_attempts: int
    app_url: str


_CACHED: Optional[Settings] = None


def _load_external_config() -> Dict[str, Any]:
    path = get_env(CONFIG_FILE_ENV)
    if not path:
        return {}
    p = Path(path).expanduser()
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = yaml.safe_load(text) or {}
    return data if isinstance(data, dict) else {}


def _split_origins(raw: Any) -> List[str]:
    if isinstance(raw, (list, tuple)):
        return [str(o).strip() for o in raw if str(o).strip()]
    return [o.strip() for o in str(raw).split(",") if o.strip()]


def _parse_int(value: Any, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def get_settings(refresh: bool = False) -> Settings:
    """Return the process-cached :class:`Settings`.

    Merge order (later wins): defaults -> external config file -> env vars.
    Pass ``refresh=True`` to re-read sources (tests adjust env at runtime).
    """
    global _CACHED  # noqa: PLW0603 - documented module cache
    if _CACHED is not None and not refresh:
        return _CACHED

    load_dotenv(override=False)
    cfg: Dict[str, Any] = {
        "db_path": str(DEFAULT_DB_DIR / DEFAULT_DB_FILENAME),
        "cors_origins": SERVICE_CORS_DEFAULT_ORIGINS,
        "router_max_attempts": ROUTER_DEFAULT_MAX_ATTEMPTS,
        "app_url": APP_DEFAULT_URL,
    }
    cfg |= {k: v for k, v in _load_external_config().items() if k in cfg and v is not None}

    env_map = {
        "db_path": DB_PATH_ENV,
        "cors_origins": CORS_ORIGINS_ENV,
        "router_max_attempts": MAX_ATTEMPTS_ENV,
        "app_url": APP_URL_ENV,
    }
    for field, env_name in env_map.items():
        if (val := get_env(env_name)) is not None:
            cfg[field] = val

    _CACHED = Settings(
        db_path=str(Path(str(cfg["db_path"])).expanduser()),
        cors_origins=_split_origins(cfg["cors_origins"]),
        router_max_attempts=_parse_int(cfg["router_max_attempts"], ROUTER_DEFAULT_MAX_ATTEMPTS),
        app_url=str(cfg["app_url"]),
    )
    return _CACHED


def override_settings(**changes: Any) -> Settings:
    """Replace fields on the cached settings (test and embedding convenience)."""
    global _CACHED  # noqa: PLW0603
    _CACHED = replace(get_settings(), **changes)
    return _CACHED


__all__ = ["Settings", "get_settings", "override_settings"]
