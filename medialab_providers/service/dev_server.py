from __future__ import annotations

import os

import uvicorn

from ..config.defaults import SERVICE_DEFAULT_HOST, SERVICE_DEFAULT_PORT


def _parse_port(value: str | None, default: int) -> int:
    """Port from ``value``; ``default`` when unset, non-numeric or out of range."""
    try:
        port = int(value) if value else default
    except ValueError:
        return default
    return port if 0 < port < 65536 else default


def main() -> None:
    """Start the development server.

    - MEDIALAB_SERVICE_HOST: interface to bind (default "127.0.0.1")
    - MEDIALAB_SERVICE_PORT: port to bind (default 8091)
    - MEDIALAB_SERVICE_RELOAD: "true" enables auto-reload (default off)
    """
    host = os.getenv("MEDIALAB_SERVICE_HOST", SERVICE_DEFAULT_HOST)
    port = _parse_port(os.getenv("MEDIALAB_SERVICE_PORT"), SERVICE_DEFAULT_PORT)
    reload_enabled = os.getenv("MEDIALAB_SERVICE_RELOAD", "false").lower() == "true"

    uvicorn.run(
        "medialab_providers.service.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
