"""Shared async HTTP client pool for provider adapters.

Purpose:
    Provide a centralized pool of reusable ``httpx.AsyncClient`` instances so
    adapters do not allocate a client (and its connection pool) per call.
    Timeouts derive exclusively from :func:`get_timeout_config`.

Lifecycle & cleanup:
    - Clients are cached by ``(base_url, purpose)``. Purposes keep distinct
      pools (e.g. "generate" vs "poll").
    - The service closes every pooled client on shutdown via
      :func:`aclose_all_clients`. Tests inject their own clients (usually
      backed by ``httpx.MockTransport``) and never touch the pool.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

import httpx

from ..timeouts import get_timeout_config

_CLIENTS: Dict[Tuple[Optional[str], str], httpx.AsyncClient] = {}
_LOCK = threading.RLock()


def get_async_client(base_url: Optional[str], purpose: str) -> httpx.AsyncClient:
    """Return a pooled ``httpx.AsyncClient`` for the given base URL and purpose.

    Parameters:
        base_url: Optional API base URL set on the client so callers can use
            relative paths. ``None`` groups clients under a shared key.
        purpose: Short discriminator for separate pools. Keep it stable to
            maximize reuse.
    """
    key = (base_url, purpose)
    client = _CLIENTS.get(key)
    if client is not None and not client.is_closed:
        return client

    with _LOCK:
        client = _CLIENTS.get(key)
        if client is not None and not client.is_closed:
            return client
        timeout = get_timeout_config().as_httpx()
        client = (
            httpx.AsyncClient(base_url=base_url, timeout=timeout)
            if base_url
            else httpx.AsyncClient(timeout=timeout)
        )
        _CLIENTS[key] = client
        return client


async def aclose_all_clients() -> None:
    """Close and clear all pooled clients (application shutdown)."""
    with _LOCK:
        clients = list(_CLIENTS.values())
        _CLIENTS.clear()
    for c in clients:
        await c.aclose()


__all__ = ["get_async_client", "aclose_all_clients"]
