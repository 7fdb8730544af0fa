"""FastAPI application for the media lab provider layer.

The app is a thin HTTP shell: identity comes from the ``X-User-Id`` header
set by the upstream auth layer, every domain error maps to a JSON error
payload, and all behavior lives in the credential store, router and
generation services held by :class:`ServiceContainer`.

Lifecycle
---------
On startup the SQLite schema is ensured. On shutdown in-flight generation
tasks get a grace period, then pooled provider HTTP clients are closed.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..base.http import aclose_all_clients
from ..base.logging import get_logger, log_event
from ..config import get_settings
from ..config.defaults import SERVICE_SHUTDOWN_GRACE_SECONDS
from ..persistence import UowFactory
from .app_parts import (
    ServiceContainer,
    generation_router,
    keys_router,
    projects_router,
    providers_router,
    register_error_handlers,
)

_logger = get_logger("service")


def create_app(uow_factory: Optional[UowFactory] = None, master_key: Optional[str] = None) -> FastAPI:
    """Build the application.

    Parameters
    ----------
    uow_factory:
        Datastore factory; defaults to SQLite at ``settings.db_path``.
    master_key:
        Encryption master secret; defaults to ``ENCRYPTION_MASTER_KEY``.
    """
    settings = get_settings()
    container = ServiceContainer.build(uow_factory, master_key=master_key)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        with container.uow_factory():
            pass  # opening a unit of work ensures the schema
        log_event(_logger, "service.startup", version=__version__)
        try:
            yield
        finally:
            try:
                await asyncio.wait_for(
                    container.generations.wait_for_pending(),
                    timeout=SERVICE_SHUTDOWN_GRACE_SECONDS,
                )
            except asyncio.TimeoutError:
                pending = container.generations.pending_tasks
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                log_event(_logger, "service.shutdown_cancelled_generations")
            await aclose_all_clients()

    app = FastAPI(title="Media Lab Provider Service", version=__version__, lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        """Liveness check; does not touch providers."""
        return {"ok": True, "version": __version__}

    app.include_router(generation_router)
    app.include_router(keys_router)
    app.include_router(providers_router)
    app.include_router(projects_router)
    return app


__all__ = ["create_app"]
