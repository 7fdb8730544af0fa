"""FastAPI dependencies: the service container and the caller identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, Request

from ...base.errors import UnauthorizedError
from ...config.defaults import USER_ID_HEADER
from ...credentials import CredentialStore
from ...generation import GenerationService, ProjectService
from ...persistence import UowFactory, sqlite_uow_factory
from ...routing import ProviderRouter


@dataclass
class ServiceContainer:
    """Long-lived service objects shared by every request of one app."""

    uow_factory: UowFactory
    credentials: CredentialStore
    router: ProviderRouter
    generations: GenerationService
    projects: ProjectService

    @classmethod
    def build(cls, uow_factory: Optional[UowFactory] = None, master_key: Optional[str] = None) -> "ServiceContainer":
        factory = uow_factory or sqlite_uow_factory()
        credentials = CredentialStore(factory, master_key=master_key)
        router = ProviderRouter(factory, credentials=credentials)
        return cls(
            uow_factory=factory,
            credentials=credentials,
            router=router,
            generations=GenerationService(factory, router=router),
            projects=ProjectService(factory),
        )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_user_id(x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER)) -> str:
    """Return the authenticated user id supplied by the upstream auth layer."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedError("You must be logged in")
    return user_id


__all__ = ["ServiceContainer", "get_container", "get_user_id"]
