"""Building blocks of the FastAPI app: schemas, dependencies, handlers and routers."""

from .deps import ServiceContainer, get_container, get_user_id
from .errors import register_error_handlers
from .routes_generation import router as generation_router
from .routes_keys import router as keys_router
from .routes_projects import router as projects_router
from .routes_providers import router as providers_router

__all__ = [
    "ServiceContainer",
    "get_container",
    "get_user_id",
    "register_error_handlers",
    "generation_router",
    "keys_router",
    "projects_router",
    "providers_router",
]
