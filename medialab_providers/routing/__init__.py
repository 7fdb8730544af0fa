"""Provider routing: selection, health tracking and fallback execution."""

from .router import (
    AdapterFactory,
    AttemptRecord,
    ProviderRouter,
    RoutingContext,
    RoutingOutcome,
    SelectedRoute,
)

__all__ = [
    "AdapterFactory",
    "AttemptRecord",
    "ProviderRouter",
    "RoutingContext",
    "RoutingOutcome",
    "SelectedRoute",
]
