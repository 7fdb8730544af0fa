"""Provider catalog, routing configuration and health endpoints."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ...base.aliases import resolve_provider_alias
from ...base.factory import ProviderFactory
from .deps import ServiceContainer, get_container, get_user_id
from .schemas import RouteBody

router = APIRouter(prefix="/api")


def _provider_entry(name: str) -> Dict[str, Any]:
    ctor = ProviderFactory.get_constructor(name)
    types = sorted(t.value for t in getattr(ctor, "supported_types", ()))
    return {"name": name, "supported_types": types}


@router.get("/providers")
def get_providers(user_id: str = Depends(get_user_id)) -> Dict[str, Any]:
    """Registered providers with the generation types each supports."""
    providers: List[Dict[str, Any]] = [_provider_entry(n) for n in ProviderFactory.list_registered()]
    return {"ok": True, "providers": providers}


@router.get("/providers/health")
def get_providers_health(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    return {"ok": True, "health": [h.to_dict() for h in services.router.list_provider_health(user_id)]}


@router.get("/providers/{provider}/models")
async def get_provider_models(
    provider: str,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Live model list with the caller's key, falling back to the curated catalog."""
    name = provider.strip().lower()
    api_key = await asyncio.to_thread(services.credentials.get_active, user_id, name)
    adapter = ProviderFactory.create(resolve_provider_alias(name), api_key)
    models = await adapter.get_available_models()
    return {"ok": True, "provider": name, "models": models}


@router.post("/providers/{provider}/health-check")
async def post_provider_health_check(
    provider: str,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    check, health = await services.router.check_provider_health(user_id, provider)
    return {"ok": True, "check": check.to_dict(), "health": health.to_dict()}


@router.get("/routes")
def get_routes(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    return {"ok": True, "routes": [r.to_dict() for r in services.router.list_routes(user_id)]}


@router.put("/routes")
def put_route(
    body: RouteBody,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    route = services.router.upsert_route(
        user_id,
        body.provider,
        priority=body.priority,
        is_enabled=body.is_enabled,
        fallback_provider=body.fallback_provider,
    )
    return {"ok": True, "route": route.to_dict()}


@router.delete("/routes")
def delete_route(
    provider: str,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    services.router.delete_route(user_id, provider)
    return {"ok": True, "deleted": provider.strip().lower()}
