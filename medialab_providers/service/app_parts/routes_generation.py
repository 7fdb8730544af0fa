"""Generation and cost-estimate endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ...base.models import GenerationRequest
from ...generation import estimate_cost
from .deps import ServiceContainer, get_container, get_user_id
from .schemas import EstimateCostBody, GenerateBody

router = APIRouter(prefix="/api")


@router.post("/estimate-cost")
async def post_estimate_cost(
    body: EstimateCostBody,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Estimate a request's cost with the caller's key for ``provider``; nothing is generated."""
    request = GenerationRequest(
        type=body.generation_type,  # type: ignore[arg-type]
        model=body.model,
        prompt=body.prompt,
        parameters=body.parameters,
    )
    estimate = await estimate_cost(services.credentials, user_id, body.provider or "", request)
    return {"ok": True, "estimate": estimate.to_dict()}


@router.post("/generate", status_code=202)
async def post_generate(
    body: GenerateBody,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Accept a generation; poll ``GET /api/generations/{id}`` for the outcome."""
    record = await services.generations.submit(
        user_id,
        body.project_id,
        generation_type=body.generation_type,
        prompt=body.prompt,
        model=body.model,
        provider=body.provider,
        parameters=body.parameters,
    )
    return {"ok": True, "generation": record.to_dict(), "message": "Generation started"}


@router.get("/generations")
def get_generations(
    project_id: Optional[str] = None,
    generation_type: Optional[str] = Query(default=None, alias="type"),
    limit: int = 50,
    offset: int = 0,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    records = services.generations.list(
        user_id,
        project_id=project_id,
        generation_type=generation_type,
        limit=limit,
        offset=offset,
    )
    return {"ok": True, "generations": [r.to_dict() for r in records], "limit": limit, "offset": offset}


@router.get("/generations/stats")
def get_generation_stats(
    project_id: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    return {"ok": True, "stats": services.generations.stats(user_id, project_id)}


@router.get("/generations/{generation_id}")
def get_generation(
    generation_id: str,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    return {"ok": True, "generation": services.generations.get(user_id, generation_id).to_dict()}
