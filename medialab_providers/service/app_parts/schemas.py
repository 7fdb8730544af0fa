"""Request bodies for the HTTP service.

Validation here is shape-only; domain rules (known provider, non-empty
prompt, ownership) are enforced by the services and surface as
``MediaLabError`` responses.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

GenerationTypeName = Literal["text", "image", "video", "audio"]


class EstimateCostBody(BaseModel):
    """Cost estimate request; ``provider`` is required at the service level."""

    provider: Optional[str] = None
    model: str = ""
    generation_type: GenerationTypeName
    prompt: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


class GenerateBody(BaseModel):
    project_id: str
    generation_type: GenerationTypeName
    provider: Optional[str] = None
    model: str = ""
    prompt: str = Field(min_length=1)
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ApiKeyBody(BaseModel):
    """Store a provider key. ``replace`` deletes the provider's prior keys first."""

    provider: str
    api_key: str = Field(min_length=1)
    key_name: Optional[str] = None
    replace: bool = False


class ApiKeyStatusBody(BaseModel):
    is_active: bool


class ApiKeyTestBody(BaseModel):
    provider: str
    api_key: str
    live: bool = False


class RouteBody(BaseModel):
    provider: str
    priority: int = Field(ge=0)
    is_enabled: bool = True
    fallback_provider: Optional[str] = None


class ProjectBody(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    budget_cents: int = Field(default=0, ge=0)
    settings: Dict[str, Any] = Field(default_factory=dict)


class ProjectPatchBody(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    budget_cents: Optional[int] = Field(default=None, ge=0)
    settings: Optional[Dict[str, Any]] = None


__all__ = [
    "GenerationTypeName",
    "EstimateCostBody",
    "GenerateBody",
    "ApiKeyBody",
    "ApiKeyStatusBody",
    "ApiKeyTestBody",
    "RouteBody",
    "ProjectBody",
    "ProjectPatchBody",
]
