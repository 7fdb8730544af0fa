"""FalProvider adapter (submit-then-poll).

A generation submits a job to the model's ``/submit`` endpoint, then polls
``/requests/{request_id}`` until the job is ``COMPLETED`` or ``FAILED`` or
the poll timeout elapses. The prompt and every caller parameter are forwarded
verbatim in the submit body.

Pricing is a flat per-request amount keyed by model.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..base.errors import ProviderTransportError
from ..base.http import ensure_ok, json_object
from ..base.models import CostEstimate, GenerationRequest, GenerationResponse, GenerationType
from ..base.polling import poll_until_terminal
from ..base.provider_base import BaseMediaProvider
from ..config.defaults import (
    FAL_DEFAULT_BASE_URL,
    FAL_POLL_INTERVAL_SECONDS,
    FAL_POLL_TIMEOUT_SECONDS,
)

MODEL_ENDPOINTS: Dict[str, str] = {
    "flux-pro": "/fal-ai/flux-pro/submit",
    "flux-realism": "/fal-ai/flux-realism/submit",
    "lora-studio": "/fal-ai/lora-studio/submit",
    "ideogram-v2": "/fal-ai/ideogram-v2/submit",
    "runway-gen3": "/fal-ai/runway-gen-3/submit",
}
MODEL_TYPES: Dict[str, GenerationType] = {
    "flux-pro": GenerationType.IMAGE,
    "flux-realism": GenerationType.IMAGE,
    "lora-studio": GenerationType.IMAGE,
    "ideogram-v2": GenerationType.IMAGE,
    "runway-gen3": GenerationType.VIDEO,
}
PRICING: Dict[str, int] = {
    "flux-pro": 100,
    "flux-realism": 100,
    "lora-studio": 150,
    "ideogram-v2": 200,
    "runway-gen3": 300,
}
DEFAULT_PRICE = 100
_DEFAULT_MODELS = {GenerationType.IMAGE: "flux-pro", GenerationType.VIDEO: "runway-gen3"}


def _extract_url(result: Dict[str, Any], gen_type: GenerationType) -> str:
    if gen_type is GenerationType.VIDEO:
        return str((result.get("video") or {}).get("url") or "")
    image = result.get("image") or {}
    if image.get("url"):
        return str(image["url"])
    images = result.get("images") or []
    if images and isinstance(images[0], dict):
        return str(images[0].get("url") or "")
    return ""


class FalProvider(BaseMediaProvider):
    """Image and video models hosted on fal.ai."""

    name = "fal"
    supported_types = frozenset({GenerationType.IMAGE, GenerationType.VIDEO})
    fallback_models = tuple(MODEL_ENDPOINTS)
    base_url = FAL_DEFAULT_BASE_URL

    def __init__(
        self,
        api_key: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        poll_interval: float = FAL_POLL_INTERVAL_SECONDS,
        poll_timeout: float = FAL_POLL_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(api_key, http_client=http_client)
        self._poll_interval = poll_interval
        self._poll_timeout = poll_timeout

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Key {self._api_key}"}

    def _resolve_model(self, request: GenerationRequest) -> str:
        return request.model or _DEFAULT_MODELS.get(request.type, "")

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        model = self._resolve_model(request)
        endpoint = MODEL_ENDPOINTS.get(model)
        if endpoint is None:
            raise ProviderTransportError(f"Unknown FAL model: {model}", provider=self.name, model=model)
        if MODEL_TYPES[model] is not request.type:
            raise ProviderTransportError(
                f"FAL model {model} does not support {request.type.value} generation",
                provider=self.name,
                model=model,
            )

        payload: Dict[str, Any] = {"prompt": request.prompt, **dict(request.parameters)}
        resp = await self.http.post(f"{self.base_url}{endpoint}", headers=self._headers(), json=payload)
        ensure_ok(resp, provider=self.name, action="submit")
        request_id = json_object(resp, provider=self.name, action="submit").get("request_id")
        if not request_id:
            raise ProviderTransportError("FAL submit returned no request_id", provider=self.name, model=model)

        final = await poll_until_terminal(
            lambda: self._fetch_status(str(request_id)),
            provider=self.name,
            job_id=str(request_id),
            interval=self._poll_interval,
            timeout=self._poll_timeout,
        )
        url = _extract_url(final.get("result") or {}, request.type)
        if not url:
            raise ProviderTransportError("No content URL returned from FAL", provider=self.name, model=model)
        return GenerationResponse.ok(url, {"model": model, "request_id": request_id})

    async def _fetch_status(self, request_id: str) -> Dict[str, Any]:
        resp = await self.http.get(f"{self.base_url}/requests/{request_id}", headers=self._headers())
        ensure_ok(resp, provider=self.name, action="status poll")
        return json_object(resp, provider=self.name, action="status poll")

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        model = self._resolve_model(request)
        base_cost = PRICING.get(model, DEFAULT_PRICE)
        return CostEstimate(base_cost, {"model": model, "base_cost": base_cost})

    async def _ping(self) -> None:
        resp = await self.http.get(f"{self.base_url}/requests", headers=self._headers())
        ensure_ok(resp, provider=self.name, action="health check")


__all__ = ["FalProvider", "MODEL_ENDPOINTS", "PRICING"]
