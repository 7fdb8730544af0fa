"""OpenRouterProvider adapter.

OpenRouter exposes an OpenAI-compatible API in front of many upstream
models, so chat and image calls reuse ``AsyncOpenAI`` pointed at the
OpenRouter base URL. Every request carries the ``HTTP-Referer`` (public app
URL) and ``X-Title`` attribution headers. Model listing uses the raw
``/models`` endpoint because it reports modality information the SDK types do
not model.

Pricing varies per upstream model; estimates use a conservative average of
300 cents per one million tokens (minimum 1 cent) for text and 4 cents per
image.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..base.errors import ProviderTransportError, classify_status
from ..base.http import ensure_ok, json_object
from ..base.models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationType,
    TokenUsage,
)
from ..base.pricing import ceil_cents, estimate_prompt_tokens, token_cost_cents
from ..base.provider_base import BaseMediaProvider
from ..config import get_settings
from ..config.defaults import (
    APP_TITLE,
    OPENROUTER_DEFAULT_BASE_URL,
    OPENROUTER_DEFAULT_IMAGE_MODEL,
    OPENROUTER_DEFAULT_MODEL,
)

POPULAR_MODELS = (
    "openai/gpt-4o",
    "openai/gpt-4o-mini",
    "anthropic/claude-sonnet-4",
    "anthropic/claude-haiku-4",
    "google/gemini-2.0-flash-001",
    "google/gemini-2.5-pro-preview",
    "meta-llama/llama-4-maverick",
    "deepseek/deepseek-r1",
    "mistralai/mistral-large",
)
IMAGE_MODELS = (
    "openai/dall-e-3",
    "black-forest-labs/flux-1.1-pro",
    "stability/stable-diffusion-3",
)
AVERAGE_CENTS_PER_MILLION_TOKENS = 300
IMAGE_PRICE_CENTS = 4
EXPECTED_OUTPUT_TOKENS = 500
MAX_LISTED_MODELS = 50


class OpenRouterProvider(BaseMediaProvider):
    """Text and image generation routed through OpenRouter."""

    name = "openrouter"
    supported_types = frozenset({GenerationType.TEXT, GenerationType.IMAGE})
    fallback_models = POPULAR_MODELS + IMAGE_MODELS
    base_url = OPENROUTER_DEFAULT_BASE_URL

    def __init__(self, api_key: str, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        super().__init__(api_key, http_client=http_client)
        self._client: Optional[AsyncOpenAI] = None

    def _attribution_headers(self) -> Dict[str, str]:
        return {"HTTP-Referer": get_settings().app_url, "X-Title": APP_TITLE}

    def _make_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self.base_url,
                http_client=self.http,
                default_headers=self._attribution_headers(),
                max_retries=0,
            )
        return self._client

    def _api_error(self, message: str, status: Optional[int] = None) -> ProviderTransportError:
        return ProviderTransportError(
            f"OpenRouter API error: {message}",
            provider=self.name,
            status=status,
            code=classify_status(status) if status else None,
        )

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        try:
            if request.type is GenerationType.IMAGE:
                return await self._generate_image(request)
            return await self._generate_text(request)
        except openai.APIStatusError as exc:
            raise self._api_error(exc.message, exc.status_code) from exc

    async def _generate_text(self, request: GenerationRequest) -> GenerationResponse:
        messages: List[Dict[str, str]] = [{"role": "user", "content": request.prompt}]
        if request.param("system"):
            messages.insert(0, {"role": "system", "content": str(request.param("system"))})
        params: Dict[str, Any] = {
            "model": request.model or OPENROUTER_DEFAULT_MODEL,
            "messages": messages,
            "temperature": request.float_param("temperature", 0.7),
            "max_tokens": request.int_param("max_tokens", 2000),
        }
        top_p = request.float_param("top_p")
        if top_p is not None:
            params["top_p"] = top_p

        resp = await self._make_client().chat.completions.create(**params)
        embedded = getattr(resp, "error", None)
        if embedded:
            detail = embedded.get("message") if isinstance(embedded, dict) else str(embedded)
            raise self._api_error(detail or "unknown error")

        content = ""
        if resp.choices:
            content = resp.choices[0].message.content or ""
        tokens = None
        if resp.usage is not None:
            tokens = TokenUsage(input=resp.usage.prompt_tokens, output=resp.usage.completion_tokens)
        return GenerationResponse.ok(
            content,
            {"model": resp.model, "created": resp.created, "provider": self.name},
            tokens=tokens,
        )

    async def _generate_image(self, request: GenerationRequest) -> GenerationResponse:
        model = request.model or OPENROUTER_DEFAULT_IMAGE_MODEL
        size = request.param("size", "1024x1024")
        resp = await self._make_client().images.generate(
            model=model,
            prompt=request.prompt,
            n=max(1, request.int_param("n", 1)),
            size=size,
        )
        url = (resp.data[0].url or "") if resp.data else ""
        if not url:
            raise self._api_error("no image returned")
        return GenerationResponse.ok(url, {"model": model, "provider": self.name, "size": size})

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        if request.type is GenerationType.IMAGE:
            n = max(1, request.int_param("n", 1))
            return CostEstimate(IMAGE_PRICE_CENTS * n, {"images": n, "cost_per_image": IMAGE_PRICE_CENTS})
        prompt_tokens = estimate_prompt_tokens(request.prompt)
        total = prompt_tokens + EXPECTED_OUTPUT_TOKENS
        cost = ceil_cents(token_cost_cents(total, AVERAGE_CENTS_PER_MILLION_TOKENS))
        return CostEstimate(
            max(cost, 1),
            {"prompt_tokens": prompt_tokens, "estimated_output_tokens": EXPECTED_OUTPUT_TOKENS},
        )

    async def _get_models_payload(self) -> Dict[str, Any]:
        resp = await self.http.get(
            f"{self.base_url}/models",
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        ensure_ok(resp, provider=self.name, action="list models")
        return json_object(resp, provider=self.name, action="list models")

    async def _ping(self) -> None:
        await self._get_models_payload()

    async def _list_models(self) -> List[str]:
        data = await self._get_models_payload()
        ids: List[str] = []
        for entry in data.get("data") or []:
            arch = (entry or {}).get("architecture") or {}
            modality = str(arch.get("modality") or "")
            outputs = arch.get("output_modalities") or []
            if "text" in modality or "image" in outputs:
                ids.append(str(entry.get("id")))
            if len(ids) >= MAX_LISTED_MODELS:
                break
        return ids


__all__ = ["OpenRouterProvider", "POPULAR_MODELS", "IMAGE_MODELS"]
