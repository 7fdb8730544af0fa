"""OpenAIProvider adapter.

Text generation goes through ``AsyncOpenAI.chat.completions.create`` and
image generation through ``images.generate`` (DALL-E). SDK retries are
disabled (``max_retries=0``); fallback across providers is the router's job.

Pricing:
* Text models are priced per one million tokens. Unlisted text models get a
  flat 100-cent estimate.
* DALL-E images are priced per image by ``<size>_<quality>``, times ``n``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..base.errors import ProviderTransportError, classify_status
from ..base.models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationType,
    TokenUsage,
)
from ..base.pricing import TokenPrice, ceil_cents, estimate_prompt_tokens, token_cost_cents
from ..base.provider_base import BaseMediaProvider
from ..config.defaults import (
    OPENAI_DEFAULT_BASE_URL,
    OPENAI_DEFAULT_IMAGE_MODEL,
    OPENAI_DEFAULT_MODEL,
)

TEXT_PRICING: Dict[str, TokenPrice] = {
    "gpt-4o": TokenPrice(input=250, output=1000),
    "gpt-4-turbo": TokenPrice(input=1000, output=3000),
    "gpt-4": TokenPrice(input=3000, output=6000),
    "gpt-3.5-turbo": TokenPrice(input=50, output=150),
}
IMAGE_PRICING: Dict[str, int] = {
    "1024x1024_standard": 1200,
    "1024x1024_hd": 2000,
    "1024x1792_hd": 3000,
    "1792x1024_hd": 3000,
}
DEFAULT_IMAGE_PRICE = 1200
UNLISTED_TEXT_ESTIMATE = 100
EXPECTED_OUTPUT_TOKENS = 500


def _api_error(exc: openai.APIStatusError, provider: str) -> ProviderTransportError:
    return ProviderTransportError(
        f"OpenAI API error: {exc.message}",
        provider=provider,
        status=exc.status_code,
        code=classify_status(exc.status_code),
    )


class OpenAIProvider(BaseMediaProvider):
    """GPT chat models for text and DALL-E for images."""

    name = "openai"
    supported_types = frozenset({GenerationType.TEXT, GenerationType.IMAGE})
    fallback_models = ("gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo", "dall-e-3")
    base_url = OPENAI_DEFAULT_BASE_URL

    def __init__(self, api_key: str, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        super().__init__(api_key, http_client=http_client)
        self._client: Optional[AsyncOpenAI] = None

    def _make_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self.base_url,
                http_client=self.http,
                max_retries=0,
            )
        return self._client

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        try:
            if request.type is GenerationType.IMAGE:
                return await self._generate_image(request)
            return await self._generate_text(request)
        except openai.APIStatusError as exc:
            raise _api_error(exc, self.name) from exc

    async def _generate_text(self, request: GenerationRequest) -> GenerationResponse:
        resp = await self._make_client().chat.completions.create(
            model=request.model or OPENAI_DEFAULT_MODEL,
            messages=[{"role": "user", "content": request.prompt}],
            temperature=request.float_param("temperature", 0.7),
            max_tokens=request.int_param("max_tokens", 2000),
        )
        content = ""
        if resp.choices:
            content = resp.choices[0].message.content or ""
        tokens = None
        if resp.usage is not None:
            tokens = TokenUsage(input=resp.usage.prompt_tokens, output=resp.usage.completion_tokens)
        return GenerationResponse.ok(
            content,
            {"model": resp.model, "created": resp.created},
            tokens=tokens,
        )

    async def _generate_image(self, request: GenerationRequest) -> GenerationResponse:
        size = request.param("size", "1024x1024")
        quality = request.param("quality", "standard")
        model = request.model or OPENAI_DEFAULT_IMAGE_MODEL
        resp = await self._make_client().images.generate(
            model=model,
            prompt=request.prompt,
            n=max(1, request.int_param("n", 1)),
            size=size,
            quality=quality,
            style=request.param("style", "natural"),
        )
        url = (resp.data[0].url or "") if resp.data else ""
        if not url:
            raise ProviderTransportError("OpenAI returned no image", provider=self.name)
        return GenerationResponse.ok(
            url,
            {"model": model, "created": resp.created, "size": size, "quality": quality},
        )

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        if request.type is GenerationType.IMAGE:
            key = f"{request.param('size', '1024x1024')}_{request.param('quality', 'standard')}"
            per_image = IMAGE_PRICING.get(key, DEFAULT_IMAGE_PRICE)
            n = max(1, request.int_param("n", 1))
            return CostEstimate(per_image * n, {"images": n, "cost_per_image": per_image})

        price = TEXT_PRICING.get(request.model or OPENAI_DEFAULT_MODEL)
        if price is None:
            return CostEstimate(UNLISTED_TEXT_ESTIMATE, {"flat_estimate_cents": UNLISTED_TEXT_ESTIMATE})
        prompt_tokens = estimate_prompt_tokens(request.prompt)
        input_cost = token_cost_cents(prompt_tokens, price.input)
        output_cost = token_cost_cents(EXPECTED_OUTPUT_TOKENS, price.output)
        return CostEstimate(
            ceil_cents(input_cost + output_cost),
            {
                "prompt_tokens": prompt_tokens,
                "estimated_output_tokens": EXPECTED_OUTPUT_TOKENS,
                "input_cost_cents": ceil_cents(input_cost),
                "output_cost_cents": ceil_cents(output_cost),
            },
        )

    async def _ping(self) -> None:
        try:
            await self._make_client().models.retrieve(OPENAI_DEFAULT_MODEL)
        except openai.APIStatusError as exc:
            raise _api_error(exc, self.name) from exc

    async def _list_models(self) -> List[str]:
        ids: List[str] = []
        async for model in self._make_client().models.list():
            if "gpt" in model.id or "dall-e" in model.id:
                ids.append(model.id)
        return ids


__all__ = ["OpenAIProvider", "TEXT_PRICING", "IMAGE_PRICING"]
