"""AnthropicProvider adapter.

Uses the ``anthropic`` SDK Messages API (``AsyncAnthropic.messages.create``)
for text generation. Optional ``system``, ``top_p`` and ``top_k`` parameters
are forwarded only when the caller sets them.

Pricing is per one million tokens; unlisted models are priced as the
default model. The expected output size is the caller's ``max_tokens`` or
1000 tokens.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import anthropic
import httpx
from anthropic import AsyncAnthropic

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
from ..config.defaults import ANTHROPIC_DEFAULT_BASE_URL, ANTHROPIC_DEFAULT_MODEL

PRICING: Dict[str, TokenPrice] = {
    "claude-3-5-sonnet-20241022": TokenPrice(input=3, output=15),
    "claude-3-5-sonnet": TokenPrice(input=3, output=15),
    "claude-3-opus-20250219": TokenPrice(input=15, output=75),
    "claude-3-opus": TokenPrice(input=15, output=75),
    "claude-3-sonnet-20240229": TokenPrice(input=3, output=15),
    "claude-3-haiku-20240307": TokenPrice(input=0.8, output=4),
}
DEFAULT_EXPECTED_OUTPUT_TOKENS = 1000
_HEALTH_MAX_TOKENS = 10


def _default_model() -> str:
    return ANTHROPIC_DEFAULT_MODEL


class AnthropicProvider(BaseMediaProvider):
    """Claude models for text generation."""

    name = "anthropic"
    supported_types = frozenset({GenerationType.TEXT})
    fallback_models = (
        "claude-3-5-sonnet-20241022",
        "claude-3-opus-20250219",
        "claude-3-haiku-20240307",
    )
    base_url = ANTHROPIC_DEFAULT_BASE_URL

    def __init__(self, api_key: str, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        super().__init__(api_key, http_client=http_client)
        self._client: Optional[AsyncAnthropic] = None

    def _make_client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(
                api_key=self._api_key,
                base_url=self.base_url,
                http_client=self.http,
                max_retries=0,
            )
        return self._client

    def _api_error(self, exc: anthropic.APIStatusError) -> ProviderTransportError:
        return ProviderTransportError(
            f"Anthropic API error: {exc.message}",
            provider=self.name,
            status=exc.status_code,
            code=classify_status(exc.status_code),
        )

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        params: Dict[str, Any] = {
            "model": request.model or _default_model(),
            "max_tokens": request.int_param("max_tokens", 2000),
            "messages": [{"role": "user", "content": request.prompt}],
            "temperature": request.float_param("temperature", 1.0),
        }
        if request.param("system"):
            params["system"] = str(request.param("system"))
        top_p = request.float_param("top_p")
        if top_p is not None:
            params["top_p"] = top_p
        top_k = request.parameters.get("top_k")
        if top_k is not None:
            params["top_k"] = request.int_param("top_k", 0)

        try:
            resp = await self._make_client().messages.create(**params)
        except anthropic.APIStatusError as exc:
            raise self._api_error(exc) from exc

        text = next((block.text for block in resp.content if getattr(block, "type", None) == "text"), "")
        tokens = None
        if resp.usage is not None:
            tokens = TokenUsage(input=resp.usage.input_tokens, output=resp.usage.output_tokens)
        return GenerationResponse.ok(
            text,
            {"model": resp.model, "stop_reason": resp.stop_reason},
            tokens=tokens,
        )

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        model = request.model or _default_model()
        price = PRICING.get(model) or PRICING[_default_model()]
        prompt_tokens = estimate_prompt_tokens(request.prompt)
        expected_output = request.int_param("max_tokens", DEFAULT_EXPECTED_OUTPUT_TOKENS)
        input_cost = token_cost_cents(prompt_tokens, price.input)
        output_cost = token_cost_cents(expected_output, price.output)
        return CostEstimate(
            ceil_cents(input_cost + output_cost),
            {
                "prompt_tokens": prompt_tokens,
                "estimated_output_tokens": expected_output,
                "input_cost_cents": ceil_cents(input_cost),
                "output_cost_cents": ceil_cents(output_cost),
            },
        )

    async def _ping(self) -> None:
        try:
            await self._make_client().messages.create(
                model=_default_model(),
                max_tokens=_HEALTH_MAX_TOKENS,
                messages=[{"role": "user", "content": "test"}],
            )
        except anthropic.APIStatusError as exc:
            raise self._api_error(exc) from exc

    async def _list_models(self) -> List[str]:
        return [model.id async for model in self._make_client().models.list()]


__all__ = ["AnthropicProvider", "PRICING"]
