"""GeminiProvider adapter.

Talks to the Generative Language REST API directly with ``httpx``:
``POST {base}/models/{model}:generateContent``. The API key travels in the
``x-goog-api-key`` header so it never appears in a URL (and therefore never in
an httpx error message or access log).

Text responses concatenate the candidate's text parts. Image responses return
the first ``inlineData`` part as a ``data:<mime>;base64,...`` URI.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..base.errors import ProviderTransportError
from ..base.http import ensure_ok, json_object
from ..base.models import (
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    GenerationType,
    TokenUsage,
)
from ..base.pricing import TokenPrice, ceil_cents, estimate_prompt_tokens, token_cost_cents
from ..base.provider_base import BaseMediaProvider
from ..config.defaults import GEMINI_DEFAULT_BASE_URL, GEMINI_DEFAULT_MODEL

PRICING: Dict[str, TokenPrice] = {
    "gemini-2.0-flash": TokenPrice(input=7.5, output=30),
    "gemini-1.5-pro": TokenPrice(input=1.25, output=5),
    "gemini-1.5-flash": TokenPrice(input=0.075, output=0.3),
}
DEFAULT_EXPECTED_OUTPUT_TOKENS = 1000


class GeminiProvider(BaseMediaProvider):
    """Gemini models for text and inline image generation."""

    name = "gemini"
    supported_types = frozenset({GenerationType.TEXT, GenerationType.IMAGE})
    fallback_models = ("gemini-2.0-flash", "gemini-1.5-pro", "gemini-1.5-flash")
    base_url = GEMINI_DEFAULT_BASE_URL

    def _headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _payload(self, request: GenerationRequest) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "temperature": request.float_param("temperature", 0.7),
            "maxOutputTokens": request.int_param("max_tokens", 2000),
        }
        top_p = request.float_param("top_p")
        if top_p:
            config["topP"] = top_p
        top_k = request.int_param("top_k", 0)
        if top_k:
            config["topK"] = top_k
        if request.type is GenerationType.IMAGE:
            config["responseModalities"] = ["TEXT", "IMAGE"]
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": config,
        }
        if request.param("system"):
            payload["systemInstruction"] = {"parts": [{"text": str(request.param("system"))}]}
        return payload

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        model = request.model or GEMINI_DEFAULT_MODEL
        resp = await self.http.post(
            self._url(f"models/{model}:generateContent"),
            headers=self._headers(),
            json=self._payload(request),
        )
        ensure_ok(resp, provider=self.name, action="generateContent")
        data = json_object(resp, provider=self.name, action="generateContent")

        candidates = data.get("candidates") or []
        if not candidates:
            raise ProviderTransportError("Gemini returned no candidates", provider=self.name, model=model)
        candidate = candidates[0] or {}
        parts = (candidate.get("content") or {}).get("parts") or []

        if request.type is GenerationType.IMAGE:
            content = _first_inline_image(parts)
            if content is None:
                raise ProviderTransportError("Gemini returned no image data", provider=self.name, model=model)
        else:
            content = "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))

        usage = data.get("usageMetadata") or {}
        tokens = None
        if usage:
            tokens = TokenUsage(
                input=int(usage.get("promptTokenCount") or 0),
                output=int(usage.get("candidatesTokenCount") or 0),
            )
        return GenerationResponse.ok(
            content,
            {"model": model, "finish_reason": candidate.get("finishReason")},
            tokens=tokens,
        )

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        model = request.model or GEMINI_DEFAULT_MODEL
        price = PRICING.get(model) or PRICING[GEMINI_DEFAULT_MODEL]
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
        resp = await self.http.post(
            self._url(f"models/{GEMINI_DEFAULT_MODEL}:generateContent"),
            headers=self._headers(),
            json={"contents": [{"parts": [{"text": "test"}]}], "generationConfig": {"maxOutputTokens": 10}},
        )
        ensure_ok(resp, provider=self.name, action="health check")

    async def _list_models(self) -> List[str]:
        resp = await self.http.get(self._url("models"), headers=self._headers())
        ensure_ok(resp, provider=self.name, action="list models")
        data = json_object(resp, provider=self.name, action="list models")
        names: List[str] = []
        for entry in data.get("models") or []:
            model_name = str((entry or {}).get("name", ""))
            if "gemini" in model_name:
                names.append(model_name.removeprefix("models/"))
        return names


def _first_inline_image(parts: List[Any]) -> Optional[str]:
    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if isinstance(inline, dict) and inline.get("data"):
            mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            return f"data:{mime};base64,{inline['data']}"
    return None


__all__ = ["GeminiProvider", "PRICING"]
