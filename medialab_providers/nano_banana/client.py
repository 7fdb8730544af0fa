"""NanoBananaProvider adapter (Banana.dev serverless inference).

One synchronous ``POST /api/v2/run`` per generation. Each hosted model
serves exactly one generation type, so the adapter checks the model's type
in addition to the adapter-level ``supports`` gate.

Pricing is a flat amount per inference, keyed by model.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, List

from ..base.errors import ProviderTransportError
from ..base.http import ensure_ok, json_object
from ..base.models import CostEstimate, GenerationRequest, GenerationResponse, GenerationType
from ..base.provider_base import BaseMediaProvider
from ..config.defaults import NANO_BANANA_DEFAULT_BASE_URL, NANO_BANANA_DEFAULT_MODEL

RUN_PATH = "/api/v2/run"
INFERENCE_TIMEOUT_SECONDS = 60
DEFAULT_PRICE = 50


@dataclass(frozen=True)
class BananaModel:
    price_per_inference: int
    type: GenerationType


MODELS: Dict[str, BananaModel] = {
    "mistral-7b": BananaModel(50, GenerationType.TEXT),
    "neural-chat-7b": BananaModel(40, GenerationType.TEXT),
    "stable-diffusion-v2": BananaModel(100, GenerationType.IMAGE),
    "stable-diffusion-xl": BananaModel(150, GenerationType.IMAGE),
    "llama-2-7b": BananaModel(35, GenerationType.TEXT),
}


def _as_image_content(value: str) -> str:
    """Return URLs and data URIs unchanged; wrap bare base64 as a PNG data URI."""
    if value.startswith(("data:", "http://", "https://")):
        return value
    return f"data:image/png;base64,{value}"


class NanoBananaProvider(BaseMediaProvider):
    """Open-weight text and diffusion models on Banana.dev."""

    name = "nano-banana"
    supported_types = frozenset({GenerationType.TEXT, GenerationType.IMAGE})
    fallback_models = tuple(MODELS)
    base_url = NANO_BANANA_DEFAULT_BASE_URL

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": self._api_key, "Content-Type": "application/json"}

    async def _run(self, model: str, model_inputs: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self.http.post(
            f"{self.base_url}{RUN_PATH}",
            headers=self._headers(),
            json={
                "apiKey": self._api_key,
                "modelKey": model,
                "modelInputs": model_inputs,
                "timeoutSeconds": INFERENCE_TIMEOUT_SECONDS,
            },
        )
        ensure_ok(resp, provider=self.name, action="inference")
        data = json_object(resp, provider=self.name, action="inference")
        message = str(data.get("message") or "")
        if "error" in message.lower():
            raise ProviderTransportError(f"Nano Banana API error: {message}", provider=self.name, model=model)
        return data

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        model = request.model or NANO_BANANA_DEFAULT_MODEL
        config = MODELS.get(model)
        if config is None:
            raise ProviderTransportError(f"Unknown Nano Banana model: {model}", provider=self.name, model=model)
        if config.type is not request.type:
            raise ProviderTransportError(
                f"{model} does not support {request.type.value} generation", provider=self.name, model=model
            )

        inputs: Dict[str, Any] = {
            "prompt": request.prompt,
            "temperature": request.float_param("temperature", 0.7),
            "top_p": request.float_param("top_p", 0.9),
            "max_new_tokens": request.int_param("max_tokens", 512),
            **dict(request.parameters),
        }
        t0 = time.perf_counter()
        data = await self._run(model, inputs)
        duration_ms = int((time.perf_counter() - t0) * 1000)

        outputs = data.get("modelOutputs") or {}
        content = ""
        if request.type is GenerationType.IMAGE:
            images = outputs.get("images") or []
            if images and isinstance(images[0], dict) and images[0].get("image"):
                content = _as_image_content(str(images[0]["image"]))
        else:
            content = str(outputs.get("output") or outputs.get("generated_text") or "")
        if not content:
            raise ProviderTransportError("No content returned from Nano Banana", provider=self.name, model=model)
        return GenerationResponse.ok(content, {"model": model, "id": data.get("id")}, duration_ms=duration_ms)

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        config = MODELS.get(request.model or NANO_BANANA_DEFAULT_MODEL)
        if config is None:
            return CostEstimate(DEFAULT_PRICE, {"flat_estimate_cents": DEFAULT_PRICE})
        return CostEstimate(config.price_per_inference, {"price_per_inference": config.price_per_inference})

    async def _ping(self) -> None:
        await self._run(NANO_BANANA_DEFAULT_MODEL, {"prompt": "test", "max_new_tokens": 10})

    async def _list_models(self) -> List[str]:
        return list(MODELS)


__all__ = ["NanoBananaProvider", "MODELS"]
