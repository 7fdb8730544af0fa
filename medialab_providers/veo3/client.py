"""Veo3Provider adapter (video, submit-then-poll on fal.ai).

Video jobs take minutes, so polling uses a 2 second interval and a 10 minute
ceiling by default. ``duration`` must lie within 4..120 seconds.

Pricing tiers by duration and width:

=========  =====  =====
duration   576    1024
=========  =====  =====
<= 4 s     150    300
<= 10 s    250    500
<= 30 s    1000   1000
=========  =====  =====

Beyond 30 s the 30 s price scales per second.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

import httpx

from ..base.errors import ProviderTransportError, ValidationError
from ..base.http import ensure_ok, json_object
from ..base.models import CostEstimate, GenerationRequest, GenerationResponse, GenerationType
from ..base.polling import poll_until_terminal
from ..base.provider_base import BaseMediaProvider
from ..config.defaults import (
    FAL_DEFAULT_BASE_URL,
    VEO3_MODEL,
    VEO3_POLL_INTERVAL_SECONDS,
    VEO3_POLL_TIMEOUT_SECONDS,
)

SUBMIT_PATH = "/fal-ai/veo3/submit"
PRICING: Dict[str, int] = {
    "4sec_576": 150,
    "4sec_1024": 300,
    "10sec_576": 250,
    "10sec_1024": 500,
    "30sec_1024": 1000,
}
MIN_DURATION_SECONDS = 4
MAX_DURATION_SECONDS = 120
DEFAULT_DIMENSION = 1024


def pricing_key(duration: int, width: int) -> str:
    """Return the price-table key for ``duration`` seconds at ``width`` pixels."""
    if duration <= 4:
        return "4sec_576" if width <= 576 else "4sec_1024"
    if duration <= 10:
        return "10sec_576" if width <= 576 else "10sec_1024"
    return "30sec_1024"


class Veo3Provider(BaseMediaProvider):
    """Veo3 text/image-to-video generation."""

    name = "veo3"
    supported_types = frozenset({GenerationType.VIDEO})
    fallback_models = (VEO3_MODEL,)
    base_url = FAL_DEFAULT_BASE_URL

    def __init__(
        self,
        api_key: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        poll_interval: float = VEO3_POLL_INTERVAL_SECONDS,
        poll_timeout: float = VEO3_POLL_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(api_key, http_client=http_client)
        self._poll_interval = poll_interval
        self._poll_timeout = poll_timeout

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Key {self._api_key}"}

    @staticmethod
    def _duration(request: GenerationRequest) -> int:
        """Requested duration in seconds; outside 4..120 raises ``ValidationError``."""
        duration = request.int_param("duration", MIN_DURATION_SECONDS)
        if not MIN_DURATION_SECONDS <= duration <= MAX_DURATION_SECONDS:
            raise ValidationError(
                f"Duration must be between {MIN_DURATION_SECONDS} and {MAX_DURATION_SECONDS} seconds",
                field="duration",
            )
        return duration

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        duration = self._duration(request)
        width = request.int_param("width", DEFAULT_DIMENSION)
        height = request.int_param("height", DEFAULT_DIMENSION)

        payload: Dict[str, Any] = {"prompt": request.prompt, "duration": duration, "width": width, "height": height}
        if request.param("imagePromptUrl"):
            payload["imagePromptUrl"] = request.param("imagePromptUrl")

        resp = await self.http.post(f"{self.base_url}{SUBMIT_PATH}", headers=self._headers(), json=payload)
        ensure_ok(resp, provider=self.name, action="submit")
        request_id = json_object(resp, provider=self.name, action="submit").get("request_id")
        if not request_id:
            raise ProviderTransportError("Veo3 submit returned no request_id", provider=self.name)

        final = await poll_until_terminal(
            lambda: self._fetch_status(str(request_id)),
            provider=self.name,
            job_id=str(request_id),
            interval=self._poll_interval,
            timeout=self._poll_timeout,
        )
        video_url = (final.get("result") or {}).get("video_url")
        if not video_url:
            raise ProviderTransportError("No video URL returned from Veo3", provider=self.name)
        return GenerationResponse.ok(
            str(video_url),
            {"model": VEO3_MODEL, "request_id": request_id, "duration": duration, "width": width, "height": height},
        )

    async def _fetch_status(self, request_id: str) -> Dict[str, Any]:
        resp = await self.http.get(f"{self.base_url}/requests/{request_id}", headers=self._headers())
        ensure_ok(resp, provider=self.name, action="status poll")
        return json_object(resp, provider=self.name, action="status poll")

    def estimate_cost(self, request: GenerationRequest) -> CostEstimate:
        duration = self._duration(request)
        width = request.int_param("width", DEFAULT_DIMENSION)
        height = request.int_param("height", DEFAULT_DIMENSION)
        key = pricing_key(duration, width)
        base_cost = PRICING[key]
        if duration > 30:
            base_cost = math.ceil(PRICING["30sec_1024"] * duration / 30)
        return CostEstimate(
            base_cost,
            {"duration_seconds": duration, "width": width, "height": height, "base_cost": base_cost},
        )

    async def _ping(self) -> None:
        resp = await self.http.get(f"{self.base_url}/requests", headers=self._headers())
        ensure_ok(resp, provider=self.name, action="health check")


__all__ = ["Veo3Provider", "PRICING", "pricing_key"]
