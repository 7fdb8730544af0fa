"""Gemini, fal, Veo3 and Nano Banana adapters against ``httpx.MockTransport``."""
from __future__ import annotations

import httpx
import pytest

from medialab_providers.base.errors import ValidationError
from medialab_providers.base.models import GenerationRequest, GenerationType
from medialab_providers.fal import FalProvider
from medialab_providers.fal.client import PRICING as FAL_PRICING
from medialab_providers.gemini import GeminiProvider
from medialab_providers.nano_banana import NanoBananaProvider
from medialab_providers.tests.utils import recording_client, request_json, unexpected_call
from medialab_providers.veo3 import Veo3Provider
from medialab_providers.veo3.client import pricing_key

GEMINI_KEY = "gm-secret-0123456789"  # pragma: allowlist secret - test fixture
FAL_KEY = "fal-secret-0123456789"  # pragma: allowlist secret - test fixture
BANANA_KEY = "bn-secret-0123456789"  # pragma: allowlist secret - test fixture


def _req(gen_type: GenerationType, prompt: str = "a quiet harbor", model: str = "", **params) -> GenerationRequest:
    return GenerationRequest(type=gen_type, model=model, prompt=prompt, parameters=params)


def _job_handler(submit_path: str, result: dict, *, pending_polls: int = 1):
    """Submit returns ``req-1``; the status endpoint completes after ``pending_polls``."""
    state = {"polls": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == submit_path:
            return httpx.Response(200, json={"request_id": "req-1"})
        if request.method == "GET" and request.url.path == "/requests/req-1":
            state["polls"] += 1
            if state["polls"] <= pending_polls:
                return httpx.Response(200, json={"status": "IN_PROGRESS"})
            return httpx.Response(200, json={"status": "COMPLETED", "result": result})
        return httpx.Response(404, json={"detail": "not found"})

    return handler, state


# ----- Gemini -----


@pytest.mark.asyncio
async def test_gemini_text_keeps_key_out_of_url():
    payload = {
        "candidates": [{"content": {"parts": [{"text": "Hel"}, {"text": "lo"}]}, "finishReason": "STOP"}],
        "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 2},
    }
    client, seen = recording_client(lambda req: httpx.Response(200, json=payload))
    response = await GeminiProvider(GEMINI_KEY, http_client=client).generate(_req(GenerationType.TEXT, top_k=4))

    assert response.success is True  # nosec B101
    assert response.result.content == "Hello"  # nosec B101
    assert response.result.metadata["finish_reason"] == "STOP"  # nosec B101
    assert response.tokens.total == 5  # nosec B101
    sent = seen[0]
    assert sent.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"  # nosec B101
    assert GEMINI_KEY not in str(sent.url)  # nosec B101
    assert sent.headers["x-goog-api-key"] == GEMINI_KEY  # nosec B101
    assert request_json(sent)["generationConfig"]["topK"] == 4  # nosec B101


@pytest.mark.asyncio
async def test_gemini_image_returns_data_uri():
    payload = {
        "candidates": [
            {"content": {"parts": [{"text": "here"}, {"inlineData": {"mimeType": "image/jpeg", "data": "AAAA"}}]}}
        ]
    }
    client, seen = recording_client(lambda req: httpx.Response(200, json=payload))
    response = await GeminiProvider(GEMINI_KEY, http_client=client).generate(_req(GenerationType.IMAGE))
    assert response.result.content == "data:image/jpeg;base64,AAAA"  # nosec B101
    assert request_json(seen[0])["generationConfig"]["responseModalities"] == ["TEXT", "IMAGE"]  # nosec B101


@pytest.mark.asyncio
async def test_gemini_empty_candidates_fail():
    client, _ = recording_client(lambda req: httpx.Response(200, json={"candidates": []}))
    response = await GeminiProvider(GEMINI_KEY, http_client=client).generate(_req(GenerationType.TEXT))
    assert response.success is False  # nosec B101
    assert "no candidates" in response.error  # nosec B101


@pytest.mark.asyncio
async def test_gemini_error_body_is_redacted():
    body = {"error": {"message": f"API key {GEMINI_KEY} not valid"}}
    client, _ = recording_client(lambda req: httpx.Response(403, json=body))
    response = await GeminiProvider(GEMINI_KEY, http_client=client).generate(_req(GenerationType.TEXT))
    assert response.error_code == "auth"  # nosec B101
    assert GEMINI_KEY not in response.error  # nosec B101
    assert "[redacted]" in response.error  # nosec B101


@pytest.mark.asyncio
async def test_gemini_model_listing_strips_prefix():
    payload = {"models": [{"name": "models/gemini-1.5-pro"}, {"name": "models/embedding-001"}]}
    client, _ = recording_client(lambda req: httpx.Response(200, json=payload))
    assert await GeminiProvider(GEMINI_KEY, http_client=client).get_available_models() == ["gemini-1.5-pro"]  # nosec B101


# ----- fal -----


@pytest.mark.asyncio
async def test_fal_image_submit_then_poll():
    handler, state = _job_handler("/fal-ai/flux-pro/submit", {"images": [{"url": "https://fal.media/1.png"}]})
    client, seen = recording_client(handler)
    adapter = FalProvider(FAL_KEY, http_client=client, poll_interval=0.001, poll_timeout=2)

    response = await adapter.generate(_req(GenerationType.IMAGE, image_size="square"))

    assert response.success is True  # nosec B101
    assert response.result.content == "https://fal.media/1.png"  # nosec B101
    assert response.result.metadata["request_id"] == "req-1"  # nosec B101
    assert state["polls"] == 2  # nosec B101
    assert request_json(seen[0]) == {"prompt": "a quiet harbor", "image_size": "square"}  # nosec B101
    assert seen[0].headers["authorization"] == f"Key {FAL_KEY}"  # nosec B101


@pytest.mark.asyncio
async def test_fal_video_reads_video_url():
    handler, _ = _job_handler("/fal-ai/runway-gen-3/submit", {"video": {"url": "https://fal.media/v.mp4"}}, pending_polls=0)
    client, _ = recording_client(handler)
    adapter = FalProvider(FAL_KEY, http_client=client, poll_interval=0.001, poll_timeout=2)
    response = await adapter.generate(_req(GenerationType.VIDEO))
    assert response.result.content == "https://fal.media/v.mp4"  # nosec B101


@pytest.mark.asyncio
async def test_fal_model_type_mismatch_fails_before_submit():
    client, seen = recording_client(unexpected_call)
    adapter = FalProvider(FAL_KEY, http_client=client)
    response = await adapter.generate(_req(GenerationType.VIDEO, model="flux-pro"))
    assert response.success is False  # nosec B101
    assert seen == []  # nosec B101


@pytest.mark.asyncio
async def test_fal_poll_timeout_is_a_failure():
    handler, _ = _job_handler("/fal-ai/flux-pro/submit", {}, pending_polls=10_000)
    client, _ = recording_client(handler)
    adapter = FalProvider(FAL_KEY, http_client=client, poll_interval=0.005, poll_timeout=0.05)
    response = await adapter.generate(_req(GenerationType.IMAGE))
    assert response.success is False  # nosec B101
    assert response.error_code == "timeout"  # nosec B101
    assert "timed out" in response.error  # nosec B101


@pytest.mark.asyncio
async def test_fal_failed_job_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json={"request_id": "req-9"})
        return httpx.Response(200, json={"status": "FAILED", "error": "content policy"})

    client, _ = recording_client(handler)
    adapter = FalProvider(FAL_KEY, http_client=client, poll_interval=0.001, poll_timeout=1)
    response = await adapter.generate(_req(GenerationType.IMAGE))
    assert response.success is False  # nosec B101
    assert "content policy" in response.error  # nosec B101


def test_fal_price_table():
    adapter = FalProvider(FAL_KEY)
    assert adapter.estimate_cost(_req(GenerationType.IMAGE, model="ideogram-v2")).amount_cents == 200  # nosec B101
    assert adapter.estimate_cost(_req(GenerationType.IMAGE, model="unknown")).amount_cents == 100  # nosec B101


@pytest.mark.parametrize("gen_type,model", [(GenerationType.IMAGE, "flux-pro"), (GenerationType.VIDEO, "runway-gen3")])
def test_fal_default_model_is_priced(gen_type: GenerationType, model: str):
    estimate = FalProvider(FAL_KEY).estimate_cost(_req(gen_type))
    assert estimate.amount_cents == FAL_PRICING[model]  # nosec B101
    assert estimate.breakdown["model"] == model  # nosec B101


# ----- Veo3 -----


@pytest.mark.asyncio
async def test_veo3_generates_video():
    handler, _ = _job_handler("/fal-ai/veo3/submit", {"video_url": "https://fal.media/veo.mp4"})
    client, seen = recording_client(handler)
    adapter = Veo3Provider(FAL_KEY, http_client=client, poll_interval=0.001, poll_timeout=2)

    response = await adapter.generate(_req(GenerationType.VIDEO, duration=8, width=576, imagePromptUrl="https://i.test/a.png"))

    assert response.success is True  # nosec B101
    assert response.result.content == "https://fal.media/veo.mp4"  # nosec B101
    assert response.result.metadata["duration"] == 8  # nosec B101
    body = request_json(seen[0])
    assert body["duration"] == 8 and body["width"] == 576 and body["height"] == 1024  # nosec B101
    assert body["imagePromptUrl"] == "https://i.test/a.png"  # nosec B101


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", [3, 121])
async def test_veo3_rejects_out_of_range_duration(duration: int):
    client, seen = recording_client(unexpected_call)
    response = await Veo3Provider(FAL_KEY, http_client=client).generate(_req(GenerationType.VIDEO, duration=duration))
    assert response.success is False  # nosec B101
    assert response.error_code == "validation"  # nosec B101
    assert seen == []  # nosec B101


@pytest.mark.parametrize(
    "duration,width,cents",
    [(4, 1024, 300), (4, 576, 150), (10, 576, 250), (10, 1024, 500), (30, 1024, 1000), (31, 1024, 1034), (60, 576, 2000)],
)
def test_veo3_price_tiers(duration: int, width: int, cents: int):
    adapter = Veo3Provider(FAL_KEY)
    estimate = adapter.estimate_cost(_req(GenerationType.VIDEO, duration=duration, width=width))
    assert estimate.amount_cents == cents  # nosec B101


@pytest.mark.parametrize("duration", [3, 121, 500])
def test_veo3_estimate_rejects_out_of_range_duration(duration: int):
    with pytest.raises(ValidationError):
        Veo3Provider(FAL_KEY).estimate_cost(_req(GenerationType.VIDEO, duration=duration))


def test_veo3_pricing_key():
    assert pricing_key(4, 576) == "4sec_576"  # nosec B101
    assert pricing_key(7, 1920) == "10sec_1024"  # nosec B101
    assert pricing_key(20, 576) == "30sec_1024"  # nosec B101


# ----- Nano Banana -----


@pytest.mark.asyncio
async def test_nano_banana_text():
    body = {"id": "run-1", "message": "success", "modelOutputs": {"output": "hi there"}}
    client, seen = recording_client(lambda req: httpx.Response(200, json=body))
    response = await NanoBananaProvider(BANANA_KEY, http_client=client).generate(_req(GenerationType.TEXT))

    assert response.result.content == "hi there"  # nosec B101
    assert response.result.metadata == {"model": "mistral-7b", "id": "run-1"}  # nosec B101
    sent = request_json(seen[0])
    assert seen[0].url.path == "/api/v2/run"  # nosec B101
    assert sent["modelKey"] == "mistral-7b"  # nosec B101
    assert sent["modelInputs"]["prompt"] == "a quiet harbor"  # nosec B101


@pytest.mark.asyncio
async def test_nano_banana_image_wraps_base64():
    body = {"modelOutputs": {"images": [{"image": "iVBORw0KGgo"}]}}
    client, _ = recording_client(lambda req: httpx.Response(200, json=body))
    adapter = NanoBananaProvider(BANANA_KEY, http_client=client)
    response = await adapter.generate(_req(GenerationType.IMAGE, model="stable-diffusion-xl"))
    assert response.result.content == "data:image/png;base64,iVBORw0KGgo"  # nosec B101


@pytest.mark.asyncio
async def test_nano_banana_error_message_fails():
    body = {"message": "Error: model cold start failed", "modelOutputs": {}}
    client, _ = recording_client(lambda req: httpx.Response(200, json=body))
    response = await NanoBananaProvider(BANANA_KEY, http_client=client).generate(_req(GenerationType.TEXT))
    assert response.success is False  # nosec B101
    assert "cold start" in response.error  # nosec B101


@pytest.mark.asyncio
async def test_nano_banana_model_type_mismatch():
    client, seen = recording_client(unexpected_call)
    adapter = NanoBananaProvider(BANANA_KEY, http_client=client)
    response = await adapter.generate(_req(GenerationType.TEXT, model="stable-diffusion-xl"))
    assert response.success is False  # nosec B101
    assert seen == []  # nosec B101


def test_nano_banana_prices():
    adapter = NanoBananaProvider(BANANA_KEY)
    assert adapter.estimate_cost(_req(GenerationType.IMAGE, model="stable-diffusion-xl")).amount_cents == 150  # nosec B101
    assert adapter.estimate_cost(_req(GenerationType.TEXT, model="nope")).amount_cents == 50  # nosec B101
