"""Unit tests covering the deterministic mock provider."""

from __future__ import annotations

import pytest

from medialab_providers.base.factory import ProviderFactory
from medialab_providers.base.models import GenerationRequest, GenerationType
from medialab_providers.mock import MockProvider


def _build_request(gen_type: GenerationType, prompt: str = "hello", **params) -> GenerationRequest:
    return GenerationRequest(type=gen_type, model="", prompt=prompt, parameters=params)


@pytest.mark.usefixtures("enable_mock_providers")
class TestMockProvider:
    """Canned outputs, forced failures and flat pricing."""

    @pytest.mark.asyncio
    async def test_text_echoes_prompt(self) -> None:
        provider = ProviderFactory.create("mock", "mock-key-123456")
        response = await provider.generate(_build_request(GenerationType.TEXT, "hello there"))
        assert response.success is True  # nosec B101
        assert response.result.content == "Mock response to: hello there"  # nosec B101
        assert response.tokens.input == 3  # nosec B101

    @pytest.mark.asyncio
    async def test_every_type_is_supported(self) -> None:
        provider = MockProvider("mock-key-123456")
        image = await provider.generate(_build_request(GenerationType.IMAGE))
        video = await provider.generate(_build_request(GenerationType.VIDEO))
        assert image.result.content.startswith("data:image/png;base64,")  # nosec B101
        assert video.result.content.startswith("https://mock.medialab.invalid/video/")  # nosec B101
        again = await provider.generate(_build_request(GenerationType.VIDEO))
        assert again.result.content == video.result.content  # nosec B101

    @pytest.mark.asyncio
    async def test_forced_failure(self) -> None:
        provider = MockProvider("mock-key-123456")
        response = await provider.generate(_build_request(GenerationType.TEXT, mock_fail="quota exhausted"))
        assert response.success is False  # nosec B101
        assert "quota exhausted" in response.error  # nosec B101

    @pytest.mark.asyncio
    async def test_health_and_models(self) -> None:
        provider = MockProvider("mock-key-123456")
        assert (await provider.health_check()).healthy is True  # nosec B101
        assert await provider.get_available_models() == ["mock-1"]  # nosec B101

    def test_flat_estimate(self) -> None:
        provider = MockProvider("mock-key-123456")
        assert provider.estimate_cost(_build_request(GenerationType.AUDIO)).amount_cents == 1  # nosec B101
