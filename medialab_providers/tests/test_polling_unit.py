"""Tests for the submit-then-poll helper."""
from __future__ import annotations

import time

import pytest

from medialab_providers.base.errors import ProviderTimeoutError, ProviderTransportError
from medialab_providers.base.polling import poll_until_terminal


def _sequence(*payloads):
    items = list(payloads)
    calls = {"n": 0}

    async def fetch():
        calls["n"] += 1
        return items.pop(0) if len(items) > 1 else items[0]

    return fetch, calls


@pytest.mark.asyncio
async def test_returns_completed_payload():
    fetch, calls = _sequence({"status": "IN_QUEUE"}, {"status": "IN_PROGRESS"}, {"status": "completed", "result": 1})
    out = await poll_until_terminal(fetch, provider="fal", job_id="r1", interval=0.001, timeout=5)
    assert out["result"] == 1  # nosec B101
    assert calls["n"] == 3  # nosec B101


@pytest.mark.asyncio
async def test_failed_job_raises_with_detail():
    fetch, _ = _sequence({"status": "FAILED", "error": "nsfw"})
    with pytest.raises(ProviderTransportError) as ei:
        await poll_until_terminal(fetch, provider="fal", job_id="r2", interval=0.001, timeout=5)
    assert "nsfw" in ei.value.message  # nosec B101


@pytest.mark.asyncio
async def test_times_out_within_bound():
    fetch, calls = _sequence({"status": "IN_PROGRESS"})
    t0 = time.monotonic()
    with pytest.raises(ProviderTimeoutError) as ei:
        await poll_until_terminal(fetch, provider="veo3", job_id="r3", interval=0.01, timeout=0.1)
    assert time.monotonic() - t0 < 1.0  # nosec B101
    assert "timed out" in ei.value.message  # nosec B101
    assert calls["n"] >= 1  # nosec B101
