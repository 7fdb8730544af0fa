"""Submit-then-poll helper for asynchronous media providers.

``poll_until_terminal`` repeatedly calls a status coroutine until it reports
``COMPLETED`` or ``FAILED``. The whole loop, including slow status requests,
is bounded by ``timeout`` seconds of wall-clock time measured with
``time.monotonic``. There is no external cancellation; the timeout is the
only way out of a job that never settles.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict

from .errors import ProviderTimeoutError, ProviderTransportError

COMPLETED = "COMPLETED"
FAILED = "FAILED"


async def poll_until_terminal(
    fetch_status: Callable[[], Awaitable[Dict[str, Any]]],
    *,
    provider: str,
    job_id: str,
    interval: float,
    timeout: float,
) -> Dict[str, Any]:
    """Poll ``fetch_status`` until the job is terminal.

    Returns:
        The status payload whose ``status`` is ``COMPLETED``.

    Raises:
        ProviderTransportError: The job reported ``FAILED`` (message taken from
            the payload's ``error`` field when present).
        ProviderTimeoutError: ``timeout`` seconds elapsed without a terminal
            status.
    """
    deadline = time.monotonic() + timeout
    polls = 0
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        try:
            payload = await asyncio.wait_for(fetch_status(), timeout=remaining)
        except asyncio.TimeoutError:
            break
        polls += 1
        status = str(payload.get("status") or "").upper()
        if status == COMPLETED:
            return payload
        if status == FAILED:
            detail = payload.get("error") or "job failed"
            raise ProviderTransportError(
                f"{provider} job {job_id} failed: {detail}", provider=provider, job_id=job_id
            )
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        await asyncio.sleep(min(interval, remaining))
    raise ProviderTimeoutError(
        f"{provider} job {job_id} timed out after {timeout:g}s",
        provider=provider,
        job_id=job_id,
        polls=polls,
    )


__all__ = ["COMPLETED", "FAILED", "poll_until_terminal"]
