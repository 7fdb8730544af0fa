"""Response helpers shared by the REST-based adapters.

Adapters call :func:`ensure_ok` on every provider response and
:func:`json_object` to decode it. Both raise ``ProviderTransportError`` which
the adapter base converts into a failed ``GenerationResponse``.
"""

from __future__ import annotations

from typing import Any, Dict

import httpx

from ..errors import ProviderTransportError, classify_status

_MAX_DETAIL_CHARS = 300


def extract_error_message(response: httpx.Response) -> str:
    """Best-effort human readable error from a provider error body.

    Recognizes ``{"error": {"message": ...}}``, ``{"error": "..."}``,
    ``{"message": ...}`` and ``{"detail": ...}``; otherwise returns the
    truncated body text or the reason phrase.
    """
    try:
        body = response.json()
    except ValueError:
        text = (response.text or "").strip()
        return text[:_MAX_DETAIL_CHARS] or response.reason_phrase or "unknown error"
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        for key in ("message", "detail"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase or "unknown error"


def ensure_ok(response: httpx.Response, *, provider: str, action: str) -> httpx.Response:
    """Return ``response`` when 2xx, else raise a classified transport error."""
    if response.is_success:
        return response
    detail = extract_error_message(response)
    raise ProviderTransportError(
        f"{provider} {action} failed ({response.status_code}): {detail}",
        provider=provider,
        status=response.status_code,
        code=classify_status(response.status_code),
    )


def json_object(response: httpx.Response, *, provider: str, action: str) -> Dict[str, Any]:
    """Decode a JSON object body or raise ``ProviderTransportError``."""
    try:
        body = response.json()
    except ValueError as exc:
        raise ProviderTransportError(
            f"{provider} {action} returned malformed JSON", provider=provider, status=response.status_code
        ) from exc
    if not isinstance(body, dict):
        raise ProviderTransportError(
            f"{provider} {action} returned an unexpected payload", provider=provider, status=response.status_code
        )
    return body


__all__ = ["extract_error_message", "ensure_ok", "json_object"]
