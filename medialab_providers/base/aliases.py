"""Display-name to registry-key resolution.

Credentials persist the user-facing provider identity (e.g. ``google``)
while the registry is keyed by implementation (``gemini``). Resolve only
immediately before ``ProviderFactory.create``.
"""
from __future__ import annotations

from typing import Dict

PROVIDER_ALIASES: Dict[str, str] = {
    "google": "gemini",
    "google-gemini": "gemini",
    "nano_banana": "nano-banana",
    "nanobanana": "nano-banana",
    "banana": "nano-banana",
    "fal-ai": "fal",
    "google-veo3": "veo3",
}


def resolve_provider_alias(name: str) -> str:
    """Return the registry key for ``name`` (lower-cased; unknown names pass through)."""
    key = (name or "").strip().lower()
    return PROVIDER_ALIASES.get(key, key)


__all__ = ["PROVIDER_ALIASES", "resolve_provider_alias"]
