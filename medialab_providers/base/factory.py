"""Provider registry and factory.

Purpose
-------
Map a canonical provider key to an adapter constructor taking one decrypted
credential. Built-in adapters are referenced by ``module:Class`` import paths
and imported lazily with ``importlib`` so heavy SDKs load only when used.

Extensibility
-------------
``ProviderFactory.register`` adds (or replaces) a constructor at runtime. A
constructor is either an import path string or any callable accepting
``(api_key, **kwargs)``.

The in-process ``mock`` adapter is registered only while
``MEDIALAB_USE_MOCKS`` is truthy.

Callers resolve display names with :func:`resolve_provider_alias` before
``create``; credential lookup keeps using the unresolved name.
"""

from __future__ import annotations

import threading
from importlib import import_module
from typing import Any, Callable, Dict, Tuple, Union

from ..config.env import mocks_enabled
from .errors import MediaLabError, NotFoundError
from .interfaces import MediaProvider

ProviderConstructor = Union[str, Callable[..., MediaProvider]]


class UnknownProviderError(NotFoundError):
    """Raised when a provider key is not registered or cannot be loaded."""


_BUILTIN: Dict[str, str] = {
    "openai": "medialab_providers.openai.client:OpenAIProvider",
    "anthropic": "medialab_providers.anthropic.client:AnthropicProvider",
    "gemini": "medialab_providers.gemini.client:GeminiProvider",
    "openrouter": "medialab_providers.openrouter.client:OpenRouterProvider",
    "fal": "medialab_providers.fal.client:FalProvider",
    "veo3": "medialab_providers.veo3.client:Veo3Provider",
    "nano-banana": "medialab_providers.nano_banana.client:NanoBananaProvider",
}
_MOCK_KEY = "mock"
_MOCK_SPEC = "medialab_providers.mock.client:MockProvider"


def _load(spec: str) -> Callable[..., MediaProvider]:
    module_path, _, class_name = spec.partition(":")
    try:
        mod = import_module(module_path)
    except ImportError as exc:
        raise UnknownProviderError(f"Failed to import adapter module '{module_path}': {exc}") from exc
    try:
        return getattr(mod, class_name)
    except AttributeError as exc:
        raise UnknownProviderError(f"Adapter class '{class_name}' not found in '{module_path}'") from exc


class ProviderFactory:
    """Create provider adapters from a canonical key (e.g. ``"fal"``)."""

    _custom: Dict[str, ProviderConstructor] = {}
    _lock = threading.RLock()

    @classmethod
    def _registry(cls) -> Dict[str, ProviderConstructor]:
        merged: Dict[str, ProviderConstructor] = dict(_BUILTIN)
        if mocks_enabled():
            merged[_MOCK_KEY] = _MOCK_SPEC
        with cls._lock:
            merged.update(cls._custom)
        return merged

    @staticmethod
    def _normalize(name: str) -> str:
        return (name or "").strip().lower()

    @classmethod
    def register(cls, name: str, constructor: ProviderConstructor) -> None:
        """Register ``constructor`` under ``name``, replacing any previous entry."""
        key = cls._normalize(name)
        if not key:
            raise ValueError("provider name must be non-empty")
        with cls._lock:
            cls._custom[key] = constructor

    @classmethod
    def unregister(cls, name: str) -> None:
        """Remove a runtime registration (built-ins are unaffected)."""
        with cls._lock:
            cls._custom.pop(cls._normalize(name), None)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return cls._normalize(name) in cls._registry()

    @classmethod
    def list_registered(cls) -> Tuple[str, ...]:
        """Registered keys, sorted for deterministic output."""
        return tuple(sorted(cls._registry()))

    @classmethod
    def get_constructor(cls, name: str) -> Callable[..., MediaProvider]:
        """Return the (imported) constructor registered under ``name``."""
        registry = cls._registry()
        constructor = registry.get(cls._normalize(name))
        if constructor is None:
            valid = ", ".join(sorted(registry))
            raise UnknownProviderError(f"Unknown provider '{name}'. Valid providers: {valid}", provider=name)
        return _load(constructor) if isinstance(constructor, str) else constructor

    @classmethod
    def create(cls, name: str, api_key: str, **kwargs: Any) -> MediaProvider:
        """Instantiate the adapter registered under ``name``.

        Parameters
        ----------
        name:
            Canonical registry key (already alias-resolved).
        api_key:
            Decrypted credential. Never logged.
        **kwargs:
            Adapter keyword arguments such as ``http_client``.

        Raises
        ------
        UnknownProviderError
            Unknown key (message lists valid keys), import failure or a
            constructor signature mismatch.
        """
        key = cls._normalize(name)
        factory = cls.get_constructor(name)
        try:
            return factory(api_key, **kwargs)
        except MediaLabError:
            raise
        except TypeError as exc:
            raise UnknownProviderError(f"Invalid arguments for '{key}' adapter constructor: {exc}") from exc


__all__ = ["ProviderFactory", "UnknownProviderError", "ProviderConstructor"]
