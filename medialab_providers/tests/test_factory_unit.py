"""Unit tests for the provider registry, aliases and lazy adapter loading."""
from __future__ import annotations

import pytest

import medialab_providers
from medialab_providers.base.aliases import resolve_provider_alias
from medialab_providers.base.errors import ValidationError
from medialab_providers.base.factory import ProviderFactory, UnknownProviderError
from medialab_providers.base.models import GenerationType
from medialab_providers.tests.utils import StubProvider

BUILTINS = ("anthropic", "fal", "gemini", "nano-banana", "openai", "openrouter", "veo3")


def test_builtins_registered_and_sorted():
    names = ProviderFactory.list_registered()
    for name in BUILTINS:
        assert name in names  # nosec B101
    assert list(names) == sorted(names)  # nosec B101


def test_mock_only_registered_when_enabled(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("MEDIALAB_USE_MOCKS", raising=False)
    assert not ProviderFactory.is_registered("mock")  # nosec B101
    monkeypatch.setenv("MEDIALAB_USE_MOCKS", "1")
    assert ProviderFactory.is_registered("mock")  # nosec B101


def test_unknown_provider_lists_valid_names():
    with pytest.raises(UnknownProviderError) as ei:
        ProviderFactory.create("nope", "some-api-key-123")
    assert "Valid providers" in ei.value.message  # nosec B101
    assert "openai" in ei.value.message  # nosec B101


@pytest.mark.parametrize("name", BUILTINS)
def test_create_each_builtin(name: str):
    adapter = ProviderFactory.create(name, "sk-test-1234567890")
    assert adapter.get_name() == name  # nosec B101
    assert adapter.get_supported_types()  # nosec B101
    assert "sk-test-1234567890" not in repr(adapter)  # nosec B101


def test_create_requires_key():
    with pytest.raises(ValidationError):
        ProviderFactory.create("fal", "   ")


def test_register_and_unregister_runtime_constructor():
    ProviderFactory.register("Custom", lambda key, **kw: StubProvider(key, name="custom"))
    try:
        adapter = ProviderFactory.create("custom", "custom-key-123")
        assert adapter.supports(GenerationType.TEXT)  # nosec B101
    finally:
        ProviderFactory.unregister("custom")
    assert not ProviderFactory.is_registered("custom")  # nosec B101


def test_constructor_signature_mismatch_is_reported():
    ProviderFactory.register("broken", lambda: None)  # type: ignore[arg-type, return-value]
    try:
        with pytest.raises(UnknownProviderError):
            ProviderFactory.create("broken", "broken-key-123")
    finally:
        ProviderFactory.unregister("broken")


@pytest.mark.parametrize(
    "alias,key",
    [("google", "gemini"), ("Nano_Banana", "nano-banana"), ("fal-ai", "fal"), ("OpenAI", "openai")],
)
def test_alias_resolution(alias: str, key: str):
    assert resolve_provider_alias(alias) == key  # nosec B101


def test_package_create_resolves_display_names():
    adapter = medialab_providers.create("google", "gm-key-1234567890")
    assert adapter.get_name() == "gemini"  # nosec B101
