"""Tests for the encrypted credential store."""
from __future__ import annotations

import sqlite3

import pytest

from medialab_providers.base.errors import CryptoError, ForbiddenError, NotFoundError, ValidationError
from medialab_providers.config.env import ENCRYPTION_MASTER_KEY_ENV
from medialab_providers.credentials import CredentialStore
from medialab_providers.crypto import generate_master_key

KEY_A = "sk-first-key-000000"  # pragma: allowlist secret - test fixture
KEY_B = "sk-second-key-11111"  # pragma: allowlist secret - test fixture


def test_store_encrypts_at_rest(credential_store: CredentialStore, db_path: str):
    cred = credential_store.store("u1", "OpenAI", KEY_A, "Main key")
    assert cred.provider == "openai"  # nosec B101
    assert cred.key_preview == "SK-F"  # nosec B101
    assert cred.key_name == "Main key"  # nosec B101

    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT * FROM credentials").fetchall()
    finally:
        conn.close()
    dumped = repr(rows)
    assert KEY_A not in dumped  # nosec B101
    assert credential_store.get_active("u1", "openai") == KEY_A  # nosec B101


def test_default_label(credential_store: CredentialStore):
    assert credential_store.store("u1", "fal", KEY_A).key_name == "fal key"  # nosec B101


def test_most_recent_active_key_wins(credential_store: CredentialStore):
    first = credential_store.store("u1", "openai", KEY_A)
    second = credential_store.store("u1", "openai", KEY_B)
    assert credential_store.get_active("u1", "openai") == KEY_B  # nosec B101

    credential_store.set_status(second.id, "u1", False)
    assert credential_store.get_active("u1", "openai") == KEY_A  # nosec B101
    credential_store.set_status(first.id, "u1", False)
    assert credential_store.has_active("u1", "openai") is False  # nosec B101
    with pytest.raises(NotFoundError):
        credential_store.get_active("u1", "openai")


def test_replace_removes_previous_keys(credential_store: CredentialStore):
    credential_store.store("u1", "openai", KEY_A)
    credential_store.store("u1", "openai", KEY_A)
    credential_store.store("u1", "fal", KEY_A)
    credential_store.replace("u1", "openai", KEY_B)
    providers = sorted(c.provider for c in credential_store.list("u1"))
    assert providers == ["fal", "openai"]  # nosec B101
    assert credential_store.get_active("u1", "openai") == KEY_B  # nosec B101


@pytest.mark.parametrize("bad", ["", "short", "   123456789   "])
def test_key_format_is_validated(credential_store: CredentialStore, bad: str):
    with pytest.raises(ValidationError):
        credential_store.store("u1", "openai", bad)


def test_provider_is_required(credential_store: CredentialStore):
    with pytest.raises(ValidationError):
        credential_store.store("u1", "  ", KEY_A)


def test_get_active_touches_last_used(credential_store: CredentialStore):
    cred = credential_store.store("u1", "openai", KEY_A)
    assert cred.last_used_at is None  # nosec B101
    credential_store.get_active("u1", "openai")
    listed = credential_store.list("u1")[0]
    assert listed.last_used_at is not None  # nosec B101


def test_ownership_checks(credential_store: CredentialStore):
    cred = credential_store.store("u1", "openai", KEY_A)
    with pytest.raises(ForbiddenError):
        credential_store.set_status(cred.id, "u2", False)
    with pytest.raises(ForbiddenError):
        credential_store.delete(cred.id, "u2")
    with pytest.raises(ForbiddenError):
        credential_store.get_decrypted(cred.id, "u2")
    with pytest.raises(NotFoundError):
        credential_store.delete("missing", "u1")

    assert credential_store.get_decrypted(cred.id, "u1") == KEY_A  # nosec B101
    credential_store.delete(cred.id, "u1")
    assert credential_store.list("u1") == []  # nosec B101


def test_public_view_has_no_secret_material(credential_store: CredentialStore):
    credential_store.store("u1", "openai", KEY_A)
    public = credential_store.list("u1")[0].to_public_dict()
    text = repr(public)
    assert KEY_A not in text  # nosec B101
    for secret_field in ("ciphertext", "iv", "auth_tag", "salt"):
        assert secret_field not in public  # nosec B101


def test_wrong_master_key_cannot_decrypt(uow_factory, credential_store: CredentialStore):
    credential_store.store("u1", "openai", KEY_A)
    other = CredentialStore(uow_factory, master_key=generate_master_key())
    with pytest.raises(CryptoError):
        other.get_active("u1", "openai")


def test_missing_master_key_fails_at_use(uow_factory, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(ENCRYPTION_MASTER_KEY_ENV, raising=False)
    store = CredentialStore(uow_factory)
    with pytest.raises(CryptoError):
        store.store("u1", "openai", KEY_A)
    assert store.list("u1") == []  # nosec B101


def test_master_key_read_from_environment(uow_factory, master_key: str):
    store = CredentialStore(uow_factory)
    store.store("u1", "openai", KEY_A)
    assert CredentialStore(uow_factory, master_key=master_key).get_active("u1", "openai") == KEY_A  # nosec B101


@pytest.mark.asyncio
async def test_format_only_key_test(credential_store: CredentialStore):
    assert await credential_store.test("openai", "short") is False  # nosec B101
    assert await credential_store.test("openai", KEY_A) is True  # nosec B101


@pytest.mark.asyncio
@pytest.mark.usefixtures("enable_mock_providers")
async def test_live_key_test_uses_health_check(credential_store: CredentialStore):
    assert await credential_store.test("mock", KEY_A, live=True) is True  # nosec B101
