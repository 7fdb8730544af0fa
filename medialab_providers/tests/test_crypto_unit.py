"""Tests for credential encryption at rest."""
from __future__ import annotations

import pytest

from medialab_providers.base.errors import CryptoError
from medialab_providers.config.env import ENCRYPTION_MASTER_KEY_ENV
from medialab_providers.crypto import (
    decrypt_data,
    decrypt_payload,
    encrypt_data,
    generate_master_key,
    get_key_preview,
    get_master_key,
    hash_value,
    is_valid_master_key,
)

SECRET = "sk-live-0123456789abcdef"  # pragma: allowlist secret - test fixture


def test_round_trip():
    key = generate_master_key()
    payload = encrypt_data(SECRET, key)
    assert SECRET not in payload.ciphertext  # nosec B101
    assert len(bytes.fromhex(payload.salt)) == 64  # nosec B101
    assert len(bytes.fromhex(payload.iv)) == 12  # nosec B101
    assert len(bytes.fromhex(payload.auth_tag)) == 16  # nosec B101
    assert decrypt_payload(payload, key) == SECRET  # nosec B101


def test_same_plaintext_encrypts_differently():
    key = generate_master_key()
    a = encrypt_data(SECRET, key)
    b = encrypt_data(SECRET, key)
    assert a.ciphertext != b.ciphertext  # nosec B101
    assert a.salt != b.salt  # nosec B101


def test_tampered_tag_raises():
    key = generate_master_key()
    p = encrypt_data(SECRET, key)
    flipped = format(int(p.auth_tag[:2], 16) ^ 0x01, "02x") + p.auth_tag[2:]
    with pytest.raises(CryptoError):
        decrypt_data(p.ciphertext, key, p.iv, flipped, p.salt)


def test_wrong_master_key_raises():
    p = encrypt_data(SECRET, generate_master_key())
    with pytest.raises(CryptoError):
        decrypt_payload(p, generate_master_key())


def test_malformed_hex_raises():
    key = generate_master_key()
    p = encrypt_data(SECRET, key)
    with pytest.raises(CryptoError):
        decrypt_data("zz", key, p.iv, p.auth_tag, p.salt)


def test_empty_master_key_raises():
    with pytest.raises(CryptoError):
        encrypt_data(SECRET, "")


def test_helpers():
    assert get_key_preview("sk-abcdef") == "SK-A"  # nosec B101
    assert len(hash_value("x")) == 64  # nosec B101
    assert is_valid_master_key(generate_master_key())  # nosec B101
    assert not is_valid_master_key("not-hex")  # nosec B101


def test_get_master_key_requires_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(ENCRYPTION_MASTER_KEY_ENV, raising=False)
    with pytest.raises(CryptoError):
        get_master_key()
    key = generate_master_key()
    monkeypatch.setenv(ENCRYPTION_MASTER_KEY_ENV, key)
    assert get_master_key() == key  # nosec B101
