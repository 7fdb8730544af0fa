"""Authenticated encryption for credentials at rest.

Scheme
------
AES-256-GCM (``cryptography``'s ``AESGCM``) keyed by a scrypt derivation of
the long-lived master secret (N=16384, r=8, p=1, 32-byte key). Every call to
:func:`encrypt_data` draws a fresh 64-byte salt and 12-byte IV, so encrypting
the same plaintext twice yields unrelated records. All parts are hex encoded
for storage.

The master secret comes from ``ENCRYPTION_MASTER_KEY`` and is never persisted
next to the data it protects. Any decrypt failure (tampered tag, wrong master
key, malformed hex) raises :class:`CryptoError`; a wrong plaintext is never
returned.
"""
from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from os import urandom
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..base.errors import CryptoError
from ..config.env import ENCRYPTION_MASTER_KEY_ENV, get_env

SALT_BYTES = 64
IV_BYTES = 12
TAG_BYTES = 16
KEY_BYTES = 32
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1

_MASTER_KEY_RE = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)


@dataclass(frozen=True)
class EncryptedPayload:
    """Hex-encoded parts of one encrypted value."""

    ciphertext: str
    iv: str
    auth_tag: str
    salt: str


def _derive_key(master_key: str, salt: bytes) -> bytes:
    if not master_key:
        raise CryptoError("master key is empty")
    kdf = Scrypt(salt=salt, length=KEY_BYTES, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(master_key.encode("utf-8"))


def encrypt_data(plaintext: str, master_key: str, salt: Optional[bytes] = None) -> EncryptedPayload:
    """Encrypt ``plaintext`` under a key derived from ``master_key``."""
    salt = salt if salt is not None else urandom(SALT_BYTES)
    iv = urandom(IV_BYTES)
    sealed = AESGCM(_derive_key(master_key, salt)).encrypt(iv, plaintext.encode("utf-8"), None)
    # AESGCM appends the 16-byte tag to the ciphertext.
    return EncryptedPayload(
        ciphertext=sealed[:-TAG_BYTES].hex(),
        iv=iv.hex(),
        auth_tag=sealed[-TAG_BYTES:].hex(),
        salt=salt.hex(),
    )


def decrypt_data(ciphertext: str, master_key: str, iv: str, auth_tag: str, salt: str) -> str:
    """Inverse of :func:`encrypt_data`.

    Raises:
        CryptoError: Authentication failed or an input part is malformed.
    """
    try:
        key = _derive_key(master_key, bytes.fromhex(salt))
        sealed = bytes.fromhex(ciphertext) + bytes.fromhex(auth_tag)
        return AESGCM(key).decrypt(bytes.fromhex(iv), sealed, None).decode("utf-8")
    except CryptoError:
        raise
    except InvalidTag as exc:
        raise CryptoError("Failed to decrypt data: authentication failed") from exc
    except (ValueError, UnicodeDecodeError) as exc:
        raise CryptoError(f"Failed to decrypt data: {type(exc).__name__}") from exc


def decrypt_payload(payload: EncryptedPayload, master_key: str) -> str:
    return decrypt_data(payload.ciphertext, master_key, payload.iv, payload.auth_tag, payload.salt)


def hash_value(value: str) -> str:
    """Irreversible SHA-256 fingerprint (hex)."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def get_key_preview(api_key: str) -> str:
    """First four characters, upper-cased, for display next to a stored key."""
    return api_key[:4].upper()


def is_valid_master_key(key: str) -> bool:
    """A master key is 64 hex characters (32 bytes)."""
    return bool(key) and bool(_MASTER_KEY_RE.match(key))


def generate_master_key() -> str:
    """Return a fresh random master key in the expected 64-hex format."""
    return urandom(KEY_BYTES).hex()


def get_master_key() -> str:
    """Read the master secret from the environment.

    Raises:
        CryptoError: ``ENCRYPTION_MASTER_KEY`` is unset or a placeholder.
    """
    key = get_env(ENCRYPTION_MASTER_KEY_ENV)
    if not key:
        raise CryptoError(f"{ENCRYPTION_MASTER_KEY_ENV} is not configured")
    return key


__all__ = [
    "EncryptedPayload",
    "encrypt_data",
    "decrypt_data",
    "decrypt_payload",
    "hash_value",
    "get_key_preview",
    "is_valid_master_key",
    "generate_master_key",
    "get_master_key",
]
