"""Credential encryption helpers."""

from .encryption import (
    EncryptedPayload,
    decrypt_data,
    decrypt_payload,
    encrypt_data,
    generate_master_key,
    get_key_preview,
    get_master_key,
    hash_value,
    is_valid_master_key,
)

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
