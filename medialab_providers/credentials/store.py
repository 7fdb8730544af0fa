"""Encrypted per-user provider credential store.

Policy
------
Several credentials may exist for the same ``(user, provider)``. Reads resolve
the most recently created *active* one. :meth:`CredentialStore.replace` is the
explicit "delete prior keys, then store" operation.

Secrets
-------
Plaintext keys exist only inside :meth:`store`, :meth:`replace`,
:meth:`get_active` and :meth:`get_decrypted`. Nothing here logs them, and the
``Credential`` objects returned to callers carry ciphertext parts that the
HTTP layer strips via ``to_public_dict``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from ..base.aliases import resolve_provider_alias
from ..base.errors import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from ..base.factory import ProviderFactory
from ..base.logging import get_logger, log_event
from ..base.log_support import LogContext
from ..crypto import decrypt_data, encrypt_data, get_key_preview, get_master_key
from ..persistence import UowFactory, sqlite_uow_factory
from ..persistence.interfaces import Credential

MIN_KEY_LENGTH = 10

_logger = get_logger("credentials")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_provider(provider: str) -> str:
    value = (provider or "").strip().lower()
    if not value:
        raise ValidationError("provider is required", field="provider")
    return value


class CredentialStore:
    """Encrypts, persists and resolves provider API keys.

    Parameters
    ----------
    uow_factory:
        Opens a Unit of Work per operation. Defaults to the configured SQLite
        database.
    master_key:
        Encryption master secret. When omitted it is read from the
        environment at use time, so a missing key fails the operation with
        ``CryptoError`` rather than failing construction.
    """

    def __init__(self, uow_factory: Optional[UowFactory] = None, master_key: Optional[str] = None) -> None:
        self._uow_factory = uow_factory or sqlite_uow_factory()
        self._master_key = master_key

    def _key(self) -> str:
        return self._master_key or get_master_key()

    def _ensure_key(self, api_key: str) -> str:
        key = (api_key or "").strip()
        if len(key) < MIN_KEY_LENGTH:
            raise ValidationError("Invalid API key format", field="api_key")
        return key

    def store(self, user_id: str, provider: str, api_key: str, label: Optional[str] = None) -> Credential:
        """Encrypt and persist a new active credential alongside existing ones."""
        provider_key = _normalize_provider(provider)
        key = self._ensure_key(api_key)
        payload = encrypt_data(key, self._key())
        credential = Credential(
            id="",
            user_id=user_id,
            provider=provider_key,
            key_name=(label or "").strip() or f"{provider_key} key",
            key_preview=get_key_preview(key),
            ciphertext=payload.ciphertext,
            iv=payload.iv,
            auth_tag=payload.auth_tag,
            salt=payload.salt,
        )
        with self._uow_factory() as uow:
            uow.credentials.add(credential)
        log_event(_logger, "credentials.store", LogContext(provider=provider_key, user_id=user_id), credential_id=credential.id)
        return credential

    def replace(self, user_id: str, provider: str, api_key: str, label: Optional[str] = None) -> Credential:
        """Delete every stored key for ``provider`` and store ``api_key`` in one transaction."""
        provider_key = _normalize_provider(provider)
        key = self._ensure_key(api_key)
        payload = encrypt_data(key, self._key())
        credential = Credential(
            id="",
            user_id=user_id,
            provider=provider_key,
            key_name=(label or "").strip() or f"{provider_key} key",
            key_preview=get_key_preview(key),
            ciphertext=payload.ciphertext,
            iv=payload.iv,
            auth_tag=payload.auth_tag,
            salt=payload.salt,
        )
        with self._uow_factory() as uow:
            removed = uow.credentials.delete_for_provider(user_id, provider_key)
            uow.credentials.add(credential)
        log_event(
            _logger,
            "credentials.replace",
            LogContext(provider=provider_key, user_id=user_id),
            credential_id=credential.id,
            removed=removed,
        )
        return credential

    def list(self, user_id: str) -> List[Credential]:
        """Return the user's credentials, newest first.

        Callers exposing these outside the process must use
        ``Credential.to_public_dict``.
        """
        with self._uow_factory() as uow:
            return uow.credentials.list_for_user(user_id)

    def get_active(self, user_id: str, provider: str) -> str:
        """Decrypt the most recent active key for ``provider`` and touch ``last_used_at``.

        ``provider`` is the stored (unresolved) name.

        Raises
        ------
        NotFoundError
            No active credential exists.
        CryptoError
            The stored record cannot be decrypted with the master key.
        """
        provider_key = _normalize_provider(provider)
        with self._uow_factory() as uow:
            credential = uow.credentials.get_most_recent_active(user_id, provider_key)
            if credential is None:
                raise NotFoundError(f"No active API key found for {provider_key}", provider=provider_key)
            plaintext = decrypt_data(
                credential.ciphertext,
                self._key(),
                credential.iv,
                credential.auth_tag,
                credential.salt,
            )
            uow.credentials.touch_last_used(credential.id, _now())
        return plaintext

    def has_active(self, user_id: str, provider: str) -> bool:
        with self._uow_factory() as uow:
            return uow.credentials.get_most_recent_active(user_id, _normalize_provider(provider)) is not None

    def _owned(self, uow, credential_id: str, user_id: str) -> Credential:
        credential = uow.credentials.get(credential_id)
        if credential is None:
            raise NotFoundError("API key not found", credential_id=credential_id)
        if credential.user_id != user_id:
            raise ForbiddenError("API key belongs to another user", credential_id=credential_id)
        return credential

    def get_decrypted(self, credential_id: str, user_id: str) -> str:
        """Decrypt one specific credential owned by ``user_id``."""
        with self._uow_factory() as uow:
            credential = self._owned(uow, credential_id, user_id)
            plaintext = decrypt_data(
                credential.ciphertext,
                self._key(),
                credential.iv,
                credential.auth_tag,
                credential.salt,
            )
            uow.credentials.touch_last_used(credential.id, _now())
        return plaintext

    def set_status(self, credential_id: str, user_id: str, is_active: bool) -> Credential:
        with self._uow_factory() as uow:
            credential = self._owned(uow, credential_id, user_id)
            when = _now()
            uow.credentials.set_active(credential_id, is_active, when)
            credential.is_active = is_active
            credential.updated_at = when
        log_event(
            _logger,
            "credentials.set_status",
            LogContext(provider=credential.provider, user_id=user_id),
            credential_id=credential_id,
            is_active=is_active,
        )
        return credential

    def delete(self, credential_id: str, user_id: str) -> None:
        with self._uow_factory() as uow:
            credential = self._owned(uow, credential_id, user_id)
            uow.credentials.delete(credential_id)
        log_event(
            _logger,
            "credentials.delete",
            LogContext(provider=credential.provider, user_id=user_id),
            credential_id=credential_id,
        )

    async def test(self, provider: str, api_key: str, *, live: bool = False) -> bool:
        """Check a candidate key without storing it.

        The default check is format-only (minimum length). With ``live=True``
        the provider adapter is built and its health check must pass too; an
        unknown provider then raises ``UnknownProviderError``.
        """
        key = (api_key or "").strip()
        if len(key) < MIN_KEY_LENGTH:
            return False
        if not live:
            return True
        registry_key = resolve_provider_alias(_normalize_provider(provider))
        try:
            adapter = ProviderFactory.create(registry_key, key)
        except ValidationError:
            return False
        health = await adapter.health_check()
        if not health.healthy:
            log_event(_logger, "credentials.test_failed", LogContext(provider=registry_key), error=health.error)
        return health.healthy


__all__ = ["CredentialStore", "MIN_KEY_LENGTH"]
