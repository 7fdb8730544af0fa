"""Per-user encrypted provider credentials."""

from .store import MIN_KEY_LENGTH, CredentialStore

__all__ = ["CredentialStore", "MIN_KEY_LENGTH"]
