"""Pytest configuration for the medialab_providers test suite.

Every test runs against its own SQLite file under ``tmp_path`` and a fresh
settings cache, so nothing touches the developer's database or leaks
environment between tests.
"""

from __future__ import annotations

from typing import Iterator

import pytest

from medialab_providers.config import get_settings
from medialab_providers.config.env import DB_PATH_ENV, ENCRYPTION_MASTER_KEY_ENV, USE_MOCKS_ENV
from medialab_providers.credentials import CredentialStore
from medialab_providers.crypto import generate_master_key
from medialab_providers.persistence import UowFactory, sqlite_uow_factory


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point the default database at ``tmp_path`` and reset the settings cache."""

    monkeypatch.setenv(DB_PATH_ENV, str(tmp_path / "default.db"))
    get_settings(refresh=True)
    yield
    monkeypatch.delenv(DB_PATH_ENV, raising=False)
    get_settings(refresh=True)


@pytest.fixture()
def enable_mock_providers(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Enable the mock provider via environment toggle for the duration of a test."""

    monkeypatch.setenv(USE_MOCKS_ENV, "1")
    yield
    monkeypatch.delenv(USE_MOCKS_ENV, raising=False)


@pytest.fixture()
def master_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """A fresh master key, also exported as ``ENCRYPTION_MASTER_KEY``."""

    key = generate_master_key()
    monkeypatch.setenv(ENCRYPTION_MASTER_KEY_ENV, key)
    return key


@pytest.fixture()
def db_path(tmp_path) -> str:
    return str(tmp_path / "medialab.db")


@pytest.fixture()
def uow_factory(db_path: str) -> UowFactory:
    return sqlite_uow_factory(db_path)


@pytest.fixture()
def credential_store(uow_factory: UowFactory, master_key: str) -> CredentialStore:
    return CredentialStore(uow_factory, master_key=master_key)
