"""Persistence layer: repository protocols and the SQLite adapter.

Services take a ``UowFactory``: a zero-argument callable returning a context
manager that yields an open Unit of Work and commits (or rolls back) on exit.
``open_uow`` bound to a database path is the default factory.
"""

from __future__ import annotations

from functools import partial
from typing import Callable, ContextManager, Optional

from .interfaces import IUnitOfWork  # noqa: F401
from .sqlite import UnitOfWorkSqlite, get_uow, open_uow  # noqa: F401

UowFactory = Callable[[], ContextManager[IUnitOfWork]]


def sqlite_uow_factory(db_path: Optional[str] = None) -> UowFactory:
    """Return a factory opening a fresh SQLite Unit of Work per call."""
    return partial(open_uow, db_path)


__all__ = ["IUnitOfWork", "UnitOfWorkSqlite", "UowFactory", "get_uow", "open_uow", "sqlite_uow_factory"]
