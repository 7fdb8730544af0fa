from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from .engine import create_connection, db_session, get_db_path, init_schema
from .unit_of_work import UnitOfWorkSqlite


def get_uow(db_path: Optional[str] = None) -> UnitOfWorkSqlite:
    """Open a connection, ensure the schema, and wrap it in a Unit of Work.

    The caller owns the connection (``uow.close()``); prefer :func:`open_uow`.
    """
    conn: sqlite3.Connection = create_connection(db_path)
    init_schema(conn)
    return UnitOfWorkSqlite(conn)


@contextmanager
def open_uow(db_path: Optional[str] = None) -> Iterator[UnitOfWorkSqlite]:
    """Yield a Unit of Work inside its transaction and close the connection after.

    Usage::

        with open_uow() as uow:
            uow.projects.add(...)
    """
    uow = get_uow(db_path)
    try:
        with uow:
            yield uow
    finally:
        uow.close()


__all__ = [
    "create_connection",
    "db_session",
    "get_db_path",
    "init_schema",
    "UnitOfWorkSqlite",
    "get_uow",
    "open_uow",
]
