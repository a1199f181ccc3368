# tailorshop/db/engine.py

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from tailorshop.errors import PersistenceError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores FOREIGN KEY clauses (and ON DELETE CASCADE) unless asked.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """
    Build the engine for the given connection string.

    In-memory SQLite gets a single shared connection so every request sees the
    same database.
    """
    kwargs = {"future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

    # echo=True if you want to see SQL printed in the terminal
    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


@contextmanager
def transaction(engine: Engine, action: str) -> Iterator[Connection]:
    """
    One all-or-nothing unit of work.

    Anything raised inside the block rolls the transaction back. Raw driver
    errors are logged and surfaced as PersistenceError; service errors pass
    through untouched.
    """
    try:
        with engine.begin() as conn:
            yield conn
    except SQLAlchemyError as exc:
        logger.exception("Database error while trying to %s", action)
        raise PersistenceError(f"Failed to {action}") from exc


def get_engine(request: Request) -> Engine:
    """FastAPI dependency: the engine owned by the running application."""
    return request.app.state.engine
