"""
core/db.py -- Shared SQLAlchemy engine for the record store.

One Engine (and therefore one connection pool) is created per process in the
API lifespan and handed to every store. Stores check connections out with
`with engine.connect()` and return them on exit, so the engine is the only
long-lived handle and is safe to share across the handler thread pool.

storage_errors() converts driver-level failures (database locked, server gone,
bad schema) into StorageError so they surface as a per-request 503 instead of
an unhandled 500. IntegrityError is left alone: stores translate it into
ConflictError, and the login flow uses it to detect a concurrent first login.

Layer rule: core/ is the kernel. No imports from api/, auth/, or content/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import StorageError

logger = logging.getLogger("contentapi.store")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create the process-wide engine for db_url.

    SQLite connections are shared across FastAPI's worker threads, so
    check_same_thread is disabled and WAL mode is switched on.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise non-integrity SQLAlchemy failures as StorageError."""
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        logger.error("Record store operation %s failed: %s", operation, exc)
        raise StorageError("The record store is unavailable.", detail=operation) from exc
