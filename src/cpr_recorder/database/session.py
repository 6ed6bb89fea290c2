"""
Shared SQLite engine for the recorder's key-value table.

One engine per process, pointed at one database file at a time. Several
processes (a `watch` loop and one-shot commands) write the same file, so
connections use WAL journaling and wait on a locked database instead of
failing at once.
"""

import os
import threading

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from cpr_recorder.constants import DEFAULT_DATABASE_PATH
from cpr_recorder.database.models import Base

LOCK_TIMEOUT_SECONDS = 5.0

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None
_database_path: str | None = None
_init_lock = threading.Lock()


def _create_engine(database_path: str) -> Engine:
    db_dir = os.path.dirname(database_path)
    if db_dir:
        try:
            os.makedirs(db_dir, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(
                f"Cannot create database directory {db_dir}: {e}"
            ) from e

    engine = create_engine(
        f"sqlite:///{database_path}",
        connect_args={"check_same_thread": False, "timeout": LOCK_TIMEOUT_SECONDS},
        pool_pre_ping=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn: Any, connection_record: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


def init_database(database_path: str | None = None) -> None:
    """
    Point the shared engine at a database file, creating the table if needed.

    A no-op when already pointed at ``database_path``; otherwise the previous
    engine is disposed first.

    Args:
        database_path: Path to the SQLite database file.
                      Defaults to DEFAULT_DATABASE_PATH.

    Raises:
        PermissionError: If directory cannot be created
        ValueError: If database path is invalid
    """
    global _engine, _SessionFactory, _database_path

    if database_path is None:
        database_path = DEFAULT_DATABASE_PATH

    if not database_path or not isinstance(database_path, str):
        raise ValueError(f"Invalid database path: {database_path}")

    with _init_lock:
        if _engine is not None:
            if _database_path == database_path:
                return
            _engine.dispose()
            _engine = _SessionFactory = _database_path = None

        engine = _create_engine(database_path)
        _engine = engine
        _SessionFactory = sessionmaker(bind=engine)
        _database_path = database_path


def current_database_path() -> str | None:
    """Path the shared engine points at, or None before init."""
    return _database_path


@contextmanager
def session_scope() -> Generator[Session]:
    """
    Transactional scope: commits on success, rolls back on error.

    Raises:
        RuntimeError: If database has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    session = _SessionFactory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def cleanup_database() -> None:
    """Dispose of the engine and reset global state."""
    global _engine, _SessionFactory, _database_path

    with _init_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = _SessionFactory = _database_path = None
