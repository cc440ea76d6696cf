"""Database utilities for SQLAlchemy 2.x.

Provides engine/session factories and a convenient session scope context manager.
SQLite-only: the corpus lives in an FTS4 virtual table.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from samplefinder.exceptions import StorageError

from . import models


# Unicode-aware lowercase; SQLite's built-in lower() only folds ASCII
FOLD_FUNCTION = "unicode_lower"


def fold_case(value: Optional[str]) -> Optional[str]:
    return value.lower() if isinstance(value, str) else value


def _register_functions(dbapi_connection, connection_record) -> None:
    dbapi_connection.create_function(FOLD_FUNCTION, 1, fold_case, deterministic=True)


def _is_memory_url(url: str) -> bool:
    database = url.split("://", 1)[1] if "://" in url else ""
    return database in ("", "/", "/:memory:") or "mode=memory" in database


def get_engine(url: str, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for SQLite using the pysqlite driver.

    Parameters
    ----------
    url:
        SQLAlchemy URL. Must be a SQLite URL, e.g. "sqlite+pysqlite:///samples.db".
        If provided as "sqlite://...", it will be normalized to use the pysqlite driver.
    echo:
        If True, SQL statements are logged (useful for debugging).
    """
    if url.startswith("sqlite://"):
        url = "sqlite+pysqlite://" + url[len("sqlite://") :]
    elif not url.startswith("sqlite+pysqlite://"):
        raise ValueError("Unsupported database URL. Expected 'sqlite+pysqlite://'.")

    # Queries run on worker threads
    connect_args = {"check_same_thread": False}
    if _is_memory_url(url):
        # One shared connection, otherwise every thread sees its own empty database
        engine = create_engine(url, echo=echo, connect_args=connect_args, poolclass=StaticPool)
    else:
        engine = create_engine(url, echo=echo, connect_args=connect_args)
    event.listen(engine, "connect", _register_functions)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a sessionmaker bound to the provided engine."""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations.

    Commits on success, rolls back on error, and always closes the session.
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create the full-text table if it does not exist.

    Raises `StorageError` when the SQLite build lacks FTS4.
    """
    try:
        with engine.begin() as conn:
            conn.exec_driver_sql(models.SAMPLES_FTS_DDL)
    except SQLAlchemyError as exc:
        raise StorageError(f"Could not create the full-text table: {exc}") from exc
