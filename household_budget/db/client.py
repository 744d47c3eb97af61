"""Engine and session helpers for the household budget store.

The store is whatever ``DATABASE_URL`` (or an explicit ``database_url``
argument) points at: a local SQLite file for a single household, or a server
database when several devices share one budget. One engine is kept per
process; asking for a different URL afterwards is an error until
:func:`dispose_engine` is called.

Usage
-----
from household_budget.db.client import session_scope

with session_scope(database_url="sqlite+pysqlite:///budget.db") as s:
    save_transactions(s, transactions)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from ..logging_setup import get_logger

_logger = get_logger("household_budget.db.client")

DATABASE_URL_ENV = "DATABASE_URL"

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def resolve_database_url(override: str | None = None) -> str:
    """The URL to connect to: ``override``, else ``$DATABASE_URL``."""

    url = override or os.getenv(DATABASE_URL_ENV)
    if not url:
        raise RuntimeError(
            f"{DATABASE_URL_ENV} is not set; pass --database-url or add it to .env"
        )
    return url


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _enable_sqlite_foreign_keys(dbapi_conn: Any, _record: Any) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the shared engine, creating it on first use."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = resolve_database_url(database_url)
    if _ENGINE is not None:
        if url != _DB_URL:
            raise RuntimeError(
                "get_engine() already initialized with a different DATABASE_URL; "
                "call dispose_engine() first"
            )
        return _ENGINE

    if _is_sqlite(url):
        engine = create_engine(url)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(url, pool_pre_ping=True)
    _SESSION_MAKER = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
    _ENGINE, _DB_URL = engine, url
    _logger.debug("database engine created for %s", engine.url.render_as_string())
    return engine


def dispose_engine() -> None:
    """Close pooled connections and forget the URL so a new one can be used."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE, _SESSION_MAKER, _DB_URL = None, None, None


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on any error."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        _logger.warning("rolling back database session after an error")
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "DATABASE_URL_ENV",
    "resolve_database_url",
    "get_engine",
    "dispose_engine",
    "get_session",
    "session_scope",
]
