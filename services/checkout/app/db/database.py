from __future__ import annotations

import os
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///.local/sameday.db"

_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None
_SESSIONMAKER: sessionmaker[Session] | None = None


def database_url() -> str:
    # Production must set DATABASE_URL; the default is a local SQLite file.
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(url, pool_pre_ping=True)


def get_engine() -> Engine:
    """Engine for the current DATABASE_URL.

    Rebuilt whenever DATABASE_URL changes, so tests can point each case at its
    own database file.
    """

    global _ENGINE, _ENGINE_URL, _SESSIONMAKER

    url = database_url()
    if _ENGINE is not None and _ENGINE_URL == url:
        return _ENGINE

    dispose_engine()
    _ENGINE = _build_engine(url)
    _ENGINE_URL = url
    _SESSIONMAKER = sessionmaker(bind=_ENGINE, autoflush=False, expire_on_commit=False)
    return _ENGINE


def dispose_engine() -> None:
    global _ENGINE, _ENGINE_URL, _SESSIONMAKER

    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None
    _SESSIONMAKER = None


def db_session() -> Session:
    get_engine()
    assert _SESSIONMAKER is not None
    return _SESSIONMAKER()
