"""Connection handling for the submission store.

Every write that depends on a user's latest submission goes through
``user_write_scope`` so that duplicate checks and unsubmits never interleave.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from sqlalchemy import Engine, create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import Settings, get_settings
from ..user_locks import user_lock
from .models import UserModel

logger = logging.getLogger(__name__)

_IN_MEMORY_SQLITE = ("sqlite://", "sqlite:///:memory:")


@dataclass
class _Store:
    engine: Engine
    sessions: sessionmaker[Session]


_store: Optional[_Store] = None


def _enforce_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _engine_options(settings: Settings, url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.database_echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if url in _IN_MEMORY_SQLITE:
            options["poolclass"] = StaticPool
    else:
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
    return options


def _open_store(settings: Settings) -> _Store:
    url = settings.database_url
    if not url:
        raise RuntimeError("TRAILMARK_DATABASE_URL must be configured before using the database.")

    engine = create_engine(url, **_engine_options(settings, url))
    if engine.dialect.name == "sqlite":
        # SQLite ignores ON DELETE clauses and dangling references without this.
        event.listen(engine, "connect", _enforce_sqlite_foreign_keys)
    logger.info("Opened submission store on %s", engine.url.render_as_string(hide_password=True))
    return _Store(
        engine=engine,
        sessions=sessionmaker(bind=engine, autoflush=False, expire_on_commit=False),
    )


def _current_store() -> _Store:
    global _store
    if _store is None:
        _store = _open_store(get_settings())
    return _store


def get_engine() -> Engine:
    return _current_store().engine


def get_session_factory() -> sessionmaker[Session]:
    return _current_store().sessions


@contextmanager
def session_scope(*, commit: bool = True) -> Iterator[Session]:
    """One unit of work: committed on success, rolled back on any exception."""
    session = get_session_factory()()
    try:
        yield session
        if commit:
            session.commit()
    except Exception:  # noqa: BLE001
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def user_write_scope(user_id: str) -> Iterator[Session]:
    """Transaction that owns the user's write path until it ends.

    Holds the in-process user lock and the user's row lock (``FOR UPDATE``),
    so a second writer for the same user sees the first one's commit.
    Raises ``LookupError`` for an unknown user.
    """
    with user_lock(user_id):
        with session_scope() as session:
            row = session.execute(
                select(UserModel).where(UserModel.id == user_id).with_for_update()
            ).scalar_one_or_none()
            if row is None:
                raise LookupError(f"User '{user_id}' does not exist.")
            yield session


def dispose_engine() -> None:
    global _store
    if _store is not None:
        _store.engine.dispose()
    _store = None


__all__ = [
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "user_write_scope",
]
