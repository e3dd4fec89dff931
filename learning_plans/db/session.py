"""Process-wide engine plus the unit-of-work scopes handed to persistents.

Service functions never see a ``Session``: they receive a record store bound
to one, opened by :func:`store_scope` or, inside a request, by
:func:`get_store_dependency`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings, get_settings
from ..store import SQLAlchemyRecordStore

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def _engine_options(settings: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.database_echo, "future": True, "pool_pre_ping": True}
    if make_url(settings.database_url).get_backend_name() == "sqlite":
        # Request threads share the file database.
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
    return options


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("LP_DATABASE_URL must be configured before the record store is used.")
        _engine = create_engine(settings.database_url, **_engine_options(settings))
        logger.info("Learning plans database engine ready (%s)", _engine.dialect.name)
    return _engine


def _get_session_factory() -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False, future=True)
    return _session_factory


@contextmanager
def session_scope(*, commit: bool = True) -> Generator[Session, None, None]:
    """Open a session that commits on success and rolls back on any error."""
    session = _get_session_factory()()
    try:
        yield session
        if commit:
            session.commit()
    except Exception:
        logger.debug("Rolling back learning plans session", exc_info=True)
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def store_scope(*, commit: bool = True) -> Generator[SQLAlchemyRecordStore, None, None]:
    """Same unit of work as :func:`session_scope`, exposed as a record store."""
    with session_scope(commit=commit) as session:
        yield SQLAlchemyRecordStore(session)


def get_store_dependency() -> Generator[SQLAlchemyRecordStore, None, None]:
    with store_scope() as store:
        yield store


def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "dispose_engine",
    "get_engine",
    "get_store_dependency",
    "session_scope",
    "store_scope",
]
