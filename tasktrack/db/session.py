"""
TaskTrack Database Session Management.

Provides the single entry point for DB initialisation plus a context manager
for transactional access.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tasktrack.db.base import Base


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def create_db_engine(
    db_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    pool_pre_ping: bool = True,
) -> Engine:
    """
    Create an engine for *db_url*.

    SQLite gets ``check_same_thread=False`` (requests run on worker threads);
    an in-memory SQLite URL additionally shares one connection via StaticPool
    so every session sees the same database, and every SQLite connection
    gets a Unicode-aware ``casefold()`` SQL function. Pool settings apply to
    server databases only.
    """
    kwargs: Dict[str, Any] = {"echo": echo}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=pool_pre_ping,
        )
    engine = create_engine(db_url, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def register_casefold(dbapi_conn, connection_record):
            dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)

    return engine


def init_db(
    db_url: str,
    create_tables: bool = False,
    **engine_kwargs: Any,
) -> sessionmaker:
    """
    Single entry point for database initialisation.

    All callers (API startup, ``tasktrack init-db`` CLI, tests) go through
    this function.

    Args:
        db_url:        SQLAlchemy URL (sqlite:///tasktrack.db, postgresql://...).
        create_tables: When True, run Base.metadata.create_all().
        engine_kwargs: Forwarded to create_db_engine().

    Returns:
        A ``sessionmaker`` bound to the initialised engine.
    """
    # Register the models on Base.metadata
    from tasktrack.db import models  # noqa: F401

    engine = create_db_engine(db_url, **engine_kwargs)
    if create_tables:
        Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for DB sessions with auto-commit/rollback.

    Usage:
        with session_scope(factory) as session:
            user = session.query(User).filter_by(email=email).first()
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def health_check(session_factory: sessionmaker) -> bool:
    """Check that the database answers a trivial query."""
    session = session_factory()
    try:
        session.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
    finally:
        session.close()
