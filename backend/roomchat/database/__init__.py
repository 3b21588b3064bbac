"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from roomchat.core.config import settings

logger = logging.getLogger(__name__)

Base: DeclarativeMeta = declarative_base()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return _is_sqlite(url) and (url in {"sqlite://", "sqlite:///"} or ":memory:" in url)


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine for the given URL with pool settings suited to its dialect."""
    kwargs: dict[str, Any] = {"echo": echo, "future": True}
    if _is_sqlite(url):
        # Handlers re-fetch from worker threads (asyncio.to_thread)
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(pool_pre_ping=True, pool_size=5, max_overflow=10, pool_recycle=1800)

    built = create_engine(url, **kwargs)

    if _is_sqlite(url):

        @event.listens_for(built, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return built


engine = build_engine(settings.database_url, echo=settings.database_echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency to provide a DB session to routes.

    Usage:
        def my_route(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables for the registered models."""
    # Import models so they register with Base.metadata
    from roomchat import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured for %s", engine.url.render_as_string(hide_password=True))


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db",
    "init_db",
]
