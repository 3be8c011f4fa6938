"""SQLAlchemy engine and session factory for the desired-state store."""
from __future__ import annotations

from sqlalchemy import Engine, create_engine as sa_create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .tables import Base


def create_engine(database_url: str, **kwargs: object) -> Engine:
    """Create a SQLAlchemy engine.

    Server databases get a pre-pinged, recycled connection pool. In-memory
    SQLite needs a single shared connection so every session sees the same
    database, and it must be usable from the reconciliation thread as well as
    the request threads.
    """
    if database_url.startswith("sqlite"):
        defaults: dict = {"echo": False, "connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            defaults["poolclass"] = StaticPool
    else:
        defaults = {
            "echo": False,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }
    defaults.update(kwargs)
    return sa_create_engine(database_url, **defaults)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to *engine*.

    ``expire_on_commit=False`` keeps returned ORM instances readable after the
    session that loaded them has been closed.
    """
    return sessionmaker(engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create the tables that do not exist yet."""
    Base.metadata.create_all(engine)


__all__ = ["create_engine", "create_session_factory", "init_schema"]
