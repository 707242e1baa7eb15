"""Database connection and session management."""

from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from coachdesk.core.config import Settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


def create_db_engine(settings: Settings) -> Engine:
    """Create the engine for the configured database URL.

    SQLite and PostgreSQL share the same models; only pool options differ.
    """
    options: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if settings.is_sqlite:
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in settings.DATABASE_URL or settings.DATABASE_URL == "sqlite://":
            options["poolclass"] = StaticPool
    else:
        options["pool_size"] = 10
        options["max_overflow"] = 20
    engine = create_engine(settings.DATABASE_URL, **options)

    if settings.is_sqlite:
        # pysqlite defers BEGIN, which breaks SAVEPOINT; emit it ourselves
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create the session factory bound to an engine."""
    return sessionmaker(
        bind=engine,
        class_=Session,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


def get_db(request: Request) -> Generator[Session, None, None]:
    """Get database session dependency."""
    session = request.app.state.context.session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
