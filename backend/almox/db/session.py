"""Database engine and session configuration."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

# Register all models with SQLAlchemy metadata
import almox.models  # noqa: F401
from almox.config import settings


def _configure_sqlite_transactions(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN on SQLite so savepoints work and writers serialize.

    pysqlite/aiosqlite emit their own deferred BEGIN lazily, which breaks
    SAVEPOINT and lets two writers read the same counter before either locks.
    BEGIN IMMEDIATE takes the write lock up front instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine for the given URL with dialect-specific setup."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"timeout": 30})
        engine = create_async_engine(database_url, **kwargs)
        _configure_sqlite_transactions(engine)
        return engine

    kwargs.setdefault("pool_size", 5)
    kwargs.setdefault("max_overflow", 10)
    kwargs.setdefault("pool_pre_ping", True)  # Verify connections before use
    kwargs.setdefault("pool_recycle", 300)  # Recycle connections after 5 minutes
    return create_async_engine(database_url, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(
    settings.database_url,
    echo=False,  # SQL logging controlled via structlog configuration
)

async_session_maker = build_session_maker(engine)


async def get_session() -> AsyncGenerator[AsyncSession]:
    """Dependency that provides an async database session."""
    async with async_session_maker() as session:
        yield session


async def dispose_engine() -> None:
    """Dispose of the engine and release all connections.

    Should be called during application shutdown.
    """
    await engine.dispose()
