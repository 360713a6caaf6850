"""Database package with engine and session management."""

from almox.db.session import (
    async_session_maker,
    build_engine,
    build_session_maker,
    dispose_engine,
    engine,
    get_session,
)

__all__ = [
    "async_session_maker",
    "build_engine",
    "build_session_maker",
    "dispose_engine",
    "engine",
    "get_session",
]
