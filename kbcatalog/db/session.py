"""Database engine and session management for per-repository catalogs."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from kbcatalog.core.config import settings


def get_database_url(db_path: Path) -> str:
    """Build the aiosqlite URL for a catalog database file."""
    return f"sqlite+aiosqlite:///{Path(db_path).as_posix()}"


def create_catalog_engine(db_path: Path) -> AsyncEngine:
    """Create an async engine for one catalog database.

    NullPool closes the underlying connection whenever a session ends, so no
    connection is held between catalog operations.

    Args:
        db_path: Path to the SQLite file.

    Returns:
        A configured AsyncEngine.
    """
    engine = create_async_engine(
        get_database_url(db_path),
        echo=settings.debug,
        poolclass=NullPool,
        connect_args={
            "timeout": 30,  # Wait up to 30 seconds for locks
        },
    )
    event.listen(engine.sync_engine, "connect", set_sqlite_pragma)
    return engine


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key enforcement on each new connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to a catalog engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def scoped_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that commits on success and rolls back on error.

    Yields:
        An async database session.
    """
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
