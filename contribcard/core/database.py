"""Async database engines and declarative base for the cache and staging stores."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import URL, MetaData, event
from sqlalchemy.ext.asyncio import AsyncAttrs, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all ORM models."""

    metadata = MetaData(naming_convention=convention)


def _enable_wal(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()


def create_cache_engine(path: str | Path) -> AsyncEngine:
    """Engine for the durable cache database (read-write).

    WAL mode lets read-only resume lookups proceed while a merge is writing.
    """
    url = URL.create("sqlite+aiosqlite", database=str(Path(path)))
    engine = create_async_engine(url, echo=False)
    event.listen(engine.sync_engine, "connect", _enable_wal)
    return engine


def create_readonly_engine(path: str | Path) -> AsyncEngine:
    """Engine opening the cache database in read-only mode.

    The path is percent-encoded into a ``file:`` URI so characters such as
    ``#``, ``?`` or ``%`` in a directory or site name stay part of the path.
    """
    url = URL.create(
        "sqlite+aiosqlite",
        database=Path(path).resolve().as_uri(),
        query={"mode": "ro", "uri": "true"},
    )
    return create_async_engine(url, echo=False)


def create_staging_engine() -> AsyncEngine:
    """Engine for a private in-memory staging database.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    return create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create the commit / issue / pull_request tables if missing."""
    # Import models so they register on Base.metadata
    import contribcard.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
