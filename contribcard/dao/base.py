"""Generic base DAO: conflict-ignoring inserts and per-repository reads (Core)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncSession

from contribcard.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

# 8 columns per row keeps a chunk well under SQLite's bound-parameter limit.
INSERT_CHUNK_SIZE = 100


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    @property
    def table(self):
        return self.model.__table__

    # ── write ─────────────────────────────────────────────────────────────

    async def insert_ignore(self, session: AsyncSession, rows: Iterable[dict[str, Any]]) -> int:
        """Insert *rows*, skipping those whose primary key already exists.

        ON CONFLICT DO NOTHING, so re-inserting a known key is a no-op.
        Returns the number of rows actually inserted.
        """
        rows = list(rows)
        inserted = 0
        for start in range(0, len(rows), INSERT_CHUNK_SIZE):
            chunk = rows[start : start + INSERT_CHUNK_SIZE]
            stmt = insert(self.table).values(chunk).on_conflict_do_nothing()
            result = await session.execute(stmt)
            inserted += max(result.rowcount or 0, 0)
        return inserted

    # ── read ──────────────────────────────────────────────────────────────

    async def all_rows(self, session: AsyncSession) -> list[dict[str, Any]]:
        """Every row of the table as plain dicts, in primary-key order."""
        stmt = select(self.table).order_by(*self.table.primary_key.columns)
        result = await session.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def count(
        self,
        session: AsyncSession,
        owner: str | None = None,
        repository: str | None = None,
    ) -> int:
        """Row count, optionally restricted to one owner / repository."""
        stmt = select(func.count()).select_from(self.table)
        if owner is not None:
            stmt = stmt.where(self.table.c.owner == owner)
        if repository is not None:
            stmt = stmt.where(self.table.c.repository == repository)
        result = await session.execute(stmt)
        return result.scalar_one()

    async def last_ts(self, session: AsyncSession, owner: str, repository: str) -> datetime | None:
        """Timestamp of the most recent row stored for (owner, repository)."""
        stmt = select(func.max(self.table.c.ts)).where(
            self.table.c.owner == owner,
            self.table.c.repository == repository,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
