"""Copies staged rows into the durable cache under a single merge lock."""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from contribcard.engines.contribution_collector.staging import STAGED_TABLES, StagingStore

log = structlog.get_logger("contribcard.engine")


class CacheMerger:
    """The only writer of the durable cache.

    One lock serializes every merge of the run; each merge is a single
    transaction, so readers see the cache either before or after it.
    """

    def __init__(self, cache_engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(cache_engine, expire_on_commit=False)
        self.lock = asyncio.Lock()

    async def merge(self, staging: StagingStore) -> dict[str, int]:
        """Merge every staged table; returns rows inserted per table.

        Keys already in the cache are ignored, so merging the same staged
        data twice leaves the cache unchanged.
        """
        # Read staged rows before taking the lock.
        staged = {table: await staging.rows(table) for table in STAGED_TABLES}

        inserted: dict[str, int] = {}
        async with self.lock:
            async with self._session_factory() as session:
                async with session.begin():
                    for table, dao in STAGED_TABLES.items():
                        inserted[table] = await dao.insert_ignore(session, staged[table])

        log.debug(
            "cache.merged",
            repository=f"{staging.owner}/{staging.repository}",
            staged={table: len(rows) for table, rows in staged.items()},
            inserted=inserted,
        )
        return inserted
