"""Per-repository in-memory staging database.

Freshly fetched pages land here first. Only a fully fetched staging store is
ever merged into the cache, so a failed fetch leaves the cache untouched.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from contribcard.core.database import create_staging_engine, create_tables
from contribcard.core.settings import MergeCommitPolicy
from contribcard.dao.base import BaseDAO
from contribcard.dao.commit_dao import CommitDAO
from contribcard.dao.issue_dao import IssueDAO, PullRequestDAO
from contribcard.engines.contribution_collector.records import (
    commit_row,
    split_issues_and_pull_requests,
)

# Table name → DAO, in the order rows are merged.
STAGED_TABLES: dict[str, BaseDAO] = {
    "commit": CommitDAO(),
    "issue": IssueDAO(),
    "pull_request": PullRequestDAO(),
}


class StagingStore:
    """Scratch store for one collection step of one repository."""

    def __init__(
        self,
        owner: str,
        repository: str,
        policy: MergeCommitPolicy = MergeCommitPolicy.EXCLUDE,
    ) -> None:
        self.owner = owner
        self.repository = repository
        self._policy = policy
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def open(self) -> StagingStore:
        self._engine = create_staging_engine()
        await create_tables(self._engine)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
        return self

    async def aclose(self) -> None:
        """Discard everything staged."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def __aenter__(self) -> StagingStore:
        return await self.open()

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("staging store is not open")
        return self._session_factory

    # ── load ──────────────────────────────────────────────────────────────

    async def load_commits(self, items: list[dict[str, Any]]) -> int:
        """Stage the commits of one page; returns the number of new rows."""
        rows = []
        for item in items:
            row = commit_row(self.owner, self.repository, item, self._policy)
            if row is not None:
                rows.append(row)
        async with self._sessions()() as session:
            async with session.begin():
                return await STAGED_TABLES["commit"].insert_ignore(session, rows)

    async def load_issues_and_pull_requests(self, items: list[dict[str, Any]]) -> int:
        """Stage one issues-endpoint page, split into issues and pull requests."""
        issues, pull_requests = split_issues_and_pull_requests(
            self.owner, self.repository, items
        )
        async with self._sessions()() as session:
            async with session.begin():
                inserted = await STAGED_TABLES["issue"].insert_ignore(session, issues)
                inserted += await STAGED_TABLES["pull_request"].insert_ignore(
                    session, pull_requests
                )
        return inserted

    # ── read ──────────────────────────────────────────────────────────────

    async def rows(self, table: str) -> list[dict[str, Any]]:
        """All staged rows of *table*."""
        async with self._sessions()() as session:
            return await STAGED_TABLES[table].all_rows(session)

    async def counts(self) -> dict[str, int]:
        async with self._sessions()() as session:
            return {name: await dao.count(session) for name, dao in STAGED_TABLES.items()}
