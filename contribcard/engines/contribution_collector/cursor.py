"""Resume boundaries computed from the durable cache."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from contribcard.core.database import create_readonly_engine
from contribcard.dao.commit_dao import CommitDAO
from contribcard.dao.issue_dao import last_issue_or_pull_request_ts


def format_since(ts: datetime | None) -> str | None:
    """Render a cache timestamp as the RFC 3339 ``since`` query value."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class ResumeCursor:
    """Read-only lookups of the latest cached record per repository.

    Uses its own read-only connection and never takes the merge lock.
    """

    def __init__(self, cache_path: str | Path) -> None:
        self._engine: AsyncEngine = create_readonly_engine(cache_path)
        self._session_factory = async_sessionmaker(self._engine)

    async def aclose(self) -> None:
        await self._engine.dispose()

    async def last_commit_ts(self, owner: str, repository: str) -> datetime | None:
        async with self._session_factory() as session:
            return await CommitDAO().last_ts(session, owner, repository)

    async def last_issue_or_pull_request_ts(
        self, owner: str, repository: str
    ) -> datetime | None:
        """min(latest issue ts, latest pull request ts) over the ones present."""
        async with self._session_factory() as session:
            return await last_issue_or_pull_request_ts(session, owner, repository)

    async def commits_since(self, owner: str, repository: str) -> str | None:
        return format_since(await self.last_commit_ts(owner, repository))

    async def issues_since(self, owner: str, repository: str) -> str | None:
        return format_since(await self.last_issue_or_pull_request_ts(owner, repository))
