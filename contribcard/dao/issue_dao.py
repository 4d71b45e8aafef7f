"""IssueDAO / PullRequestDAO: issue and pull_request table operations."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from contribcard.dao.base import BaseDAO
from contribcard.models.issue import Issue
from contribcard.models.pull_request import PullRequest


class IssueDAO(BaseDAO[Issue]):
    model = Issue


class PullRequestDAO(BaseDAO[PullRequest]):
    model = PullRequest


async def last_issue_or_pull_request_ts(
    session: AsyncSession, owner: str, repository: str
) -> datetime | None:
    """The older of the latest issue ts and the latest pull request ts.

    Issues and pull requests come from the same endpoint, so resuming from
    the earlier of the two bounds keeps either stream from skipping records.
    Returns None when neither table has rows for the repository.
    """
    bounds = [
        ts
        for ts in (
            await IssueDAO().last_ts(session, owner, repository),
            await PullRequestDAO().last_ts(session, owner, repository),
        )
        if ts is not None
    ]
    return min(bounds) if bounds else None
