"""ContributionDAO: read-only UNION view over commits, issues and pull requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, literal, null, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from contribcard.core.settings import MergeCommitPolicy
from contribcard.models.commit import Commit
from contribcard.models.issue import Issue
from contribcard.models.pull_request import PullRequest


@dataclass(frozen=True)
class Contribution:
    """One commit, issue or pull request attributed to an author."""

    kind: str
    owner: str
    repository: str
    sha: str | None
    number: int | None
    author_id: int | None
    author_login: str | None
    ts: datetime
    title: str


class ContributionDAO:
    """Builds the contribution view from the cache tables; never persisted."""

    def __init__(self, policy: MergeCommitPolicy = MergeCommitPolicy.EXCLUDE) -> None:
        self._policy = policy

    def _union(self):
        commits = select(
            literal("commit").label("kind"),
            Commit.owner,
            Commit.repository,
            Commit.sha.label("sha"),
            null().label("number"),
            Commit.author_id,
            Commit.author_login,
            Commit.ts,
            Commit.title,
        )
        # Merge commits only reach the table under RECORD; filter them here.
        if self._policy is MergeCommitPolicy.RECORD:
            commits = commits.where(Commit.parent_count <= 1)

        def _numbered(model, kind: str):
            return select(
                literal(kind).label("kind"),
                model.owner,
                model.repository,
                null().label("sha"),
                model.number.label("number"),
                model.author_id,
                model.author_login,
                model.ts,
                model.title,
            )

        return union_all(
            commits,
            _numbered(Issue, "issue"),
            _numbered(PullRequest, "pull_request"),
        ).subquery("contribution")

    async def list_contributions(
        self, session: AsyncSession, author_login: str | None = None
    ) -> list[Contribution]:
        """All contributions ordered by timestamp, optionally for one author."""
        view = self._union()
        stmt = select(view)
        if author_login is not None:
            stmt = stmt.where(view.c.author_login == author_login)
        stmt = stmt.order_by(view.c.ts, view.c.kind)
        result = await session.execute(stmt)
        return [Contribution(**row) for row in result.mappings().all()]

    async def count_by_contributor(self, session: AsyncSession) -> dict[str, int]:
        """Number of contributions per author login, highest first."""
        view = self._union()
        total = func.count().label("total")
        stmt = (
            select(view.c.author_login, total)
            .where(view.c.author_login.is_not(None))
            .group_by(view.c.author_login)
            .order_by(total.desc(), view.c.author_login)
        )
        result = await session.execute(stmt)
        return {login: n for login, n in result.all()}
