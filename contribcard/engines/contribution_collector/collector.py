"""Contribution collector: incremental, multi-repository collection into the cache.

Each repository is collected in two steps (commits, then issues and pull
requests). A step fetches every page into a private staging store and merges
it into the cache only once the fetch completed, so a failure never leaves
partial data behind and the next run resumes from the last merged boundary.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path
from typing import Any

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from contribcard.core.database import create_cache_engine, create_tables
from contribcard.core.github import parse_repository
from contribcard.core.settings import MergeCommitPolicy, Settings
from contribcard.engines.contribution_collector.cursor import ResumeCursor
from contribcard.engines.contribution_collector.github_client import Paginator
from contribcard.engines.contribution_collector.merger import CacheMerger
from contribcard.engines.contribution_collector.models import Repository, RepositoryResult
from contribcard.engines.contribution_collector.staging import StagingStore
from contribcard.engines.contribution_collector.token_pool import TokenPool
from contribcard.exceptions import ApiError, CollectionError

log = structlog.get_logger("contribcard.engine")

_PER_PAGE = 100

PageLoader = Callable[[StagingStore, list[dict[str, Any]]], Awaitable[int]]


def _url(path: str, **params: Any) -> str:
    query = httpx.QueryParams({k: v for k, v in params.items() if v is not None})
    return f"{path}?{query}"


class Collector:
    """Collects commits, issues and pull requests for many repositories.

    Concurrency follows the token pool: at most ``pool.size`` repositories
    are collected at once, and fewer as tokens get evicted.
    """

    def __init__(
        self,
        pool: TokenPool,
        cache_path: str | Path,
        *,
        merge_commit_policy: MergeCommitPolicy = MergeCommitPolicy.EXCLUDE,
    ) -> None:
        self._pool = pool
        self._paginator = Paginator(pool)
        self._cache_path = Path(cache_path)
        self._policy = merge_commit_policy
        self._cache_engine: AsyncEngine | None = None
        self._merger: CacheMerger | None = None
        self._cursor: ResumeCursor | None = None

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def open(self) -> Collector:
        """Create the cache tables if needed and open the cache connections."""
        self._cache_path.parent.mkdir(parents=True, exist_ok=True)
        self._cache_engine = create_cache_engine(self._cache_path)
        await create_tables(self._cache_engine)
        self._merger = CacheMerger(self._cache_engine)
        self._cursor = ResumeCursor(self._cache_path)
        return self

    async def aclose(self) -> None:
        if self._cursor is not None:
            await self._cursor.aclose()
            self._cursor = None
        if self._cache_engine is not None:
            await self._cache_engine.dispose()
            self._cache_engine = None

    async def __aenter__(self) -> Collector:
        return await self.open()

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ── public ─────────────────────────────────────────────────────────────

    async def collect_contributions(self, settings: Settings) -> list[RepositoryResult]:
        """Collect every configured repository.

        All repositories are attempted even when some fail. Raises
        CollectionError afterwards if any failed; the data of the ones that
        succeeded stays merged in the cache.
        """
        repositories = await self.resolve_repositories(settings)
        log.info("collector.started", repositories=len(repositories), clients=self._pool.size)

        results = await self._run_all(repositories)

        failures = {str(r.repository): r.error for r in results if not r.ok}
        log.info(
            "collector.finished",
            succeeded=len(results) - len(failures),
            failed=len(failures),
            clients=self._pool.size,
        )
        if failures:
            raise CollectionError(failures)
        return results

    async def resolve_repositories(self, settings: Settings) -> list[Repository]:
        """Organization repositories followed by the explicit ones, deduplicated.

        Malformed ``owner/repo`` entries raise ConfigurationError before any
        request is made.
        """
        explicit = [Repository(*parse_repository(r)) for r in settings.repositories]

        repositories: list[Repository] = []
        for org in settings.organizations:
            repositories.extend(await self.list_repositories(org))
        repositories.extend(explicit)
        return list(dict.fromkeys(repositories))

    async def list_repositories(self, org: str) -> list[Repository]:
        """Public repositories of the GitHub organization *org*."""
        repositories = []
        url = _url(f"/orgs/{org}/repos", type="public", per_page=_PER_PAGE)
        async for page in self._paginator.pages(url):
            for item in page.items:
                name = item.get("name")
                if not isinstance(name, str) or not name:
                    raise ApiError(f"malformed repository item for org {org}", url=page.url)
                repositories.append(Repository(org, name))
        log.debug("collector.org_listed", org=org, repositories=len(repositories))
        return repositories

    async def collect_repository(self, repository: Repository) -> RepositoryResult:
        """Commits first (fetch + merge), then issues and pull requests."""
        result = RepositoryResult(repository=repository)

        pages, inserted = await self.collect_commits(repository)
        result.pages += pages
        result.inserted.update(inserted)

        pages, inserted = await self.collect_issues_and_pull_requests(repository)
        result.pages += pages
        for table, count in inserted.items():
            result.inserted[table] = result.inserted.get(table, 0) + count

        return result

    async def collect_commits(self, repository: Repository) -> tuple[int, dict[str, int]]:
        """Fetch and merge every commit newer than the last cached one."""
        since = await self._require_cursor().commits_since(repository.owner, repository.name)
        url = _url(
            f"/repos/{repository.owner}/{repository.name}/commits",
            per_page=_PER_PAGE,
            since=since,
        )
        log.debug("collector.commits", repository=str(repository), since=since)
        return await self._fetch_and_merge(repository, url, StagingStore.load_commits)

    async def collect_issues_and_pull_requests(
        self, repository: Repository
    ) -> tuple[int, dict[str, int]]:
        """Fetch and merge issues and pull requests from the issues endpoint."""
        since = await self._require_cursor().issues_since(repository.owner, repository.name)
        url = _url(
            f"/repos/{repository.owner}/{repository.name}/issues",
            state="all",
            per_page=_PER_PAGE,
            since=since,
        )
        log.debug("collector.issues", repository=str(repository), since=since)
        return await self._fetch_and_merge(
            repository, url, StagingStore.load_issues_and_pull_requests
        )

    # ── internal ───────────────────────────────────────────────────────────

    def _require_cursor(self) -> ResumeCursor:
        if self._cursor is None:
            raise RuntimeError("collector is not open")
        return self._cursor

    async def _fetch_and_merge(
        self, repository: Repository, url: str, load: PageLoader
    ) -> tuple[int, dict[str, int]]:
        if self._merger is None:
            raise RuntimeError("collector is not open")
        pages = 0
        async with StagingStore(repository.owner, repository.name, self._policy) as staging:
            async for page in self._paginator.pages(url):
                await load(staging, page.items)
                pages += 1
            inserted = await self._merger.merge(staging)
        return pages, inserted

    async def _collect_safely(self, repository: Repository) -> RepositoryResult:
        try:
            result = await self.collect_repository(repository)
        except Exception as exc:
            log.error(
                "collector.repo_failed",
                repository=str(repository),
                error=f"{type(exc).__name__}: {exc}",
            )
            return RepositoryResult(repository=repository, error=f"{type(exc).__name__}: {exc}")
        log.info(
            "collector.repo_done",
            repository=str(repository),
            pages=result.pages,
            inserted=result.inserted,
        )
        return result

    async def _run_all(self, repositories: Iterable[Repository]) -> list[RepositoryResult]:
        """Run repository tasks with admission bounded by the pool's current size.

        One worker per client; worker *i* stops taking repositories once the
        pool has shrunk to *i* clients or fewer. Worker 0 always keeps going,
        so leftover repositories still fail with QuotaExhaustedError once the
        pool is empty instead of being skipped.
        """
        repositories = list(repositories)
        pending = deque(repositories)
        results: dict[Repository, RepositoryResult] = {}

        async def _worker(index: int) -> None:
            while pending:
                if index > 0 and index >= self._pool.size:
                    return
                repository = pending.popleft()
                results[repository] = await self._collect_safely(repository)

        workers = max(1, min(self._pool.size, len(repositories)))
        await asyncio.gather(*(_worker(i) for i in range(workers)))
        return [results[r] for r in repositories]


async def run_collection(
    settings: Settings,
    tokens: list[str],
    cache_path: str | Path,
    *,
    base_url: str | None = None,
    merge_commit_policy: MergeCommitPolicy = MergeCommitPolicy.EXCLUDE,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[RepositoryResult]:
    """Convenience function to run one collection.

    Args:
        settings: Organizations and repositories to collect.
        tokens: GitHub API tokens, one client each.
        cache_path: Location of the cache database.
        base_url: GitHub API base URL (default: public GitHub).
        merge_commit_policy: How merge commits are stored.
        transport: Optional httpx transport (tests).

    Returns:
        One result per repository.
    """
    pool_kwargs: dict[str, Any] = {"transport": transport}
    if base_url:
        pool_kwargs["base_url"] = base_url
    async with TokenPool(tokens, **pool_kwargs) as pool:
        async with Collector(
            pool, cache_path, merge_commit_policy=merge_commit_policy
        ) as collector:
            return await collector.collect_contributions(settings)
