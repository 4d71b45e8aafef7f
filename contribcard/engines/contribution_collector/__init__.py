"""Contribution collector engine: GitHub commits, issues and pull requests into the cache."""

from contribcard.engines.contribution_collector.collector import Collector, run_collection
from contribcard.engines.contribution_collector.cursor import ResumeCursor
from contribcard.engines.contribution_collector.github_client import (
    MIN_RATELIMIT_REMAINING,
    Paginator,
)
from contribcard.engines.contribution_collector.merger import CacheMerger
from contribcard.engines.contribution_collector.models import Page, Repository, RepositoryResult
from contribcard.engines.contribution_collector.staging import StagingStore
from contribcard.engines.contribution_collector.token_pool import ClientLease, TokenPool

__all__ = [
    "MIN_RATELIMIT_REMAINING",
    "CacheMerger",
    "ClientLease",
    "Collector",
    "Page",
    "Paginator",
    "Repository",
    "RepositoryResult",
    "ResumeCursor",
    "StagingStore",
    "TokenPool",
    "run_collection",
]
