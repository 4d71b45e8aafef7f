"""SQLAlchemy ORM models: one file per table."""

from contribcard.models.commit import Commit
from contribcard.models.issue import Issue
from contribcard.models.pull_request import PullRequest

__all__ = [
    "Commit",
    "Issue",
    "PullRequest",
]
