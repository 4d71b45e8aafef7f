"""Data-access objects over the commit / issue / pull_request tables."""

from contribcard.dao.base import BaseDAO
from contribcard.dao.commit_dao import CommitDAO
from contribcard.dao.contribution_dao import Contribution, ContributionDAO
from contribcard.dao.issue_dao import IssueDAO, PullRequestDAO

__all__ = [
    "BaseDAO",
    "CommitDAO",
    "Contribution",
    "ContributionDAO",
    "IssueDAO",
    "PullRequestDAO",
]
