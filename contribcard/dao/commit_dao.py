"""CommitDAO: commit table operations."""

from contribcard.dao.base import BaseDAO
from contribcard.models.commit import Commit


class CommitDAO(BaseDAO[Commit]):
    model = Commit
