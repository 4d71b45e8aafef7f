"""commit table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from contribcard.core.database import Base


class Commit(Base):
    __tablename__ = "commit"

    owner: Mapped[str] = mapped_column(Text, primary_key=True)
    repository: Mapped[str] = mapped_column(Text, primary_key=True)
    sha: Mapped[str] = mapped_column(Text, primary_key=True)
    author_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    author_login: Mapped[Optional[str]] = mapped_column(Text)
    ts: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    # 1 for regular commits; >1 only stored under MergeCommitPolicy.RECORD
    parent_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (Index("idx_commit_repo_ts", "owner", "repository", "ts"),)
