"""pull_request table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from contribcard.core.database import Base


class PullRequest(Base):
    __tablename__ = "pull_request"

    owner: Mapped[str] = mapped_column(Text, primary_key=True)
    repository: Mapped[str] = mapped_column(Text, primary_key=True)
    number: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    author_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    author_login: Mapped[Optional[str]] = mapped_column(Text)
    ts: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (Index("idx_pull_request_repo_ts", "owner", "repository", "ts"),)
