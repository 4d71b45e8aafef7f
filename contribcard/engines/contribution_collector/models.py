"""Data models for the contribution collector engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass(frozen=True)
class Repository:
    """A GitHub repository identified by owner and name."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass
class Page:
    """One page of a paginated GitHub collection."""

    url: str
    headers: httpx.Headers
    items: list[dict[str, Any]]
    next_url: str | None = None


@dataclass
class RepositoryResult:
    """Outcome of collecting one repository."""

    repository: Repository
    pages: int = 0
    inserted: dict[str, int] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
