"""Convert GitHub API items into commit / issue / pull_request rows."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from contribcard.core.github import classify_item_url
from contribcard.core.settings import MergeCommitPolicy
from contribcard.exceptions import ApiError


def parse_timestamp(value: str | None) -> datetime:
    """Parse an ISO-8601 timestamp into a naive UTC datetime."""
    if not value:
        raise ApiError("item has no timestamp")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError) as exc:
        raise ApiError(f"invalid timestamp {value!r}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def commit_row(
    owner: str,
    repository: str,
    item: dict[str, Any],
    policy: MergeCommitPolicy = MergeCommitPolicy.EXCLUDE,
) -> dict[str, Any] | None:
    """Row for the commit table, or None when the commit is not stored.

    Commits without a linked GitHub account cannot be attributed and are
    skipped; merge commits are skipped under MergeCommitPolicy.EXCLUDE.
    """
    author = item.get("author") or {}
    if not author.get("login"):
        return None

    parent_count = len(item.get("parents") or [])
    if parent_count > 1 and policy is MergeCommitPolicy.EXCLUDE:
        return None

    sha = item.get("sha")
    if not sha:
        raise ApiError(f"commit item without sha in {owner}/{repository}")

    commit = item.get("commit") or {}
    committer = commit.get("committer") or {}
    message = commit.get("message") or ""
    return {
        "owner": owner,
        "repository": repository,
        "sha": sha,
        "author_id": author.get("id"),
        "author_login": author["login"],
        "ts": parse_timestamp(committer.get("date")),
        "title": message.splitlines()[0] if message else "",
        "parent_count": max(parent_count, 1),
    }


def numbered_row(owner: str, repository: str, item: dict[str, Any]) -> dict[str, Any]:
    """Row for the issue or pull_request table (identical shapes)."""
    number = item.get("number")
    if number is None:
        raise ApiError(f"issue item without number in {owner}/{repository}")
    user = item.get("user") or {}
    return {
        "owner": owner,
        "repository": repository,
        "number": number,
        "author_id": user.get("id"),
        "author_login": user.get("login"),
        "ts": parse_timestamp(item.get("created_at")),
        "title": item.get("title") or "",
    }


def split_issues_and_pull_requests(
    owner: str, repository: str, items: list[dict[str, Any]]
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Split an issues-endpoint page into (issue rows, pull request rows).

    Classification is by html_url shape; items matching neither shape are
    dropped.
    """
    issues: list[dict[str, Any]] = []
    pull_requests: list[dict[str, Any]] = []
    for item in items:
        kind = classify_item_url(item.get("html_url"))
        if kind == "issue":
            issues.append(numbered_row(owner, repository, item))
        elif kind == "pull_request":
            pull_requests.append(numbered_row(owner, repository, item))
    return issues, pull_requests
