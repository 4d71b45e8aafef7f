"""GitHub identifiers and response-header helpers."""

from __future__ import annotations

import re

from contribcard.exceptions import ConfigurationError

API_BASE_URL = "https://api.github.com"

_NEXT_LINK_RE = re.compile(r'<([^>]+)>\s*;\s*rel="?next"?')
_ISSUE_URL_RE = re.compile(r"/issues/\d+$")
_PULL_URL_RE = re.compile(r"/pull/\d+$")


def parse_repository(value: str) -> tuple[str, str]:
    """Split an ``owner/repo`` identifier.

    Raises ConfigurationError unless there is exactly one slash separating
    two non-empty parts.
    """
    parts = value.strip().split("/", 1)
    if len(parts) != 2:
        raise ConfigurationError(f"repository format must be owner/repo, found: {value!r}")
    owner, repo = parts
    if not owner or not repo:
        raise ConfigurationError(f"repository format must be owner/repo, found: {value!r}")
    if "/" in repo:
        raise ConfigurationError(f"repo cannot contain a slash, found: {repo!r}")
    return owner, repo


def parse_next_link(link_header: str | None) -> str | None:
    """Extract the ``next`` URL from a GitHub ``Link`` header."""
    if not link_header:
        return None
    for part in link_header.split(","):
        match = _NEXT_LINK_RE.search(part)
        if match:
            return match.group(1)
    return None


def classify_item_url(html_url: str | None) -> str | None:
    """Return ``"issue"``, ``"pull_request"`` or None from an item's html_url.

    The issues endpoint returns pull requests too; the URL shape is the only
    reliable discriminator.
    """
    if not html_url:
        return None
    if _ISSUE_URL_RE.search(html_url):
        return "issue"
    if _PULL_URL_RE.search(html_url):
        return "pull_request"
    return None
