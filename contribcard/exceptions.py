"""Custom exceptions for contribcard."""

from __future__ import annotations


class ContribCardError(Exception):
    """Base exception for all contribcard errors."""


class ConfigurationError(ContribCardError):
    """Raised for missing credentials, malformed repository ids or bad settings files."""


class ApiError(ContribCardError):
    """Raised when the GitHub API answers with something we cannot use.

    Covers non-success status codes, malformed page bodies and missing
    response headers. Fatal to the current repository task only.
    """

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class TransportError(ContribCardError):
    """Raised when an HTTP request fails before a response is received."""


class QuotaExhaustedError(ContribCardError):
    """Raised when every API client has been evicted from the token pool."""


class CollectionError(ContribCardError):
    """Raised once all repository tasks finished and one or more of them failed."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        names = ", ".join(sorted(failures))
        super().__init__(
            f"collection failed for {len(failures)} repositories: {names}"
        )
