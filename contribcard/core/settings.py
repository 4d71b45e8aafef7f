"""Settings file, credentials and cache location."""

from __future__ import annotations

import enum
import os
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from contribcard.core.github import API_BASE_URL, parse_repository
from contribcard.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

_ENV_TOKENS = "GITHUB_TOKENS"
_ENV_API_URL = "CONTRIBCARD_API_URL"
_ENV_MERGE_COMMITS = "CONTRIBCARD_MERGE_COMMITS"


class MergeCommitPolicy(str, enum.Enum):
    """How commits with more than one parent are handled.

    EXCLUDE drops them when loading pages. RECORD stores them with their
    parent count and leaves the filtering to the contribution query.
    """

    EXCLUDE = "exclude"
    RECORD = "record"


class Settings(BaseModel):
    """Contents of the settings YAML file."""

    model_config = ConfigDict(extra="forbid")

    organizations: list[str] = Field(default_factory=list)
    repositories: list[str] = Field(default_factory=list)

    @field_validator("repositories")
    @classmethod
    def _validate_repositories(cls, value: list[str]) -> list[str]:
        for repo in value:
            try:
                parse_repository(repo)
            except ConfigurationError as exc:
                raise ValueError(str(exc)) from exc
        return value

    @classmethod
    def from_file(cls, path: str | Path) -> Settings:
        """Load and validate a settings file."""
        path = Path(path)
        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except OSError as exc:
            raise ConfigurationError(f"cannot read settings file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"invalid YAML in settings file {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(f"settings file {path} must contain a mapping")
        try:
            settings = cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid settings file {path}: {exc}") from exc
        logger.debug(
            "settings.loaded",
            path=str(path),
            organizations=len(settings.organizations),
            repositories=len(settings.repositories),
        )
        return settings


def load_tokens(value: str | None = None) -> list[str]:
    """Read API tokens from *value* or the GITHUB_TOKENS env var (comma separated)."""
    raw = value if value is not None else os.environ.get(_ENV_TOKENS)
    if not raw:
        raise ConfigurationError(f"required {_ENV_TOKENS} not provided")
    tokens = [t.strip() for t in raw.split(",") if t.strip()]
    if not tokens:
        raise ConfigurationError(f"required {_ENV_TOKENS} not provided")
    return tokens


def api_base_url() -> str:
    return os.environ.get(_ENV_API_URL, API_BASE_URL).rstrip("/")


def merge_commit_policy(value: str | None = None) -> MergeCommitPolicy:
    raw = (value or os.environ.get(_ENV_MERGE_COMMITS) or MergeCommitPolicy.EXCLUDE.value).lower()
    try:
        return MergeCommitPolicy(raw)
    except ValueError as exc:
        choices = ", ".join(p.value for p in MergeCommitPolicy)
        raise ConfigurationError(
            f"invalid merge commit policy {raw!r} (expected one of: {choices})"
        ) from exc


def setup_cache_dir(cache_dir: str | Path | None = None) -> Path:
    """Return ``<cache_dir>/contribcard``, creating it when needed.

    Without *cache_dir* the user's cache directory is used
    ($XDG_CACHE_HOME, falling back to ~/.cache).
    """
    if cache_dir is None:
        base = os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache"
        cache_dir = base
    path = Path(cache_dir) / "contribcard"
    if not path.exists():
        logger.debug("settings.cache_dir_created", path=str(path))
        path.mkdir(parents=True, exist_ok=True)
    return path


def cache_db_path(cache_dir: Path, name: str) -> Path:
    """Location of the cache database for the site *name*."""
    if not name or "/" in name or name in (".", ".."):
        raise ConfigurationError(f"invalid site name: {name!r}")
    return cache_dir / f"{name}.db"
