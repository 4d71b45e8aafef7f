"""Tests for settings loading, credentials and cache location."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from contribcard.core.settings import (
    MergeCommitPolicy,
    Settings,
    api_base_url,
    cache_db_path,
    load_tokens,
    merge_commit_policy,
    setup_cache_dir,
)
from contribcard.exceptions import ConfigurationError


class TestSettingsFile:
    def test_load(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text(
            "organizations:\n  - acme\nrepositories:\n  - acme/widgets\n  - other/tool\n"
        )
        settings = Settings.from_file(path)
        assert settings.organizations == ["acme"]
        assert settings.repositories == ["acme/widgets", "other/tool"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("")
        settings = Settings.from_file(path)
        assert settings.organizations == []
        assert settings.repositories == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="cannot read"):
            Settings.from_file(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("organizations: [acme\n")
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            Settings.from_file(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("- acme\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            Settings.from_file(path)

    def test_unknown_keys_rejected(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("organisations:\n  - acme\n")
        with pytest.raises(ConfigurationError):
            Settings.from_file(path)

    @pytest.mark.parametrize("repo", ["acme", "acme/", "/widgets", "a/b/c"])
    def test_malformed_repository(self, tmp_path, repo):
        path = tmp_path / "settings.yml"
        path.write_text(f"repositories:\n  - '{repo}'\n")
        with pytest.raises(ConfigurationError):
            Settings.from_file(path)


class TestTokens:
    def test_explicit_value(self):
        assert load_tokens("t1, t2,,t3") == ["t1", "t2", "t3"]

    def test_from_env(self):
        with patch.dict(os.environ, {"GITHUB_TOKENS": "abc,def"}):
            assert load_tokens() == ["abc", "def"]

    def test_missing(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("GITHUB_TOKENS", None)
            with pytest.raises(ConfigurationError, match="GITHUB_TOKENS"):
                load_tokens()

    def test_only_separators(self):
        with pytest.raises(ConfigurationError):
            load_tokens(" , ,")


class TestEnvironment:
    def test_api_url_default(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("CONTRIBCARD_API_URL", None)
            assert api_base_url() == "https://api.github.com"

    def test_api_url_override(self):
        with patch.dict(os.environ, {"CONTRIBCARD_API_URL": "https://ghe.example.com/api/v3/"}):
            assert api_base_url() == "https://ghe.example.com/api/v3"

    def test_merge_policy_default(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("CONTRIBCARD_MERGE_COMMITS", None)
            assert merge_commit_policy() is MergeCommitPolicy.EXCLUDE

    def test_merge_policy_env(self):
        with patch.dict(os.environ, {"CONTRIBCARD_MERGE_COMMITS": "RECORD"}):
            assert merge_commit_policy() is MergeCommitPolicy.RECORD

    def test_merge_policy_argument_wins(self):
        with patch.dict(os.environ, {"CONTRIBCARD_MERGE_COMMITS": "record"}):
            assert merge_commit_policy("exclude") is MergeCommitPolicy.EXCLUDE

    def test_merge_policy_invalid(self):
        with pytest.raises(ConfigurationError, match="expected one of"):
            merge_commit_policy("sometimes")


class TestCacheLocation:
    def test_explicit_dir_created(self, tmp_path):
        path = setup_cache_dir(tmp_path / "c")
        assert path == tmp_path / "c" / "contribcard"
        assert path.is_dir()

    def test_xdg_cache_home(self, tmp_path):
        with patch.dict(os.environ, {"XDG_CACHE_HOME": str(tmp_path)}):
            assert setup_cache_dir() == tmp_path / "contribcard"

    def test_db_path(self, tmp_path):
        assert cache_db_path(tmp_path, "kubernetes") == tmp_path / "kubernetes.db"

    @pytest.mark.parametrize("name", ["", "a/b", "..", "."])
    def test_invalid_name(self, tmp_path, name):
        with pytest.raises(ConfigurationError):
            cache_db_path(tmp_path, name)
