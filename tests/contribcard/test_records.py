"""Tests for converting API items into cache rows."""

from __future__ import annotations

from datetime import datetime

import pytest

from contribcard.core.settings import MergeCommitPolicy
from contribcard.engines.contribution_collector.records import (
    commit_row,
    numbered_row,
    parse_timestamp,
    split_issues_and_pull_requests,
)
from contribcard.exceptions import ApiError
from fakes import make_commit, make_issue


class TestParseTimestamp:
    def test_z_suffix_to_naive_utc(self):
        assert parse_timestamp("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, 0, 0)

    def test_offset_converted_to_utc(self):
        assert parse_timestamp("2024-03-01T12:00:00+02:00") == datetime(2024, 3, 1, 10, 0, 0)

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_invalid(self, value):
        with pytest.raises(ApiError):
            parse_timestamp(value)


class TestCommitRow:
    def test_basic(self):
        item = make_commit(
            "abc", "2024-01-15T10:00:00Z", "dev1", author_id=42, message="fix: x\n\nlong body"
        )
        row = commit_row("acme", "widgets", item)
        assert row == {
            "owner": "acme",
            "repository": "widgets",
            "sha": "abc",
            "author_id": 42,
            "author_login": "dev1",
            "ts": datetime(2024, 1, 15, 10, 0, 0),
            "title": "fix: x",
            "parent_count": 1,
        }

    def test_title_is_first_line(self):
        item = make_commit("abc", "2024-01-15T10:00:00Z", message="line one\nline two")
        assert commit_row("o", "r", item)["title"] == "line one"

    def test_title_strips_crlf_line_ending(self):
        item = make_commit("abc", "2024-01-15T10:00:00Z", message="Fix bug\r\n\r\nDetails")
        assert commit_row("o", "r", item)["title"] == "Fix bug"

    def test_commit_without_github_author_skipped(self):
        item = make_commit("abc", "2024-01-15T10:00:00Z", login=None)
        assert commit_row("o", "r", item) is None

    def test_merge_commit_excluded_by_default(self):
        item = make_commit("m1", "2024-01-15T10:00:00Z", parents=2)
        assert commit_row("o", "r", item) is None

    def test_merge_commit_recorded_with_parent_count(self):
        item = make_commit("m1", "2024-01-15T10:00:00Z", parents=2)
        row = commit_row("o", "r", item, MergeCommitPolicy.RECORD)
        assert row["parent_count"] == 2

    def test_root_commit_counts_as_one_parent(self):
        item = make_commit("root", "2024-01-15T10:00:00Z", parents=0)
        assert commit_row("o", "r", item)["parent_count"] == 1

    def test_missing_sha_is_api_error(self):
        item = make_commit("abc", "2024-01-15T10:00:00Z")
        del item["sha"]
        with pytest.raises(ApiError):
            commit_row("o", "r", item)


class TestIssueRows:
    def test_numbered_row(self):
        item = make_issue("o", "r", 7, "2024-02-01T00:00:00Z", "alice", author_id=9)
        assert numbered_row("o", "r", item) == {
            "owner": "o",
            "repository": "r",
            "number": 7,
            "author_id": 9,
            "author_login": "alice",
            "ts": datetime(2024, 2, 1),
            "title": "Issue 7",
        }

    def test_split_mixed_page(self):
        items = [
            make_issue("o", "r", 1, "2024-02-01T00:00:00Z"),
            make_issue("o", "r", 2, "2024-02-02T00:00:00Z", pull_request=True),
            make_issue("o", "r", 3, "2024-02-03T00:00:00Z"),
            make_issue("o", "r", 4, "2024-02-04T00:00:00Z", pull_request=True),
        ]
        issues, pull_requests = split_issues_and_pull_requests("o", "r", items)
        assert [r["number"] for r in issues] == [1, 3]
        assert [r["number"] for r in pull_requests] == [2, 4]

    def test_split_drops_unknown_url_shapes(self):
        item = make_issue("o", "r", 5, "2024-02-01T00:00:00Z")
        item["html_url"] = "https://github.com/o/r/discussions/5"
        assert split_issues_and_pull_requests("o", "r", [item]) == ([], [])

    def test_ghost_user(self):
        item = make_issue("o", "r", 5, "2024-02-01T00:00:00Z")
        item["user"] = None
        row = numbered_row("o", "r", item)
        assert row["author_id"] is None
        assert row["author_login"] is None
