"""Shared fixtures for contribcard tests.

No network or external database is needed: GitHub is faked with an
``httpx.MockTransport`` (see ``fakes.py``) and caches are SQLite files under
``tmp_path``.
"""

from pathlib import Path

import pytest

from fakes import FakeGitHub


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "test.db"
