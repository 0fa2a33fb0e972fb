"""Shared test fixtures: an isolated FLOW_HOME and an in-memory git runner.

No test here needs network access.  Tests that run the real git binary are
marked with ``@pytest.mark.integration`` and build their remotes locally.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fakes import FakeGitRunner

from wsflow.managers.workspaces import WorkspaceService
from wsflow.settings import FlowPaths, get_settings


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point FLOW_HOME at a temp dir and drop any cached settings."""
    monkeypatch.setenv("FLOW_HOME", str(tmp_path / "flow-home"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def paths(tmp_path: Path) -> FlowPaths:
    return FlowPaths(tmp_path / "flow")


@pytest.fixture
def git() -> FakeGitRunner:
    return FakeGitRunner()


@pytest.fixture
def service(paths: FlowPaths, git: FakeGitRunner) -> WorkspaceService:
    return WorkspaceService(paths, git)
