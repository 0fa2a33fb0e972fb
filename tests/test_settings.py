"""Unit tests for settings and on-disk path layout."""

from __future__ import annotations

from pathlib import Path

import pytest

from wsflow.models.state import FlowConfig
from wsflow.settings import FlowPaths, FlowSettings, get_settings
from wsflow.store.state_file import load_config


def test_paths_layout() -> None:
    paths = FlowPaths("/data/flow")

    assert paths.workspaces_dir == Path("/data/flow/workspaces")
    assert paths.repos_dir == Path("/data/flow/repos")
    assert paths.config_file == Path("/data/flow/config.yaml")
    assert paths.workspace_path("calm-delta") == Path("/data/flow/workspaces/calm-delta")
    assert paths.state_path("calm-delta") == Path("/data/flow/workspaces/calm-delta/state.yaml")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("github.com/org/repo", "github.com/org/repo.git"),
        ("github.com/org/repo.git", "github.com/org/repo.git"),
        ("https://github.com/org/repo.git", "github.com/org/repo.git"),
        ("ssh://git@github.com/org/repo", "github.com/org/repo.git"),
        ("git@github.com:org/repo.git", "github.com/org/repo.git"),
        ("/srv/git/tools", "srv/git/tools.git"),
        ("./local/../tools.git", "local/tools.git"),
    ],
)
def test_bare_repo_path(url: str, expected: str) -> None:
    paths = FlowPaths("/data/flow")
    assert paths.bare_repo_path(url) == Path("/data/flow/repos") / expected


def test_bare_repo_path_stays_inside_repos_dir() -> None:
    paths = FlowPaths("/data/flow")
    for url in ("/etc", "../../etc/passwd", "git@host:../../x"):
        assert paths.repos_dir in paths.bare_repo_path(url).parents


def test_ensure_dirs_creates_layout_and_config(tmp_path: Path) -> None:
    paths = FlowPaths(tmp_path / "home")

    config = paths.ensure_dirs()

    assert paths.workspaces_dir.is_dir()
    assert paths.repos_dir.is_dir()
    assert config == FlowConfig()
    assert load_config(paths.config_file) == FlowConfig()


def test_ensure_dirs_keeps_existing_config(tmp_path: Path) -> None:
    paths = FlowPaths(tmp_path / "home")
    paths.home.mkdir()
    paths.config_file.write_text("apiVersion: flow/v1\nkind: Config\n# tuned by hand\n")

    paths.ensure_dirs()

    assert "# tuned by hand" in paths.config_file.read_text()


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FLOW_HOME", str(tmp_path / "custom"))
    monkeypatch.setenv("FLOW_LOG_LEVEL", "debug")
    monkeypatch.setenv("FLOW_GIT_TIMEOUT", "30")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.home == tmp_path / "custom"
    assert settings.log_level == "debug"
    assert settings.git_timeout == 30.0
    assert settings.paths().workspaces_dir == tmp_path / "custom" / "workspaces"


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FLOW_HOME", raising=False)

    settings = FlowSettings(_env_file=None)

    assert settings.home == Path.home() / ".flow"
    assert settings.log_level == "WARNING"
    assert settings.git_timeout is None
