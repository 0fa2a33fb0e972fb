"""Integration tests against the real git binary.

Remotes are plain local repositories created in ``tmp_path``, so no network
access is needed.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from wsflow.git import GitCommandError, SubprocessGitRunner
from wsflow.managers.workspaces import RepoOperationError, WorkspaceService
from wsflow.models.enums import WorktreeOutcome
from wsflow.models.state import RepoBinding, new_state
from wsflow.settings import FlowPaths

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available"),
]


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=wsflow", "-c", "user.email=wsflow@example.com", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture
def remote(tmp_path: Path) -> Path:
    """A source repo with ``main`` (default) and ``develop`` branches."""
    repo = tmp_path / "remote" / "tools"
    repo.mkdir(parents=True)
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "README.md").write_text("tools\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-q", "-m", "initial")
    _git(repo, "branch", "develop")
    return repo


@pytest.fixture
def runner() -> SubprocessGitRunner:
    return SubprocessGitRunner(timeout=60)


async def test_bare_clone_and_branch_queries(runner: SubprocessGitRunner, remote: Path, tmp_path: Path) -> None:
    bare = tmp_path / "repos" / "tools.git"
    bare.parent.mkdir()

    await runner.bare_clone(str(remote), bare)

    assert (bare / "HEAD").is_file()
    assert await runner.default_branch(bare) == "main"
    assert await runner.branch_exists(bare, "main") is True
    assert await runner.branch_exists(bare, "develop") is True
    assert await runner.branch_exists(bare, "feature/nope") is False

    await runner.fetch(bare)


async def test_worktree_lifecycle(runner: SubprocessGitRunner, remote: Path, tmp_path: Path) -> None:
    bare = tmp_path / "tools.git"
    await runner.bare_clone(str(remote), bare)

    existing = tmp_path / "ws" / "existing"
    fresh = tmp_path / "ws" / "fresh"
    await runner.add_worktree(bare, existing, "develop")
    await runner.add_worktree_new_branch(bare, fresh, "feature/x", "main")

    assert _git(existing, "rev-parse", "--abbrev-ref", "HEAD") == "develop"
    assert _git(fresh, "rev-parse", "--abbrev-ref", "HEAD") == "feature/x"
    assert await runner.branch_exists(bare, "feature/x") is True

    (fresh / "dirty.txt").write_text("uncommitted")
    await runner.remove_worktree(bare, fresh)
    assert not fresh.exists()


async def test_failure_carries_stderr(runner: SubprocessGitRunner, tmp_path: Path) -> None:
    with pytest.raises(GitCommandError) as exc_info:
        await runner.bare_clone(str(tmp_path / "does-not-exist"), tmp_path / "out.git")

    error = exc_info.value
    assert error.operation == "clone"
    assert error.target == str(tmp_path / "does-not-exist")
    assert error.returncode not in (None, 0)
    assert error.stderr


async def test_render_and_delete_end_to_end(runner: SubprocessGitRunner, remote: Path, tmp_path: Path) -> None:
    paths = FlowPaths(tmp_path / "flow")
    service = WorkspaceService(paths, runner)
    state = new_state(
        "proj",
        "",
        [
            RepoBinding(url=str(remote), branch="develop", path="tools"),
            RepoBinding(url=str(remote), branch="feature/x", path="tools-x"),
        ],
    )
    await service.create_workspace("calm-delta", state)

    first = await service.render_workspace("calm-delta")
    second = await service.render_workspace("calm-delta")

    assert [r.outcome for r in first] == [WorktreeOutcome.CREATED_EXISTING_BRANCH, WorktreeOutcome.CREATED_NEW_BRANCH]
    assert first[1].base_branch == "main"
    assert all(r.outcome is WorktreeOutcome.ALREADY_PRESENT for r in second)
    workspace_dir = paths.workspace_path("calm-delta")
    assert _git(workspace_dir / "tools-x", "rev-parse", "--abbrev-ref", "HEAD") == "feature/x"

    failures = await service.delete_workspace("calm-delta")

    assert failures == []
    assert not workspace_dir.exists()
    assert paths.bare_repo_path(str(remote)).is_dir()


async def test_render_unreachable_remote(runner: SubprocessGitRunner, tmp_path: Path) -> None:
    service = WorkspaceService(FlowPaths(tmp_path / "flow"), runner)
    missing = str(tmp_path / "gone")
    await service.create_workspace("ws", new_state("ws", "", [RepoBinding(url=missing, branch="main")]))

    with pytest.raises(RepoOperationError) as exc_info:
        await service.render_workspace("ws")

    assert exc_info.value.url == missing
    assert exc_info.value.error.stderr
