"""In-memory ``GitRunner`` used by the unit tests.

``FakeGitRunner`` never touches the git binary.  It creates directories where
real git would (bare clone and worktree paths) so the service's on-disk
idempotency checks behave exactly as in production, and records every call
for assertions.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from wsflow.git.base import GitCommandError


class FakeGitRunner:
    """In-memory ``GitRunner``.

    Remotes are registered with ``add_remote``; unknown URLs behave like a
    repo with a single ``main`` branch.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self._remotes: dict[str, tuple[set[str], str]] = {}
        self._clones: dict[Path, tuple[set[str], str]] = {}
        self._failures: dict[tuple[str, str | None], GitCommandError] = {}

    # -- Test setup ------------------------------------------------------------

    def add_remote(self, url: str, branches: tuple[str, ...] = ("main",), default: str = "main") -> None:
        self._remotes[url] = (set(branches), default)

    def fail(self, operation: str, target: str | Path | None = None, stderr: str = "boom") -> None:
        """Make ``operation`` fail (for ``target`` only, when given)."""
        key = (operation, None if target is None else str(target))
        self._failures[key] = GitCommandError(operation, target or "", stderr, 128)

    def reset_failures(self) -> None:
        self._failures.clear()

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    # -- GitRunner -------------------------------------------------------------

    async def bare_clone(self, url: str, dest: Path) -> None:
        self._record("bare_clone", url, url, str(dest))
        branches, default = self._remotes.get(url, ({"main"}, "main"))
        dest.mkdir(parents=True)
        (dest / "HEAD").write_text(f"ref: refs/heads/{default}\n")
        self._clones[dest] = (set(branches), default)

    async def fetch(self, bare_path: Path) -> None:
        self._record("fetch", bare_path, str(bare_path))

    async def branch_exists(self, bare_path: Path, branch: str) -> bool:
        self._record("branch_exists", bare_path, str(bare_path), branch)
        return branch in self._clones[bare_path][0]

    async def default_branch(self, bare_path: Path) -> str:
        self._record("default_branch", bare_path, str(bare_path))
        return self._clones[bare_path][1]

    async def add_worktree(self, bare_path: Path, worktree_path: Path, branch: str) -> None:
        self._record("add_worktree", worktree_path, str(bare_path), str(worktree_path), branch)
        self._checkout(worktree_path, branch)

    async def add_worktree_new_branch(
        self,
        bare_path: Path,
        worktree_path: Path,
        new_branch: str,
        start_point: str,
    ) -> None:
        self._record(
            "add_worktree_new_branch",
            worktree_path,
            str(bare_path),
            str(worktree_path),
            new_branch,
            start_point,
        )
        self._clones[bare_path][0].add(new_branch)
        self._checkout(worktree_path, new_branch)

    async def remove_worktree(self, bare_path: Path, worktree_path: Path) -> None:
        self._record("remove_worktree", worktree_path, str(bare_path), str(worktree_path))
        shutil.rmtree(worktree_path)

    # -- Internals -------------------------------------------------------------

    def _record(self, operation: str, target: str | Path, *args: str) -> None:
        self.calls.append((operation, *args))
        error = self._failures.get((operation, str(target))) or self._failures.get((operation, None))
        if error is not None:
            raise error

    @staticmethod
    def _checkout(worktree_path: Path, branch: str) -> None:
        worktree_path.mkdir(parents=True)
        (worktree_path / ".git").write_text(f"branch: {branch}\n")


def worktree_branch(worktree_path: Path) -> str:
    """Branch a ``FakeGitRunner`` worktree was checked out on."""
    return (worktree_path / ".git").read_text().removeprefix("branch: ").strip()
