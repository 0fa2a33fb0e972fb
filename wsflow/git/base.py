"""Git capability interface.

The workspace service never shells out itself; it calls the primitive git
operations below through a ``GitRunner``.  ``SubprocessGitRunner`` is the real
implementation, tests use an in-memory double.

Every method is a single git invocation and may fail independently.  Failures
raise ``GitCommandError`` carrying the operation, the path or URL involved and
git's own stderr, verbatim.  Cancelling the awaiting task terminates the git
process; the cancellation exception propagates as-is.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


class GitCommandError(RuntimeError):
    """A git invocation failed."""

    def __init__(
        self,
        operation: str,
        target: str | Path,
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        self.operation = operation
        self.target = str(target)
        self.stderr = stderr
        self.returncode = returncode

        message = f"git {operation} ({self.target})"
        if returncode is not None:
            message += f": exit status {returncode}"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)


@runtime_checkable
class GitRunner(Protocol):
    """Async protocol for the git operations needed to materialize worktrees."""

    async def bare_clone(self, url: str, dest: Path) -> None:
        """Create a bare clone of ``url`` at ``dest``."""
        ...

    async def fetch(self, bare_path: Path) -> None:
        """Fetch all remotes and prune deleted refs."""
        ...

    async def branch_exists(self, bare_path: Path, branch: str) -> bool:
        """True if ``branch`` exists locally or under ``origin/``."""
        ...

    async def default_branch(self, bare_path: Path) -> str:
        """Branch that ``HEAD`` points to in the bare clone."""
        ...

    async def add_worktree(self, bare_path: Path, worktree_path: Path, branch: str) -> None:
        """Attach a worktree on an existing branch."""
        ...

    async def add_worktree_new_branch(
        self,
        bare_path: Path,
        worktree_path: Path,
        new_branch: str,
        start_point: str,
    ) -> None:
        """Attach a worktree creating ``new_branch`` from ``start_point``."""
        ...

    async def remove_worktree(self, bare_path: Path, worktree_path: Path) -> None:
        """Detach and delete a worktree, discarding uncommitted changes."""
        ...
