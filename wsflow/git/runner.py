"""``GitRunner`` backed by the ``git`` binary.

Uses ``anyio.run_process`` so the event loop is never blocked and a
cancelled task kills the child process instead of leaving it running.
"""

from __future__ import annotations

import os
from pathlib import Path

import anyio
from loguru import logger

from wsflow.git.base import GitCommandError


def normalize_clone_url(url: str) -> str:
    """Prefix bare ``host/org/repo`` URLs with ``https://``.

    Full URLs (``scheme://``), scp-style ``user@host:`` URLs, absolute paths
    and relative paths starting with ``.`` pass through unchanged.
    """
    if "://" in url or url.startswith("git@") or _is_scp_like(url):
        return url
    if os.path.isabs(url) or url.startswith("."):
        return url
    return "https://" + url


def _is_scp_like(url: str) -> bool:
    head = url.split("/", 1)[0]
    return "@" in head and ":" in head


class SubprocessGitRunner:
    """Shells out to ``git`` for every operation.

    Args:
        git: Executable name or path.
        timeout: Per-invocation limit in seconds; ``None`` disables it.
    """

    def __init__(self, git: str = "git", timeout: float | None = None) -> None:
        self._git = git
        self._timeout = timeout

    # -- Clone / fetch ---------------------------------------------------------

    async def bare_clone(self, url: str, dest: Path) -> None:
        clone_url = normalize_clone_url(url)
        logger.debug("Bare cloning {} into {}", clone_url, dest)
        await self._run("clone", url, "clone", "--bare", clone_url, str(dest))

    async def fetch(self, bare_path: Path) -> None:
        logger.debug("Fetching {}", bare_path)
        await self._run("fetch", bare_path, "-C", str(bare_path), "fetch", "--all", "--prune")

    # -- Branches --------------------------------------------------------------

    async def branch_exists(self, bare_path: Path, branch: str) -> bool:
        out = await self._output(
            "branch",
            bare_path,
            "-C",
            str(bare_path),
            "branch",
            "-a",
            "--list",
            branch,
            f"origin/{branch}",
        )
        return out != ""

    async def default_branch(self, bare_path: Path) -> str:
        # In a bare clone HEAD is a symbolic ref to the remote's default branch.
        return await self._output("symbolic-ref", bare_path, "-C", str(bare_path), "symbolic-ref", "--short", "HEAD")

    # -- Worktrees -------------------------------------------------------------

    async def add_worktree(self, bare_path: Path, worktree_path: Path, branch: str) -> None:
        logger.debug("Adding worktree {} on {} from {}", worktree_path, branch, bare_path)
        await self._run(
            "worktree add",
            worktree_path,
            "-C",
            str(bare_path),
            "worktree",
            "add",
            str(worktree_path),
            branch,
        )

    async def add_worktree_new_branch(
        self,
        bare_path: Path,
        worktree_path: Path,
        new_branch: str,
        start_point: str,
    ) -> None:
        logger.debug(
            "Adding worktree {} on new branch {} from {} ({})",
            worktree_path,
            new_branch,
            start_point,
            bare_path,
        )
        await self._run(
            "worktree add",
            worktree_path,
            "-C",
            str(bare_path),
            "worktree",
            "add",
            "-b",
            new_branch,
            str(worktree_path),
            start_point,
        )

    async def remove_worktree(self, bare_path: Path, worktree_path: Path) -> None:
        logger.debug("Removing worktree {} from {}", worktree_path, bare_path)
        await self._run(
            "worktree remove",
            worktree_path,
            "-C",
            str(bare_path),
            "worktree",
            "remove",
            "--force",
            str(worktree_path),
        )

    # -- Internals -------------------------------------------------------------

    async def _run(self, operation: str, target: str | Path, *args: str) -> None:
        await self._exec(operation, target, args)

    async def _output(self, operation: str, target: str | Path, *args: str) -> str:
        stdout = await self._exec(operation, target, args)
        return stdout.strip()

    async def _exec(self, operation: str, target: str | Path, args: tuple[str, ...]) -> str:
        command = [self._git, *args]
        logger.debug("Executing {}", command)
        try:
            with anyio.fail_after(self._timeout):
                result = await anyio.run_process(command, check=False)
        except TimeoutError as exc:
            raise GitCommandError(operation, target, f"timed out after {self._timeout}s") from exc
        except OSError as exc:
            raise GitCommandError(operation, target, f"failed to execute {self._git}: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            raise GitCommandError(operation, target, stderr, result.returncode)
        return result.stdout.decode(errors="replace")
