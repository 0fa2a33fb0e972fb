"""Workspace orchestration: create, list, find, resolve, render, delete.

A workspace is a directory holding a ``state.yaml`` and, once rendered, one
git worktree per repo binding.  Worktrees are attached to shared bare clones
under ``{home}/repos`` which are created lazily and never deleted here.

``render_workspace`` is a reconciliation loop.  It walks the repo bindings in
declared order and, for each one, brings the disk closer to the state file:

1. Bare clone missing: clone it.  Present: fetch with prune.
2. Worktree path missing: attach a worktree on the declared branch, creating
   the branch from the default branch when it does not exist yet.
   Present: leave it alone.

Presence on disk is the only idempotency signal.  An existing worktree path
is never re-checked against the declared branch.  The first failing repo
aborts the render and nothing is rolled back; calling render again resumes
where it stopped.

The service raises domain exceptions (``LookupError``, ``ValueError``,
``RuntimeError`` subclasses) and never prints; translating them into
messages and exit codes is the CLI's job.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import to_thread
from loguru import logger

from wsflow.git.base import GitCommandError
from wsflow.models.enums import BareAction, RenderStage, WorktreeOutcome
from wsflow.models.state import RepoBinding, WorkspaceState, is_contained_path, repo_path
from wsflow.models.workspace import RepoRenderResult, WorkspaceInfo
from wsflow.store.local import WorkspaceStore, path_exists
from wsflow.store.state_file import StateParseError, StateValidationError, validate_state

if TYPE_CHECKING:
    from wsflow.git.base import GitRunner
    from wsflow.settings import FlowPaths

ProgressFn = Callable[[str], None]

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class WorkspaceNotFoundError(LookupError):
    """No state file exists for the given ID (or no workspace has the given name)."""

    def __init__(self, workspace_id: str) -> None:
        self.workspace_id = workspace_id
        super().__init__(f"Workspace '{workspace_id}' not found")


class WorkspaceExistsError(ValueError):
    """Raised when a workspace with the given ID already exists."""

    def __init__(self, workspace_id: str) -> None:
        self.workspace_id = workspace_id
        super().__init__(f"Workspace '{workspace_id}' already exists")


class AmbiguousNameError(LookupError):
    """A name matched more than one workspace.  ``matches`` lists all of them."""

    def __init__(self, name: str, matches: list[WorkspaceInfo]) -> None:
        self.name = name
        self.matches = matches
        super().__init__(f"Name '{name}' matches {len(matches)} workspaces")


class InvalidWorkspaceError(ValueError):
    """The workspace's state file is not complete enough to render."""

    def __init__(self, workspace_id: str, error: StateValidationError) -> None:
        self.workspace_id = workspace_id
        self.error = error
        super().__init__(f"Workspace '{workspace_id}' has an invalid state: {error}")


_STAGE_VERBS = {
    RenderStage.CLONE: "cloning",
    RenderStage.FETCH: "fetching",
    RenderStage.BRANCH_LOOKUP: "checking branch for",
    RenderStage.DEFAULT_BRANCH: "getting default branch for",
    RenderStage.ADD_WORKTREE: "creating worktree for",
}


class RepoOperationError(RuntimeError):
    """A git operation failed while rendering one repo binding."""

    def __init__(self, url: str, stage: RenderStage, error: GitCommandError) -> None:
        self.url = url
        self.stage = stage
        self.error = error
        super().__init__(f"{_STAGE_VERBS[stage]} {url}: {error}")


@contextmanager
def _git_stage(url: str, stage: RenderStage) -> Iterator[None]:
    try:
        yield
    except GitCommandError as exc:
        raise RepoOperationError(url, stage, exc) from exc


def _is_valid_id(workspace_id: str) -> bool:
    return workspace_id not in ("", ".", "..") and "/" not in workspace_id and "\\" not in workspace_id


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class WorkspaceService:
    """Workspace lifecycle on top of a workspace store and a ``GitRunner``.

    Holds no state between calls beyond its collaborators; every method
    re-reads the state files from disk.
    """

    def __init__(self, paths: FlowPaths, git: GitRunner) -> None:
        self._paths = paths
        self._git = git
        self._store = WorkspaceStore(paths)

    @property
    def paths(self) -> FlowPaths:
        return self._paths

    def workspace_path(self, workspace_id: str) -> Path:
        return self._paths.workspace_path(workspace_id)

    # -- Create ----------------------------------------------------------------

    async def create_workspace(self, workspace_id: str, state: WorkspaceState) -> None:
        """Create the workspace directory and write its state file.

        Raises ``WorkspaceExistsError`` if the directory is already there.
        """
        if not _is_valid_id(workspace_id):
            msg = f"Invalid workspace ID: {workspace_id!r}"
            raise ValueError(msg)

        logger.debug("Creating workspace {} at {}", workspace_id, self.workspace_path(workspace_id))
        if await self._store.exists(workspace_id):
            raise WorkspaceExistsError(workspace_id)

        await self._store.create_dir(workspace_id)
        await self._store.write_state(workspace_id, state)

    # -- Read ------------------------------------------------------------------

    async def list_workspaces(self) -> list[WorkspaceInfo]:
        """Summaries of every loadable workspace, in directory enumeration order.

        Entries whose state file is missing or unparseable are skipped so one
        broken workspace never hides the others.
        """
        infos: list[WorkspaceInfo] = []
        for workspace_id in await self._store.list_dirs():
            try:
                state = await self._store.read_state(workspace_id)
            except (OSError, StateParseError) as exc:
                logger.debug("Skipping {}: {}", workspace_id, exc)
                continue
            infos.append(WorkspaceInfo.from_state(workspace_id, state))

        logger.debug("Found {} workspaces in {}", len(infos), self._paths.workspaces_dir)
        return infos

    async def find_workspace(self, workspace_id: str) -> WorkspaceState:
        """Load a workspace state by ID.  Raises ``WorkspaceNotFoundError`` if missing."""
        if not _is_valid_id(workspace_id):
            raise WorkspaceNotFoundError(workspace_id)
        try:
            return await self._store.read_state(workspace_id)
        except FileNotFoundError:
            raise WorkspaceNotFoundError(workspace_id) from None

    async def resolve_workspace(self, id_or_name: str) -> WorkspaceInfo:
        """Resolve an ID or a ``metadata.name`` to exactly one workspace.

        An ID match wins without scanning the store.  Otherwise every
        workspace whose name equals ``id_or_name`` exactly is collected:
        none raises ``WorkspaceNotFoundError``, several raise
        ``AmbiguousNameError`` carrying all candidates.
        """
        try:
            state = await self.find_workspace(id_or_name)
        except WorkspaceNotFoundError:
            pass
        else:
            return WorkspaceInfo.from_state(id_or_name, state)

        # An empty name means "unnamed" and never selects anything.
        matches = [info for info in await self.list_workspaces() if id_or_name and info.name == id_or_name]
        if not matches:
            raise WorkspaceNotFoundError(id_or_name)
        if len(matches) > 1:
            raise AmbiguousNameError(id_or_name, matches)
        return matches[0]

    # -- Render ----------------------------------------------------------------

    async def render_workspace(
        self,
        workspace_id: str,
        progress: ProgressFn | None = None,
    ) -> list[RepoRenderResult]:
        """Materialize every repo binding of a workspace as a worktree.

        ``progress`` receives two messages per repo: a ``[i/n] url`` header
        before any work and an outcome line once the repo is done.

        Raises:
            WorkspaceNotFoundError: No state file for ``workspace_id``.
            InvalidWorkspaceError: State fails validation (e.g. no repos yet).
            RepoOperationError: A git call failed; later repos are not attempted.
        """
        state = await self.find_workspace(workspace_id)
        try:
            validate_state(state)
        except StateValidationError as exc:
            raise InvalidWorkspaceError(workspace_id, exc) from exc

        emit = progress or (lambda _msg: None)
        workspace_dir = self.workspace_path(workspace_id)
        repos = state.spec.repos
        total = len(repos)

        results: list[RepoRenderResult] = []
        for index, repo in enumerate(repos, start=1):
            emit(f"[{index}/{total}] {repo.url}")
            result = await self._render_repo(workspace_dir, repo)
            results.append(result)
            emit(result.describe())

        logger.debug("Rendered workspace {} ({} repos)", workspace_id, total)
        return results

    async def _render_repo(self, workspace_dir: Path, repo: RepoBinding) -> RepoRenderResult:
        path = repo_path(repo)
        bare_path = self._paths.bare_repo_path(repo.url)
        worktree_path = workspace_dir / path

        bare_action = await self._ensure_bare_clone(repo.url, bare_path)

        def result(outcome: WorktreeOutcome, base_branch: str | None = None) -> RepoRenderResult:
            return RepoRenderResult(
                url=repo.url,
                branch=repo.branch,
                path=path,
                worktree_path=worktree_path,
                bare_action=bare_action,
                outcome=outcome,
                base_branch=base_branch,
            )

        if await path_exists(worktree_path):
            logger.debug("Worktree {} already exists, skipping", worktree_path)
            return result(WorktreeOutcome.ALREADY_PRESENT)

        with _git_stage(repo.url, RenderStage.BRANCH_LOOKUP):
            branch_exists = await self._git.branch_exists(bare_path, repo.branch)

        if branch_exists:
            logger.debug("Creating worktree {} from existing branch {}", worktree_path, repo.branch)
            with _git_stage(repo.url, RenderStage.ADD_WORKTREE):
                await self._git.add_worktree(bare_path, worktree_path, repo.branch)
            return result(WorktreeOutcome.CREATED_EXISTING_BRANCH)

        with _git_stage(repo.url, RenderStage.DEFAULT_BRANCH):
            default_branch = await self._git.default_branch(bare_path)

        logger.debug("Creating worktree {} with new branch {} from {}", worktree_path, repo.branch, default_branch)
        with _git_stage(repo.url, RenderStage.ADD_WORKTREE):
            await self._git.add_worktree_new_branch(bare_path, worktree_path, repo.branch, default_branch)
        return result(WorktreeOutcome.CREATED_NEW_BRANCH, default_branch)

    async def _ensure_bare_clone(self, url: str, bare_path: Path) -> BareAction:
        if await path_exists(bare_path):
            logger.debug("Bare clone {} exists, fetching", bare_path)
            with _git_stage(url, RenderStage.FETCH):
                await self._git.fetch(bare_path)
            return BareAction.FETCHED

        logger.debug("Bare clone of {} not found, cloning into {}", url, bare_path)
        await to_thread.run_sync(lambda: bare_path.parent.mkdir(parents=True, exist_ok=True))
        with _git_stage(url, RenderStage.CLONE):
            await self._git.bare_clone(url, bare_path)
        return BareAction.CLONED

    # -- Delete ----------------------------------------------------------------

    async def delete_workspace(self, workspace_id: str) -> list[GitCommandError]:
        """Remove a workspace's worktrees and then its directory.

        Worktree removal is best-effort: failures are logged and returned,
        never raised, so a stale worktree registration cannot block the
        delete.  Bare clones are left in place.

        Raises ``WorkspaceNotFoundError`` if the workspace has no state file.
        """
        state = await self.find_workspace(workspace_id)
        workspace_dir = self.workspace_path(workspace_id)
        logger.debug("Deleting workspace {} at {}", workspace_id, workspace_dir)

        present: list[tuple[Path, Path]] = []
        for repo in state.spec.repos:
            path = repo_path(repo)
            if not repo.url or not path:
                continue
            if not is_contained_path(path):
                logger.debug("Not removing {}: path is outside workspace {}", path, workspace_id)
                continue
            worktree_path = workspace_dir / path
            if await path_exists(worktree_path):
                present.append((self._paths.bare_repo_path(repo.url), worktree_path))

        failures = await self._remove_worktrees_best_effort(present)

        await self._store.delete(workspace_id)
        return failures

    async def _remove_worktrees_best_effort(self, worktrees: list[tuple[Path, Path]]) -> list[GitCommandError]:
        """Try every removal; collect failures instead of raising them."""
        failures: list[GitCommandError] = []
        for bare_path, worktree_path in worktrees:
            logger.debug("Removing worktree {}", worktree_path)
            try:
                await self._git.remove_worktree(bare_path, worktree_path)
            except GitCommandError as exc:
                logger.warning("Ignoring worktree removal failure for {}: {}", worktree_path, exc)
                failures.append(exc)
        return failures
