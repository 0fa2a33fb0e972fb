"""Local filesystem workspace store.

Layout::

    {workspaces_dir}/{workspace_id}/state.yaml

Nothing is cached: every call goes back to disk so edits made outside the
process are seen on the next read.  Blocking filesystem calls run through
``anyio.to_thread.run_sync``.
"""

from __future__ import annotations

import shutil
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import to_thread

from wsflow.models.state import WorkspaceState
from wsflow.store.state_file import load_state, save_state

if TYPE_CHECKING:
    from wsflow.settings import FlowPaths


class WorkspaceStore:
    """Reads and writes workspace directories under ``paths.workspaces_dir``."""

    def __init__(self, paths: FlowPaths) -> None:
        self._paths = paths

    # -- Write -----------------------------------------------------------------

    async def create_dir(self, workspace_id: str) -> None:
        await to_thread.run_sync(partial(_mkdir, self._paths.workspace_path(workspace_id)))

    async def write_state(self, workspace_id: str, state: WorkspaceState) -> None:
        await to_thread.run_sync(partial(save_state, self._paths.state_path(workspace_id), state))

    # -- Read ------------------------------------------------------------------

    async def read_state(self, workspace_id: str) -> WorkspaceState:
        """Read the state file.  Raises ``FileNotFoundError`` if not found."""
        return await to_thread.run_sync(partial(load_state, self._paths.state_path(workspace_id)))

    async def list_dirs(self) -> list[str]:
        """Names of directory entries in enumeration order.  Empty if the store root is missing."""
        return await to_thread.run_sync(partial(_list_dirs, self._paths.workspaces_dir))

    # -- Utilities -------------------------------------------------------------

    async def exists(self, workspace_id: str) -> bool:
        return await path_exists(self._paths.workspace_path(workspace_id))

    async def delete(self, workspace_id: str) -> None:
        await to_thread.run_sync(partial(_rmtree, self._paths.workspace_path(workspace_id)))


async def path_exists(path: Path) -> bool:
    return await to_thread.run_sync(path.exists)


# -- Sync helpers (run in thread pool) -----------------------------------------


def _mkdir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _list_dirs(root: Path) -> list[str]:
    try:
        entries = list(root.iterdir())
    except FileNotFoundError:
        return []
    return [entry.name for entry in entries if entry.is_dir()]


def _rmtree(path: Path) -> None:
    """Remove directory tree.  No-op if path doesn't exist."""
    if path.exists():
        shutil.rmtree(path)
