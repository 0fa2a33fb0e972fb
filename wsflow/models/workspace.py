"""Derived workspace summaries and render results.

Nothing here is persisted: ``WorkspaceInfo`` is rebuilt from the state file
on every ``list`` / ``resolve``, and ``RepoRenderResult`` describes what one
``render`` call did to a single repo binding.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

from wsflow.models.enums import BareAction, WorktreeOutcome
from wsflow.models.state import WorkspaceState


class WorkspaceInfo(BaseModel):
    """Summary row for listing and name resolution."""

    id: str
    """Directory name.  Unique and immutable."""

    name: str = ""
    """``metadata.name``.  May be empty or shared by several workspaces."""

    description: str = ""
    repo_count: int = 0
    created: datetime | None = None

    @classmethod
    def from_state(cls, workspace_id: str, state: WorkspaceState) -> WorkspaceInfo:
        return cls(
            id=workspace_id,
            name=state.metadata.name,
            description=state.metadata.description,
            repo_count=len(state.spec.repos),
            created=state.metadata.created,
        )

    @property
    def display_name(self) -> str:
        return self.name or self.id


class RepoRenderResult(BaseModel):
    url: str
    branch: str
    path: str
    worktree_path: Path
    bare_action: BareAction
    outcome: WorktreeOutcome
    base_branch: str | None = None
    """Start point of a newly created branch (the bare clone's default branch)."""

    def describe(self) -> str:
        """One-line progress message for this repo."""
        if self.outcome is WorktreeOutcome.CREATED_NEW_BRANCH:
            return f"      └── {self.path} ({self.branch}, new branch from {self.base_branch}) ✓"
        if self.outcome is WorktreeOutcome.ALREADY_PRESENT:
            return f"      └── {self.path} ({self.branch}) exists"
        return f"      └── {self.path} ({self.branch}) ✓"
