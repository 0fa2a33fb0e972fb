"""Workspace state document.

A state document is the declarative manifest of one workspace: a little
identity metadata plus the ordered list of repositories (URL, branch and
on-disk path) that ``render`` materializes as git worktrees.  It lives at
``{home}/workspaces/{workspace_id}/state.yaml``::

    apiVersion: flow/v1
    kind: State
    metadata:
      name: proj
      description: IPv6 rollout
      created: '2026-10-19T04:00:00Z'
    spec:
      repos:
        - url: github.com/org/a
          branch: main
        - url: github.com/org/b
          branch: feature/x
          path: b

The document is edited by hand between ``create`` and ``render``, so every
field is optional at the model level.  Completeness is checked separately by
``wsflow.store.state_file.validate_state``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidatorFunctionWrapHandler, field_validator

API_VERSION = "flow/v1"
STATE_KIND = "State"
CONFIG_KIND = "Config"


class RepoBinding(BaseModel):
    """One repository checked out in a workspace."""

    url: str = ""
    branch: str = ""
    path: str | None = None
    """Worktree location relative to the workspace root.  Derived from ``url`` when unset."""


class StateMetadata(BaseModel):
    name: str = ""
    description: str = ""
    created: datetime | None = None

    @field_validator("created", mode="wrap")
    @classmethod
    def _lenient_created(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> datetime | None:
        # Hand edits may leave anything here; an unreadable timestamp is just unknown.
        if value == "":
            return None
        try:
            return handler(value)
        except ValidationError:
            return None


class StateSpec(BaseModel):
    repos: list[RepoBinding] = Field(default_factory=list)


class WorkspaceState(BaseModel):
    """Top-level state document.  ``WorkspaceState()`` is the zero value."""

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(default="", alias="apiVersion")
    kind: str = ""
    metadata: StateMetadata = Field(default_factory=StateMetadata)
    spec: StateSpec = Field(default_factory=StateSpec)


class FlowConfig(BaseModel):
    """Global ``{home}/config.yaml`` document."""

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(default=API_VERSION, alias="apiVersion")
    kind: str = CONFIG_KIND


def new_state(
    name: str = "",
    description: str = "",
    repos: list[RepoBinding] | None = None,
) -> WorkspaceState:
    """Build a state with the format tags filled in and ``created`` set to now (UTC)."""
    return WorkspaceState(
        api_version=API_VERSION,
        kind=STATE_KIND,
        metadata=StateMetadata(
            name=name,
            description=description,
            created=datetime.now(UTC).replace(microsecond=0),
        ),
        spec=StateSpec(repos=list(repos or [])),
    )


def repo_path(repo: RepoBinding) -> str:
    """Worktree path of ``repo`` relative to the workspace root.

    ``path`` wins when set.  Otherwise the last segment of the URL is used,
    so ``git@github.com:org/repo.git`` and ``github.com/org/repo`` both give
    ``repo``.  Returns an empty string when nothing can be derived.
    """
    if repo.path:
        return repo.path
    tail = repo.url.rstrip("/")
    for sep in ("/", ":"):
        tail = tail.rsplit(sep, 1)[-1]
    return tail.removesuffix(".git")


def is_contained_path(path: str) -> bool:
    """True if ``path`` is relative and cannot climb out of the workspace root."""
    pure = PurePosixPath(path)
    return bool(pure.parts) and not pure.is_absolute() and ".." not in pure.parts
