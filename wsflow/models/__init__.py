"""Data models for wsflow."""

from wsflow.models.enums import BareAction, RenderStage, ValidationErrorKind, WorktreeOutcome
from wsflow.models.state import (
    API_VERSION,
    CONFIG_KIND,
    STATE_KIND,
    FlowConfig,
    RepoBinding,
    StateMetadata,
    StateSpec,
    WorkspaceState,
    is_contained_path,
    new_state,
    repo_path,
)
from wsflow.models.workspace import RepoRenderResult, WorkspaceInfo

__all__ = [
    "API_VERSION",
    "CONFIG_KIND",
    "STATE_KIND",
    "BareAction",
    "FlowConfig",
    "RenderStage",
    "RepoBinding",
    "RepoRenderResult",
    "StateMetadata",
    "StateSpec",
    "ValidationErrorKind",
    "WorkspaceInfo",
    "WorkspaceState",
    "WorktreeOutcome",
    "is_contained_path",
    "new_state",
    "repo_path",
]
