"""Workspace managers.

Managers encapsulate business logic on top of the store and the git
capability.  They raise domain exceptions (``LookupError``, ``ValueError``,
``RuntimeError``) and never print -- translating errors for users is the
CLI's responsibility.
"""

from wsflow.managers.workspaces import (
    AmbiguousNameError,
    InvalidWorkspaceError,
    RepoOperationError,
    WorkspaceExistsError,
    WorkspaceNotFoundError,
    WorkspaceService,
)

__all__ = [
    "AmbiguousNameError",
    "InvalidWorkspaceError",
    "RepoOperationError",
    "WorkspaceExistsError",
    "WorkspaceNotFoundError",
    "WorkspaceService",
]
