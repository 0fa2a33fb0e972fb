"""Shared enumerations used across wsflow."""

from __future__ import annotations

from enum import StrEnum

# -- Validation --------------------------------------------------------------


class ValidationErrorKind(StrEnum):
    """Which structural check a state document failed."""

    INVALID_API_VERSION = "invalid_api_version"
    INVALID_KIND = "invalid_kind"
    MISSING_REPOS = "missing_repos"
    MISSING_REPO_URL = "missing_repo_url"
    MISSING_REPO_BRANCH = "missing_repo_branch"
    MISSING_REPO_PATH = "missing_repo_path"
    INVALID_REPO_PATH = "invalid_repo_path"


# -- Render ------------------------------------------------------------------


class BareAction(StrEnum):
    CLONED = "cloned"
    FETCHED = "fetched"


class WorktreeOutcome(StrEnum):
    """What the worktree stage did for one repo binding."""

    CREATED_EXISTING_BRANCH = "created_existing_branch"
    CREATED_NEW_BRANCH = "created_new_branch"
    ALREADY_PRESENT = "already_present"


class RenderStage(StrEnum):
    CLONE = "clone"
    FETCH = "fetch"
    BRANCH_LOOKUP = "branch_lookup"
    DEFAULT_BRANCH = "default_branch"
    ADD_WORKTREE = "add_worktree"
