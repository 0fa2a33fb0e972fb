"""State and config file I/O: YAML load/save plus structural validation.

Three outcomes are kept distinct for callers:

- file missing: ``FileNotFoundError`` (from the filesystem, untouched)
- file empty: a zero-valued ``WorkspaceState()``
- file present but malformed: ``StateParseError``

Whether a loaded state is complete enough to render is a separate question
answered by ``validate_state``.

Writes are atomic (temp file in the same directory, then rename) so a crash
mid-write never leaves a truncated state file behind.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from wsflow.models.enums import ValidationErrorKind
from wsflow.models.state import API_VERSION, STATE_KIND, FlowConfig, WorkspaceState, is_contained_path, repo_path

ModelT = TypeVar("ModelT", bound=BaseModel)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class StateParseError(ValueError):
    """File exists but is not valid YAML or does not fit the document model."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"parsing {self.path}: {reason}")


_VALIDATION_MESSAGES = {
    ValidationErrorKind.INVALID_API_VERSION: f"apiVersion must be {API_VERSION}",
    ValidationErrorKind.INVALID_KIND: f"kind must be {STATE_KIND}",
    ValidationErrorKind.MISSING_REPOS: "spec.repos must not be empty",
    ValidationErrorKind.MISSING_REPO_URL: "url is required",
    ValidationErrorKind.MISSING_REPO_BRANCH: "branch is required",
    ValidationErrorKind.MISSING_REPO_PATH: "path is required",
    ValidationErrorKind.INVALID_REPO_PATH: "path must be relative and stay inside the workspace",
}


class StateValidationError(ValueError):
    """State document failed a structural check.

    ``index`` is set for per-repo violations and points into ``spec.repos``.
    """

    def __init__(self, kind: ValidationErrorKind, index: int | None = None) -> None:
        self.kind = kind
        self.index = index
        message = _VALIDATION_MESSAGES[kind]
        if index is not None:
            message = f"spec.repos[{index}]: {message}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# State documents
# ---------------------------------------------------------------------------


def load_state(path: str | Path) -> WorkspaceState:
    """Read a state file.  Raises ``FileNotFoundError`` if missing."""
    return _load_document(Path(path), WorkspaceState)


def save_state(path: str | Path, state: WorkspaceState) -> None:
    """Write a state file atomically."""
    _atomic_write(Path(path), _dump_document(state))


def validate_state(state: WorkspaceState, *, require_repos: bool = True) -> None:
    """Check ``state`` and raise ``StateValidationError`` for the first violation.

    Order: apiVersion, kind, then (when ``require_repos``) a non-empty repo
    list and per binding ``url``, ``branch`` and a resolvable path that stays
    inside the workspace (relative, no ``..``).  A state straight out of
    ``create`` may have no repos yet; pass ``require_repos=False`` to accept it.
    """
    if state.api_version != API_VERSION:
        raise StateValidationError(ValidationErrorKind.INVALID_API_VERSION)
    if state.kind != STATE_KIND:
        raise StateValidationError(ValidationErrorKind.INVALID_KIND)
    if not require_repos:
        return

    if not state.spec.repos:
        raise StateValidationError(ValidationErrorKind.MISSING_REPOS)

    for index, repo in enumerate(state.spec.repos):
        if not repo.url:
            raise StateValidationError(ValidationErrorKind.MISSING_REPO_URL, index)
        if not repo.branch:
            raise StateValidationError(ValidationErrorKind.MISSING_REPO_BRANCH, index)
        path = repo_path(repo)
        if not path:
            raise StateValidationError(ValidationErrorKind.MISSING_REPO_PATH, index)
        if not is_contained_path(path):
            raise StateValidationError(ValidationErrorKind.INVALID_REPO_PATH, index)


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> FlowConfig:
    """Read ``config.yaml``.  Raises ``FileNotFoundError`` if missing."""
    return _load_document(Path(path), FlowConfig)


def save_config(path: str | Path, config: FlowConfig) -> None:
    _atomic_write(Path(path), _dump_document(config))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_document(path: Path, model: type[ModelT]) -> ModelT:
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise StateParseError(path, f"not UTF-8 text: {exc}") from exc

    try:
        data = yaml.safe_load(raw)
    except (yaml.YAMLError, ValueError) as exc:
        # ValueError: resolved scalars such as out-of-range timestamps
        raise StateParseError(path, str(exc)) from exc

    if data is None:
        return model()
    if not isinstance(data, dict):
        raise StateParseError(path, f"expected a mapping, got {type(data).__name__}")

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise StateParseError(path, str(exc)) from exc


def _dump_document(document: BaseModel) -> str:
    data = document.model_dump(mode="json", by_alias=True, exclude_none=True)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
