"""Persistence for workspace state documents."""

from wsflow.store.local import WorkspaceStore
from wsflow.store.state_file import (
    StateParseError,
    StateValidationError,
    load_config,
    load_state,
    save_config,
    save_state,
    validate_state,
)

__all__ = [
    "StateParseError",
    "StateValidationError",
    "WorkspaceStore",
    "load_config",
    "load_state",
    "save_config",
    "save_state",
    "validate_state",
]
