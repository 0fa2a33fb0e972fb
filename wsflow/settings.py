"""Configuration loaded from FLOW_* environment variables, plus path layout.

Directory structure under ``home``::

    {home}/config.yaml
    {home}/workspaces/{workspace_id}/state.yaml
    {home}/workspaces/{workspace_id}/{repo_path}/      <- worktrees
    {home}/repos/{host}/{org}/{repo}.git/              <- shared bare clones
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path, PurePosixPath

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wsflow.models.state import FlowConfig
from wsflow.store.state_file import load_config, save_config

STATE_FILE_NAME = "state.yaml"
CONFIG_FILE_NAME = "config.yaml"


def _default_home() -> Path:
    return Path.home() / ".flow"


class FlowSettings(BaseSettings):
    """wsflow settings.

    All fields are read from environment variables with the ``FLOW_`` prefix.
    For example, ``FLOW_HOME=/srv/flow`` maps to ``home``.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "WARNING"

    # -- Data storage ----------------------------------------------------------
    home: Path = Field(default_factory=_default_home)
    """Root of the workspace store and the shared bare clones."""

    # -- Git -------------------------------------------------------------------
    git_timeout: float | None = None
    """Seconds before a single git invocation is killed.  ``None`` waits forever."""

    def paths(self) -> FlowPaths:
        return FlowPaths(self.home)


@lru_cache(maxsize=1)
def get_settings() -> FlowSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests to force a re-read after
    overriding env vars.
    """
    return FlowSettings()


class FlowPaths:
    """Resolved locations of everything wsflow keeps on disk.

    Constructed explicitly from a home directory so several stores can live
    side by side in one process.
    """

    def __init__(self, home: str | Path) -> None:
        self.home = Path(home).expanduser()
        self.workspaces_dir = self.home / "workspaces"
        self.repos_dir = self.home / "repos"
        self.config_file = self.home / CONFIG_FILE_NAME

    def workspace_path(self, workspace_id: str) -> Path:
        return self.workspaces_dir / workspace_id

    def state_path(self, workspace_id: str) -> Path:
        return self.workspace_path(workspace_id) / STATE_FILE_NAME

    def bare_repo_path(self, repo_url: str) -> Path:
        """Bare clone location for ``repo_url``.

        ``github.com/org/repo``, ``https://github.com/org/repo.git`` and
        ``git@github.com:org/repo.git`` all map to
        ``{repos_dir}/github.com/org/repo.git``.
        """
        segments = _url_segments(repo_url)
        segments[-1] = segments[-1].removesuffix(".git") + ".git"
        return self.repos_dir.joinpath(*segments)

    def ensure_dirs(self) -> FlowConfig:
        """Create the top-level directories and default config if missing, then load the config."""
        for directory in (self.workspaces_dir, self.repos_dir):
            directory.mkdir(parents=True, exist_ok=True)

        if not self.config_file.exists():
            save_config(self.config_file, FlowConfig())
            logger.debug("Wrote default config to {}", self.config_file)

        return load_config(self.config_file)


def _url_segments(repo_url: str) -> list[str]:
    """Split a repo URL into filesystem-safe path segments."""
    rest = repo_url.strip()
    if "://" in rest:
        rest = rest.split("://", 1)[1]
        head, _, tail = rest.partition("/")
        rest = f"{head.rsplit('@', 1)[-1]}/{tail}"
    elif ":" in rest.split("/", 1)[0]:
        # scp-like: user@host:org/repo
        host, _, tail = rest.partition(":")
        rest = f"{host.rsplit('@', 1)[-1]}/{tail}"

    segments = [part for part in PurePosixPath(rest).parts if part not in ("/", ".", "..", "")]
    return segments or ["repo"]
