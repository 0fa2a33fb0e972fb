"""wsflow - multi-repo workspaces built from shared bare clones and git worktrees."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("wsflow")
except PackageNotFoundError:
    __version__ = "dev"
