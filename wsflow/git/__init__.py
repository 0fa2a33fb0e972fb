"""Git capability: protocol and subprocess implementation."""

from wsflow.git.base import GitCommandError, GitRunner
from wsflow.git.runner import SubprocessGitRunner, normalize_clone_url

__all__ = ["GitCommandError", "GitRunner", "SubprocessGitRunner", "normalize_clone_url"]
