from __future__ import annotations

import subprocess
import sys
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

import anyio
import click

from wsflow import __version__
from wsflow.git.base import GitCommandError
from wsflow.managers.workspaces import (
    AmbiguousNameError,
    InvalidWorkspaceError,
    RepoOperationError,
    WorkspaceExistsError,
    WorkspaceNotFoundError,
    WorkspaceService,
)
from wsflow.models.state import RepoBinding, new_state, repo_path
from wsflow.models.workspace import WorkspaceInfo
from wsflow.names import generate_unique_id
from wsflow.store.state_file import StateParseError

T = TypeVar("T")

EXIT_NOT_FOUND = 2
EXIT_AMBIGUOUS = 3
EXIT_EXISTS = 4
EXIT_INVALID = 5
EXIT_GIT = 6

_EXIT_CODES: tuple[tuple[type[Exception], int], ...] = (
    (AmbiguousNameError, EXIT_AMBIGUOUS),
    (WorkspaceNotFoundError, EXIT_NOT_FOUND),
    (WorkspaceExistsError, EXIT_EXISTS),
    (InvalidWorkspaceError, EXIT_INVALID),
    (StateParseError, EXIT_INVALID),
    (RepoOperationError, EXIT_GIT),
    (GitCommandError, EXIT_GIT),
)


def _call(func: Callable[..., Awaitable[T]], *args: object) -> T:
    """Run a service coroutine, turning domain errors into messages and exit codes."""
    try:
        return anyio.run(func, *args)
    except Exception as exc:
        for exc_type, code in _EXIT_CODES:
            if isinstance(exc, exc_type):
                click.secho(f"Error: {exc}", fg="red", err=True)
                if isinstance(exc, AmbiguousNameError):
                    click.echo("Use one of these IDs instead:", err=True)
                    for match in exc.matches:
                        click.echo(f"  {match.id}  ({_relative_time(match.created)})", err=True)
                raise click.exceptions.Exit(code) from exc
        raise


def _service(ctx: click.Context) -> WorkspaceService:
    return ctx.ensure_object(dict)["service"]


def _relative_time(created: datetime | None) -> str:
    if created is None:
        return "unknown"
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    seconds = (datetime.now(UTC) - created).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return f"{int(seconds // 86400)}d ago"


def _truncate(text: str, max_len: int = 40) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging on stderr.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """wsflow - multi-repo workspaces using git worktrees.

    A YAML state file lists which repos and branches belong together;
    `wsflow render` materializes them as worktrees.
    """
    from wsflow.git.runner import SubprocessGitRunner
    from wsflow.log import setup_logging
    from wsflow.settings import get_settings

    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level)

    paths = settings.paths()
    paths.ensure_dirs()

    ctx.ensure_object(dict)["service"] = WorkspaceService(paths, SubprocessGitRunner(timeout=settings.git_timeout))


@main.command()
def version() -> None:
    """Print the version."""
    click.echo(f"wsflow {__version__}")


@main.command()
@click.argument("name", default="")
@click.option("--id", "workspace_id", default=None, help="Workspace ID (default: generated adjective-noun).")
@click.option("--description", default="", help="Free-form description.")
@click.option(
    "--repo",
    "repos",
    type=(str, str),
    multiple=True,
    metavar="URL BRANCH",
    help="Repo to include; repeatable.  More can be added later with `wsflow state`.",
)
@click.pass_context
def init(
    ctx: click.Context,
    name: str,
    workspace_id: str | None,
    description: str,
    repos: tuple[tuple[str, str], ...],
) -> None:
    """Create a new workspace."""
    service = _service(ctx)

    if workspace_id is None:
        existing = [info.id for info in _call(service.list_workspaces)]
        workspace_id = generate_unique_id(existing)

    state = new_state(name, description, [RepoBinding(url=url, branch=branch) for url, branch in repos])
    _call(service.create_workspace, workspace_id, state)

    click.secho(f"Created workspace: {name or workspace_id}", fg="green")
    click.echo(f"   ID:       {workspace_id}")
    click.echo(f"   Location: {service.workspace_path(workspace_id)}")
    click.echo("")
    click.echo("Next steps:")
    click.echo(f"  wsflow state {workspace_id}     # Edit state file")
    click.echo(f"  wsflow render {workspace_id}    # Create worktrees")


@main.command("list")
@click.pass_context
def list_(ctx: click.Context) -> None:
    """List all workspaces."""
    infos: list[WorkspaceInfo] = _call(_service(ctx).list_workspaces)
    if not infos:
        click.echo("No workspaces found. Run `wsflow init` to create one.")
        return

    rows = [("ID", "NAME", "DESCRIPTION", "REPOS", "CREATED")]
    rows.extend(
        (info.id, info.name, _truncate(info.description), str(info.repo_count), _relative_time(info.created))
        for info in sorted(infos, key=lambda i: i.id)
    )
    widths = [max(len(row[col]) for row in rows) for col in range(len(rows[0]))]
    for row in rows:
        click.echo("   ".join(cell.ljust(width) for cell, width in zip(row, widths, strict=True)).rstrip())


@main.command()
@click.argument("workspace")
@click.pass_context
def render(ctx: click.Context, workspace: str) -> None:
    """Create worktrees from the workspace state file."""
    service = _service(ctx)
    info: WorkspaceInfo = _call(service.resolve_workspace, workspace)

    click.echo(f"Rendering workspace: {info.display_name}")
    click.echo("")
    _call(service.render_workspace, info.id, lambda msg: click.echo(f"  {msg}"))
    click.echo("")
    click.secho("Workspace ready", fg="green")
    click.echo(f"  wsflow exec {info.id} -- code .   # Open in editor")


@main.command()
@click.argument("workspace")
@click.option("-y", "--yes", is_flag=True, default=False, help="Skip the confirmation prompt.")
@click.pass_context
def delete(ctx: click.Context, workspace: str, yes: bool) -> None:
    """Delete a workspace and its worktrees (bare clones are kept)."""
    service = _service(ctx)
    info: WorkspaceInfo = _call(service.resolve_workspace, workspace)

    if not yes:
        state = _call(service.find_workspace, info.id)
        click.echo(f"Workspace {info.display_name} ({info.id}) will be deleted with these worktrees:")
        for repo in state.spec.repos:
            click.echo(f"  {repo_path(repo)} ({repo.branch})")
        if not click.confirm("Continue?", default=False):
            click.echo("Cancelled.")
            return

    failures = _call(service.delete_workspace, info.id)
    for failure in failures:
        click.secho(f"Warning: {failure}", fg="yellow", err=True)
    click.secho(f"Deleted workspace: {info.display_name}", fg="green")


@main.command()
@click.argument("workspace")
@click.option("--path", "print_path", is_flag=True, default=False, help="Print the state file path instead of editing.")
@click.pass_context
def state(ctx: click.Context, workspace: str, print_path: bool) -> None:
    """Open the workspace state file in $EDITOR."""
    service = _service(ctx)
    info: WorkspaceInfo = _call(service.resolve_workspace, workspace)
    state_path = service.paths.state_path(info.id)

    if print_path:
        click.echo(str(state_path))
        return
    click.edit(filename=str(state_path))


@main.command("exec", context_settings={"ignore_unknown_options": True})
@click.argument("workspace")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def exec_(ctx: click.Context, workspace: str, command: tuple[str, ...]) -> None:
    """Run a command from the workspace directory.

    Example: wsflow exec calm-delta -- git status
    """
    service = _service(ctx)
    info: WorkspaceInfo = _call(service.resolve_workspace, workspace)
    try:
        completed = subprocess.run(list(command), cwd=service.workspace_path(info.id), check=False)  # noqa: S603
    except FileNotFoundError as exc:
        raise click.ClickException(f"command not found: {command[0]}") from exc
    sys.exit(completed.returncode)


if __name__ == "__main__":
    main()
