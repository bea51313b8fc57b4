"""
CLI interface for memc.

Usage:
    memc init
    memc annotate
    memc status
    memc ignore path/to/file.png
    memc find cat funny
"""

import os
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import Repository, init_repository
from .errors import MemcError
from .logging_config import configure_quiet_mode, enable_debug_mode

# Configure quiet mode by default
# Set MEMC_VERBOSE=1 to enable debug mode via environment
if os.environ.get("MEMC_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"memc {version('memc')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_repo_override: Optional[Path] = None


def _repo_callback(value: Optional[Path]):
    global _repo_override
    if value is not None:
        _repo_override = value


def _get_repo_override() -> Optional[Path]:
    return _repo_override


app = typer.Typer(
    name="memc",
    help="Tag your media files and find them again.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    repo: Annotated[Optional[Path], typer.Option(
        "--repo", "-r",
        envvar="MEMC_REPO",
        help="Repository root (default: search upward from the current directory)",
        callback=_repo_callback,
        is_eager=True,
    )] = None,
):
    """Tag your media files and find them again."""


# -----------------------------------------------------------------------------
# Common Options
# -----------------------------------------------------------------------------

RepoOption = Annotated[
    Optional[Path],
    typer.Option(
        "--repo", "-r",
        envvar="MEMC_REPO",
        help="Repository root (default: search upward from the current directory)"
    )
]

LimitOption = Annotated[
    Optional[int],
    typer.Option(
        "--limit", "-n",
        min=1,
        help="Maximum results to return (default: find.limit from memc.toml)"
    )
]


def _get_repository(repo: Optional[Path]) -> Repository:
    """Open the repository, turning failures into a clean exit."""
    import atexit

    actual = repo if repo is not None else _get_repo_override()
    try:
        r = Repository(actual)
    except (MemcError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    atexit.register(r.close)
    return r


def _fail(e: Exception) -> None:
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(1)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def init(
    repo: RepoOption = None,
):
    """Create a repository in the current directory."""
    root = repo if repo is not None else _get_repo_override()
    try:
        config = init_repository(root)
    except MemcError as e:
        _fail(e)
    typer.echo(f"Initialized empty memc repository in {config.repo_dir}")


@app.command()
def annotate(
    repo: RepoOption = None,
):
    """
    Tag untagged files one by one.

    Each file is shown in the viewer while the editor is open. Write the
    tags separated by spaces, save and quit. Save an empty file to stop.
    """
    r = _get_repository(repo)
    try:
        result = r.annotate()
    except (MemcError, ValueError) as e:
        _fail(e)

    for path in result.skipped:
        typer.echo(f"Skipped {path!r}: the tags file cannot hold this name", err=True)
    for error in result.viewer_errors:
        typer.echo(f"Viewer: {error}", err=True)
    typer.echo(f"Tagged {len(result.committed)} files.", err=True)


@app.command()
def status(
    repo: RepoOption = None,
):
    """Show how many files are tagged and list the untagged ones."""
    r = _get_repository(repo)
    try:
        report = r.status()
    except MemcError as e:
        _fail(e)

    typer.echo(f" {report.tagged_count} / {report.total} ({report.ignored_count} ignored)")
    if report.overlap_count:
        typer.echo(
            f"Warning: {report.overlap_count} files are both tagged and ignored",
            err=True,
        )
    for path in report.untagged:
        typer.echo(path)


@app.command()
def ignore(
    paths: Annotated[list[str], typer.Argument(help="Files to exclude from annotation and search")],
    repo: RepoOption = None,
):
    """Exclude files from annotation and search."""
    r = _get_repository(repo)
    try:
        report = r.ignore(paths)
    except (MemcError, ValueError) as e:
        _fail(e)

    for path in report.rejected:
        typer.echo(f"Error: {path} is not in this repository.", err=True)
    for path in report.already_ignored:
        typer.echo(f"Warning: {path} is already ignored.", err=True)
    for path in report.tagged:
        typer.echo(f"Warning: {path} is tagged. This will exclude it from search.", err=True)
    if report.rejected:
        raise typer.Exit(1)


@app.command()
def find(
    terms: Annotated[list[str], typer.Argument(help="Search terms (typos are fine)")],
    limit: LimitOption = None,
    repo: RepoOption = None,
):
    """Find tagged files by approximate match against paths and tags."""
    r = _get_repository(repo)
    try:
        results = r.find(terms, limit=limit)
    except MemcError as e:
        _fail(e)

    for result in results:
        typer.echo(f"{result.path}: {result.score}")


@app.command()
def compact(
    repo: RepoOption = None,
):
    """Rewrite the tags file without records overridden by later ones."""
    r = _get_repository(repo)
    try:
        dropped = r.compact()
    except MemcError as e:
        _fail(e)
    typer.echo(f"Dropped {dropped} stale records.", err=True)


# -----------------------------------------------------------------------------
# Short aliases
# -----------------------------------------------------------------------------

@app.command("i", hidden=True)
def init_alias(repo: RepoOption = None):
    """Create a repository (alias for 'init')."""
    init(repo=repo)


@app.command("a", hidden=True)
def annotate_alias(repo: RepoOption = None):
    """Tag untagged files (alias for 'annotate')."""
    annotate(repo=repo)


@app.command("s", hidden=True)
def status_alias(repo: RepoOption = None):
    """Show repository status (alias for 'status')."""
    status(repo=repo)


@app.command("g", hidden=True)
def ignore_alias(
    paths: Annotated[list[str], typer.Argument(help="Files to ignore")],
    repo: RepoOption = None,
):
    """Exclude files (alias for 'ignore')."""
    ignore(paths=paths, repo=repo)


@app.command("f", hidden=True)
def find_alias(
    terms: Annotated[list[str], typer.Argument(help="Search terms")],
    limit: LimitOption = None,
    repo: RepoOption = None,
):
    """Find tagged files (alias for 'find')."""
    find(terms=terms, limit=limit, repo=repo)


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="memc CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
