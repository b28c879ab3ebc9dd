"""Command line entry point."""

from __future__ import annotations

import typer
from rich.console import Console

from autorelease import __version__
from autorelease.cli.commands.classify import run_classify
from autorelease.cli.commands.release import run_release
from autorelease.log import configure_logging

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Resolve the next semantic version from conventional commits and release it.",
)

console = Console()
err_console = Console(stderr=True)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
) -> None:
    pass


@app.command()
def release(
    path: str | None = typer.Option(None, "--path", "-p", help="Project directory."),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Release branch override."),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Compute and show the release without publishing."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print a machine-readable result."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Tag, publish and commit the next release if one is due."""
    configure_logging(verbose, console=err_console)
    code = run_release(path, branch, dry_run, as_json, console, err_console)
    raise typer.Exit(code=code)


@app.command()
def classify(
    message: str = typer.Argument(..., help="Commit message to classify."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON."),
) -> None:
    """Show how a commit message affects the next version."""
    run_classify(message, as_json, console)


def main() -> None:
    app()
