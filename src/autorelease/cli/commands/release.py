"""Implementation of the 'release' command.

Resolves the next version and, unless running dry, tags, publishes and
pushes the release artifacts.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.table import Table

from autorelease.config import load_config
from autorelease.core.orchestrator import ExitCode, ReleaseOrchestrator, ReleaseState
from autorelease.exceptions import AutoReleaseError
from autorelease.vcs import HostedGateway

if TYPE_CHECKING:
    from rich.console import Console

    from autorelease.core.orchestrator import RunResult
    from autorelease.vcs.gateway import RepositoryGateway


def run_release(
    path: str | None,
    branch: str | None,
    dry_run: bool,
    as_json: bool,
    console: Console,
    err_console: Console,
    gateway: RepositoryGateway | None = None,
) -> int:
    """Run the release command.

    Args:
        path: Optional path to the project directory
        branch: Release branch override
        dry_run: Stop before publishing and show the plan
        as_json: Print a machine-readable result instead of panels
        console: Console for standard output
        err_console: Console for error output
        gateway: Gateway override (defaults to git + GitHub for ``path``)

    Returns:
        Process exit code
    """
    project_path = Path(path) if path else Path.cwd()

    try:
        config = load_config(project_path)
    except AutoReleaseError as e:
        if as_json:
            console.print_json(
                json.dumps({"state": str(ReleaseState.FAILED), "reason": e.code, "error": str(e)})
            )
        else:
            err_console.print(f"[red]Error loading config:[/] {e}")
        return ExitCode.FAILED

    if branch:
        config = config.model_copy(update={"branch": branch})

    if gateway is None:
        gateway = HostedGateway.from_config(project_path, config)

    result = ReleaseOrchestrator(gateway, config).run(dry_run=dry_run)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
    else:
        _print_result(result, console, err_console)
    return result.exit_code


def _print_result(result: RunResult, console: Console, err_console: Console) -> None:
    plan = result.plan

    if result.state == ReleaseState.NO_RELEASE:
        messages = {
            "no_commits": "No commits found since the last release. Nothing to do.",
            "no_releasable_changes": "No releasable changes found (no feat, fix or breaking commits).",
            "already_released": f"{plan.tag_name if plan else 'This version'} is already released.",
        }
        console.print(f"[yellow]{messages.get(result.reason or '', 'No release due.')}[/]")
        return

    if plan is not None:
        console.print(_plan_table(result))

    if result.dry_run and result.succeeded:
        files = "\n".join(f"  • [cyan]{p}[/]" for p in result.artifacts) or "  (none)"
        console.print(
            Panel(
                f"[bold]Would release [green]{plan.next_version if plan else '?'}[/]"
                " and update:[/]\n\n"
                f"{files}\n\n"
                "[bold]Release notes:[/]\n\n"
                f"{result.notes or ''}",
                title="[yellow]Dry Run Preview[/]",
                border_style="yellow",
            )
        )
        return

    if result.state == ReleaseState.DONE and result.record is not None:
        url = f"\n{result.record.url}" if result.record.url else ""
        console.print(
            Panel(
                f"[green]Released {result.record.tag_name}[/]{url}",
                title="[green]Release Complete[/]",
                border_style="green",
            )
        )
        return

    error = result.error
    transition = " -> ".join(str(s) for s in result.failed_transition or ())
    title = "[yellow]Partial Success[/]" if result.partial else "[red]Release Failed[/]"
    body = f"[red]{error}[/]\n\nreason: [bold]{result.reason}[/]"
    if transition:
        body += f"\nfailed transition: [bold]{transition}[/]"
    if result.partial and result.record is not None:
        body += (
            f"\n\n{result.record.tag_name} is published; commit and push the "
            "changelog/version files manually."
        )
    err_console.print(Panel(body, title=title, border_style="red"))


def _plan_table(result: RunResult) -> Table:
    plan = result.plan
    assert plan is not None
    table = Table(title="Release Plan", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Previous version", str(plan.previous_version or "(first release)"))
    table.add_row("Next version", f"[green]{plan.next_version}[/]")
    table.add_row("Bump", str(plan.bump))
    table.add_row("Tag", plan.tag_name)
    table.add_row("Target", plan.target_sha[:7])
    table.add_row("Commits", str(len(plan.commits)))
    return table
