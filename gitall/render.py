"""
Rendering functions for gitall output.

Core functions return data, this module makes it human-readable.
Tables are written to stderr so stdout stays reserved for git status
output; --json output goes to stdout as JSONL.
"""

import json

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Optional

from .domain.operation import LocalRepoInfo, OperationStatus, SyncSummary

console = Console(stderr=True)

_STATUS_STYLES = {
    OperationStatus.SUCCESS: "green",
    OperationStatus.SKIPPED: "yellow",
    OperationStatus.FAILED: "red",
    OperationStatus.DRY_RUN: "cyan",
}


def render_summary(summary: SyncSummary, show_details: bool = True,
                   out: Optional[Console] = None) -> None:
    """
    Render a sync summary as a table followed by a totals line.

    Args:
        summary: Result of one clone/update/fetch/status run
        show_details: Include one row per repository
        out: Console to print to (defaults to stderr)
    """
    out = out or console

    if show_details and summary.details:
        table = Table(
            title=f"{summary.action.capitalize()} [{summary.user}] in {summary.target_dir}",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta"
        )
        table.add_column("Repository", style="cyan")
        table.add_column("Action")
        table.add_column("Status")
        table.add_column("Message", style="dim")

        for outcome in summary.details:
            style = _STATUS_STYLES.get(outcome.status, "white")
            table.add_row(
                outcome.repo_name,
                outcome.action,
                f"[{style}]{outcome.status.value}[/{style}]",
                outcome.error or outcome.message or "",
            )
        out.print(table)
    elif not summary.details:
        out.print("[yellow]No repositories found.[/yellow]")

    out.print(format_totals(summary))


def format_totals(summary: SyncSummary) -> str:
    """One-line totals, e.g. "update: 3 repos, 2 succeeded, 0 skipped, 1 failed"."""
    line = (
        f"{summary.action}: {summary.total} repos, {summary.successful} succeeded, "
        f"{summary.skipped} skipped, {summary.failed} failed"
    )
    if summary.dry_run:
        line += " (dry run)"
    return line


def render_summary_json(summary: SyncSummary) -> None:
    """One JSON line per repository outcome, then the summary line."""
    for outcome in summary.details:
        print(json.dumps(outcome.to_dict()), flush=True)
    print(json.dumps(summary.to_dict()), flush=True)


_STATE_STYLES = {"clean": "green", "dirty": "yellow", "error": "red"}


def render_repo_list(repos: List[LocalRepoInfo], out: Optional[Console] = None) -> None:
    """Render the local inventory: name, branch, clean/dirty and origin URL."""
    out = out or console

    if not repos:
        out.print("[yellow]No repositories found.[/yellow]")
    else:
        table = Table(box=box.ROUNDED, show_header=True, header_style="bold magenta")
        table.add_column("Repository", style="bold")
        table.add_column("Branch", style="cyan")
        table.add_column("State")
        table.add_column("Remote", style="dim")

        for repo in repos:
            style = _STATE_STYLES[repo.state]
            table.add_row(
                repo.name,
                repo.branch,
                f"[{style}]{repo.state}[/{style}]",
                repo.error or repo.remote_url or "no remote",
            )
        out.print(table)

    out.print(format_list_totals(repos))


def render_repo_list_json(repos: List[LocalRepoInfo]) -> None:
    for repo in repos:
        print(json.dumps(repo.to_dict()), flush=True)
    print(json.dumps({'type': 'summary', 'action': 'list', **_list_counts(repos)}), flush=True)


def format_list_totals(repos: List[LocalRepoInfo]) -> str:
    counts = _list_counts(repos)
    return (
        f"list: {counts['total']} repos, {counts['clean']} clean, "
        f"{counts['dirty']} dirty, {counts['errored']} errored"
    )


def _list_counts(repos: List[LocalRepoInfo]) -> dict:
    states = [repo.state for repo in repos]
    return {
        'total': len(states),
        'clean': states.count("clean"),
        'dirty': states.count("dirty"),
        'errored': states.count("error"),
    }
