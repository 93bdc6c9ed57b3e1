"""
themesafe CLI - diff command.

Compares two labels, or the working tree against the latest checkpoint.
"""

import typer
from rich.console import Console
from rich.syntax import Syntax

from themesafe.cli.context import local_history
from themesafe.cli.errors import handle_errors
from themesafe.core.history import ChangeKind, DiffReport
from themesafe.core.services import ReportService

console = Console()

CHANGE_MARKS = {
    ChangeKind.ADDED: "[green]+[/green]",
    ChangeKind.MODIFIED: "[yellow]~[/yellow]",
    ChangeKind.DELETED: "[red]-[/red]",
}


def _render(report: DiffReport, stat_only: bool) -> None:
    console.print(f"[bold]{report.base}[/bold] → [bold]{report.head}[/bold]")
    if report.is_empty:
        console.print("[dim]No differences[/dim]")
        return

    for change in report.changes:
        stats = ""
        if change.insertions is not None and change.deletions is not None:
            stats = f" [dim](+{change.insertions} -{change.deletions})[/dim]"
        elif change.insertions is None:
            stats = " [dim](binary)[/dim]"
        console.print(f"  {CHANGE_MARKS[change.kind]} {change.path}{stats}")
    console.print(f"\n{report.summary()}")

    if not stat_only and report.patch:
        console.print()
        console.print(Syntax(report.patch, "diff", background_color="default"))


def diff(
    ref_a: str | None = typer.Argument(None, help="Older label (or checkpoint)"),
    ref_b: str | None = typer.Argument(None, help="Newer label (default: latest checkpoint)"),
    stat: bool = typer.Option(
        False,
        "--stat",
        help="Only list changed files",
    ),
    staged: bool = typer.Option(
        False,
        "--staged",
        help="Compare the working tree against the latest checkpoint",
    ),
) -> None:
    """
    Show changes between versions.

    With no labels (or --staged), shows working-tree edits not yet pushed.

    Examples:
        themesafe diff v1-push v2-push
        themesafe diff v2-push --stat
        themesafe diff --staged
    """
    with handle_errors():
        reporter = ReportService(local_history())
        if staged or ref_a is None:
            report = reporter.diff_uncommitted(stat_only=stat)
        else:
            report = reporter.diff_labels(ref_a, ref_b or "HEAD", stat_only=stat)

    _render(report, stat)
