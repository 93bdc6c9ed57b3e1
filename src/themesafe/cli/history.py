"""
themesafe CLI - history command.

Shows labels newest first. Read-only; never contacts the store.
"""

import typer
from rich.console import Console
from rich.table import Table

from themesafe.cli.context import local_history
from themesafe.cli.errors import handle_errors
from themesafe.core.history import Label, LabelKind
from themesafe.core.services import ReportService

console = Console()

KIND_STYLES = {
    LabelKind.INIT: "cyan",
    LabelKind.PUSH: "green",
    LabelKind.ROLLBACK: "yellow",
    LabelKind.PROMOTE: "magenta",
    LabelKind.PRE_PROMOTE: "blue",
    LabelKind.OTHER: "white",
}


def render_labels(out: Console, labels: list[Label], verbose: bool) -> None:
    """Print labels as a table, newest first."""
    table = Table(border_style="dim")
    table.add_column("Label", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Date", style="dim")
    if verbose:
        table.add_column("Checkpoint", style="dim")
    table.add_column("Message")

    for label in labels:
        style = KIND_STYLES.get(label.kind, "white")
        date = label.created_at.astimezone().strftime("%Y-%m-%d %H:%M") if label.created_at else ""
        row = [f"[{style}]{label.name}[/{style}]", label.kind.value, date]
        if verbose:
            row.append(label.checkpoint_sha[:8])
        row.append(label.message)
        table.add_row(*row)

    out.print(table)


def history(
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        min=1,
        help="Number of labels to show",
    ),
    show_all: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Show every label",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show checkpoint SHAs",
    ),
) -> None:
    """
    Show version history.

    Examples:
        themesafe history
        themesafe history -n 5
        themesafe history --all --verbose
    """
    with handle_errors():
        listing = ReportService(local_history()).list_history(None if show_all else limit)

    if not listing.labels:
        console.print("[yellow]No versions yet.[/yellow] Run: themesafe init-history")
        return

    render_labels(console, listing.labels, verbose)
    if listing.truncated:
        console.print(
            f"[dim]Showing {len(listing.labels)} of {listing.total}; use --all for more[/dim]"
        )
    if verbose and listing.head:
        console.print(f"[dim]Latest checkpoint: {listing.head[:8]}[/dim]")
