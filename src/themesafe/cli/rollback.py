"""
themesafe CLI - rollback command.

Lists restorable labels, or restores one onto the mutable target.
"""

import typer
from rich.console import Console

from themesafe.cli.context import local_history, open_session
from themesafe.cli.errors import ExitCode, handle_errors, print_warning
from themesafe.cli.history import render_labels
from themesafe.core.services import RollbackService

console = Console()


def rollback(
    to: str | None = typer.Option(
        None,
        "--to",
        help="Label to restore onto the dev target",
    ),
    list_versions: bool = typer.Option(
        False,
        "--list",
        "-l",
        help="List restorable labels instead of rolling back",
    ),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        min=1,
        help="Number of labels to list",
    ),
) -> None:
    """
    Restore the dev target to a labelled version.

    Files in the label are uploaded and files added since are deleted from
    the target. The rollback is itself labelled, so it can be undone.

    Examples:
        themesafe rollback --list
        themesafe rollback --to v3-push
    """
    if to is None or list_versions:
        with handle_errors():
            history = local_history()
            labels = history.list_labels(limit=limit)
        if not labels:
            console.print("[yellow]No versions yet.[/yellow] Run: themesafe init-history")
            return
        render_labels(console, labels, verbose=False)
        console.print("\n[dim]Restore with: themesafe rollback --to <label>[/dim]")
        return

    with handle_errors(), open_session() as session:
        service = RollbackService(
            session.config,
            session.store,
            session.history,
            lock_path=session.workspace.lock_path,
        )
        console.print(f"[blue]Rolling back dev target to {to}...[/blue]")
        result = service.rollback(to)

    for warning in result.warnings:
        print_warning(warning)
    for failure in result.uploads.failed:
        console.print(f"  [red]✗[/red] upload {failure.key}: {failure.error}")
    for key in result.deletions.succeeded:
        console.print(f"  [yellow]-[/yellow] removed {key}")
    for key in result.untracked:
        console.print(f"  [yellow]~[/yellow] kept {key} (not in history)")
    for failure in result.deletions.failed:
        console.print(f"  [red]✗[/red] remove {failure.key}: {failure.error}")

    console.print()
    console.print(
        f"Restored [bold]{to}[/bold]: {result.uploads.success_count} uploaded, "
        f"{result.uploads.failure_count} failed, {result.deletions.success_count} removed"
    )
    if result.label:
        console.print(f"[green]✓[/green] Labelled [bold]{result.label.name}[/bold]")
    console.print(f"[dim]Preview:[/dim] {result.preview_url}")
    if result.previous_label and result.previous_label != to:
        console.print(f"[dim]Undo:[/dim]    themesafe rollback --to {result.previous_label}")

    if not result.success:
        raise typer.Exit(ExitCode.FAILURE)
