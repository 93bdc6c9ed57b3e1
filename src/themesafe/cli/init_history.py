"""
themesafe CLI - init-history command.

Seeds theme/ and its history from the dev target (labelled v0-init), or
re-syncs theme/ from the dev target on later runs.
"""

import typer
from rich.console import Console

from themesafe.cli.context import open_session
from themesafe.cli.errors import ExitCode, handle_errors, print_warning
from themesafe.core.services import BaselineService

console = Console()


def init_history() -> None:
    """
    Download the dev target into theme/ and record it.

    The first run labels the result v0-init. Later runs replace theme/
    with the dev target's current files and record a checkpoint without
    a new label. Unpushed edits in theme/ are discarded.

    Examples:
        themesafe init-history
    """
    with handle_errors(), open_session() as session:
        service = BaselineService(
            session.config,
            session.store,
            session.history,
            lock_path=session.workspace.lock_path,
        )
        console.print(
            f"[blue]Downloading dev target {session.config.mutable_target_id}...[/blue]"
        )
        result = service.run()

    for warning in result.warnings:
        print_warning(warning)

    console.print(
        f"[green]✓[/green] Downloaded {result.downloads.success_count} file(s)"
        + (f", {result.downloads.failure_count} failed" if result.downloads.failure_count else "")
    )
    if result.label:
        console.print(f"[green]✓[/green] Labelled [bold]{result.label.name}[/bold]")
    elif result.checkpoint:
        console.print(f"[dim]Checkpoint {result.checkpoint.short_sha}[/dim]")

    if result.downloads.failure_count:
        raise typer.Exit(ExitCode.FAILURE)
