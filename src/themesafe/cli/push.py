"""
themesafe CLI - push command.

Uploads working-tree files to the mutable (dev) target, recording the
target's state before and after as labelled checkpoints.
"""

import typer
from rich.console import Console

from themesafe.cli.context import open_session
from themesafe.cli.errors import ExitCode, handle_errors, print_warning
from themesafe.core.services import PushResult, PushService

console = Console()


def push(
    keys: list[str] = typer.Argument(
        None,
        help="Item keys to push, relative to theme/ (e.g. sections/header.liquid)",
        show_default=False,
    ),
    message: str | None = typer.Option(
        None,
        "--message",
        "-m",
        help="Message recorded with the push label",
    ),
) -> None:
    """
    Push files to the dev target.

    Each push is labelled v<N>-push. Only the named files are uploaded;
    nothing on the target is deleted.

    Examples:
        themesafe push sections/header.liquid
        themesafe push assets/base.css assets/theme.js -m "Button colours"
    """
    with handle_errors(), open_session() as session:
        service = PushService(
            session.config,
            session.store,
            session.history,
            lock_path=session.workspace.lock_path,
        )
        console.print(
            f"[blue]Pushing {len(keys or [])} file(s) to "
            f"{session.config.mutable_target_name or session.config.mutable_target_id}...[/blue]"
        )
        result = service.push(keys or [], message)

    for warning in result.warnings:
        print_warning(warning)

    for key in result.uploads.succeeded:
        console.print(f"  [green]✓[/green] {key}")

    if result.total_failure:
        print_failures(result)
        console.print(f"[red]Push failed:[/red] none of {len(result.keys)} file(s) uploaded")
        raise typer.Exit(ExitCode.FAILURE)

    console.print()
    console.print(
        f"[green]✓[/green] Pushed {result.uploads.success_count}/{len(result.keys)} file(s)"
        + (f" as [bold]{result.label.name}[/bold]" if result.label else "")
    )
    console.print(f"[dim]Preview:[/dim] {result.preview_url}")
    if result.previous_label:
        console.print(f"[dim]Undo:[/dim]    themesafe rollback --to {result.previous_label}")

    # Failures print last.
    if result.uploads.failure_count:
        console.print()
        print_failures(result)
        print_warning(
            f"{result.uploads.failure_count} file(s) failed; fix them and push again"
        )


def print_failures(result: PushResult) -> None:
    for failure in result.uploads.failed:
        console.print(f"  [red]✗[/red] {failure.key}: {failure.error}")
