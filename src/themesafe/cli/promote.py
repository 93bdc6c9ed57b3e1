"""
themesafe CLI - promote command.

Copies the dev working tree onto the live target after the operator
types PROMOTE to confirm.
"""

import typer
from rich.console import Console
from rich.panel import Panel

from themesafe.cli.context import open_session
from themesafe.cli.errors import ExitCode, handle_errors, print_warning
from themesafe.core.services import PromotionPlan, PromotionService

console = Console()

CONFIRM_WORD = "PROMOTE"


def confirm_promotion(plan: PromotionPlan) -> bool:
    """Ask the operator to type the confirmation word."""
    console.print(
        Panel(
            f"Copy every file from [bold]{plan.source_name}[/bold] ({plan.source_target_id})\n"
            f"onto the LIVE target [bold]{plan.protected_name}[/bold] "
            f"({plan.protected_target_id}).\n\n"
            "The live target's current files are saved first as a pre-promote label.",
            title="[bold red]Promote to live[/bold red]",
            border_style="red",
            expand=False,
        )
    )
    for warning in plan.warnings:
        print_warning(warning)
    answer = typer.prompt(f"Type {CONFIRM_WORD} to continue", default="", show_default=False)
    return answer.strip() == CONFIRM_WORD


def promote(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip the confirmation prompt (for unattended use)",
    ),
) -> None:
    """
    Promote the dev target's files to the live target.

    The live target is backed up as pre-promote-<timestamp> before any
    write, and the command prints how to restore it.

    Examples:
        themesafe promote
        themesafe promote --yes
    """
    with handle_errors(), open_session() as session:
        service = PromotionService(
            session.config,
            session.store,
            session.history,
            lock_path=session.workspace.lock_path,
            confirm=confirm_promotion,
        )
        result = service.promote(assume_yes=yes)

    for warning in result.warnings:
        print_warning(warning)
    for failure in result.uploads.failed:
        console.print(f"  [red]✗[/red] {failure.key}: {failure.error}")

    console.print()
    if result.pre_promote_label:
        console.print(
            f"[green]✓[/green] Saved {result.backup_items} live file(s) as "
            f"[bold]{result.pre_promote_label.name}[/bold]"
        )
    console.print(
        f"Promoted {result.uploads.success_count} file(s), "
        f"{result.uploads.failure_count} failed"
        + (f"; labelled [bold]{result.promote_label.name}[/bold]" if result.promote_label else "")
    )
    console.print(f"[bold]To restore the live target:[/bold] {result.restore_command}")
    console.print(
        f"[dim]This also resets dev target {result.plan.source_target_id} to the live files.[/dim]"
    )

    if not result.success:
        raise typer.Exit(ExitCode.FAILURE)
