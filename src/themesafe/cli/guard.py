"""
themesafe CLI - guard command.

Runs the safety check on one target. Exit codes: 0 safe, 1 blocked,
2 unresolved. Useful in scripts before any custom write.
"""

import typer
from rich.console import Console

from themesafe.cli.context import open_session
from themesafe.cli.errors import ExitCode, handle_errors, print_warning
from themesafe.core.guard import SafetyGuard, Verdict

console = Console()

VERDICT_EXIT = {
    Verdict.SAFE: ExitCode.SUCCESS,
    Verdict.BLOCKED: ExitCode.FAILURE,
    Verdict.UNRESOLVED: ExitCode.RESOLUTION_ERROR,
}


def guard(
    target_id: int = typer.Argument(..., help="Target (theme) ID to check"),
    promote: bool = typer.Option(
        False,
        "--promote",
        help="Allow the live target (the promotion override)",
    ),
    validate: bool = typer.Option(
        False,
        "--validate",
        help="Only check that the target exists",
    ),
) -> None:
    """
    Check whether a target may be written to.

    Examples:
        themesafe guard 123456789
        themesafe guard 123456789 --promote
        themesafe guard 123456789 --validate
    """
    with handle_errors(), open_session() as session:
        checker = SafetyGuard(session.store)
        if validate:
            result = checker.validate(target_id)
        else:
            result = checker.check(target_id, allow_protected=promote)

    for warning in result.warnings:
        print_warning(warning)

    if result.verdict is Verdict.SAFE:
        console.print(f"[green]✓[/green] {result.describe()} is safe ({result.reason})")
    elif result.verdict is Verdict.BLOCKED:
        console.print(f"[red]✗ BLOCKED:[/red] {result.reason}")
    else:
        console.print(f"[red]✗ UNRESOLVED:[/red] {result.reason}")

    raise typer.Exit(VERDICT_EXIT[result.verdict])
