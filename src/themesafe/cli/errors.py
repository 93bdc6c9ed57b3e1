"""
Standardized error handling and exit codes for the themesafe CLI.

Every command runs its body inside ``handle_errors()``, which turns the
core's typed exceptions into an actionable message and a stable exit code.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from enum import IntEnum

import typer
from rich.console import Console

from themesafe.core.config import ConfigError, ConfigNotFoundError
from themesafe.core.history import (
    GitError,
    HistoryError,
    LabelExistsError,
    UnknownReferenceError,
)
from themesafe.core.services import (
    BlockedError,
    LockHeldError,
    NothingToPushError,
    PromotionAbortedError,
    RoleChangedError,
    ServiceError,
)
from themesafe.core.store import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
    StoreError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for themesafe operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    FAILURE = 1
    """Blocked by the safety guard, invalid input, or the operation failed."""

    RESOLUTION_ERROR = 2
    """Configuration, credential, or reference could not be resolved."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow]  {message}")


def report_error(error: BaseException) -> ExitCode:
    """Print ``error`` for the operator and return the matching exit code."""
    if isinstance(error, KeyboardInterrupt):
        print_error("Interrupted", reason="Snapshots and labels created so far remain valid")
        return ExitCode.SIGINT

    if isinstance(error, ConfigNotFoundError):
        print_error(
            "Not a themesafe project",
            reason=str(error),
            solution="cd to your project root, or create .themesafe/config.json",
        )
        return ExitCode.RESOLUTION_ERROR
    if isinstance(error, ConfigError):
        print_error("Invalid configuration", reason=str(error))
        return ExitCode.RESOLUTION_ERROR

    if isinstance(error, BlockedError):
        print_error(str(error), reason=error.result.reason or None)
        return ExitCode.FAILURE
    if isinstance(error, RoleChangedError):
        print_error(str(error), solution="themesafe guard <id> --validate  # then update config")
        return ExitCode.RESOLUTION_ERROR
    if isinstance(error, PromotionAbortedError):
        if error.declined:
            console.print(f"[yellow]{error}[/yellow]")
            return ExitCode.SUCCESS
        print_error("Promotion aborted", reason=str(error))
        return ExitCode.FAILURE
    if isinstance(error, LockHeldError):
        print_error(str(error), reason="Only one push, rollback or promotion may run at a time")
        return ExitCode.FAILURE
    if isinstance(error, NothingToPushError):
        print_error(str(error), solution="themesafe push <key> [<key> ...]")
        return ExitCode.FAILURE
    if isinstance(error, ServiceError):
        print_error(str(error))
        return ExitCode.FAILURE

    if isinstance(error, UnknownReferenceError):
        print_error(str(error), solution="themesafe history  # to see available labels")
        return ExitCode.RESOLUTION_ERROR
    if isinstance(error, LabelExistsError):
        print_error(str(error), reason="Labels are never moved or reused")
        return ExitCode.FAILURE
    if isinstance(error, GitError):
        print_error("History repository error", reason=error.stderr or str(error))
        return ExitCode.FAILURE
    if isinstance(error, HistoryError):
        print_error(str(error))
        return ExitCode.FAILURE

    if isinstance(error, AuthError):
        print_error(
            "The store rejected the access token",
            reason=str(error),
            solution="check access_token in .themesafe/config.json or THEMESAFE_ACCESS_TOKEN",
        )
        return ExitCode.RESOLUTION_ERROR
    if isinstance(error, ForbiddenError):
        print_error(
            "The access token lacks a required permission",
            reason=str(error),
            solution=f"grant the '{error.capability}' scope to the app",
        )
        return ExitCode.RESOLUTION_ERROR
    if isinstance(error, NotFoundError):
        print_error(str(error), reason="The configured target may have been deleted")
        return ExitCode.RESOLUTION_ERROR
    if isinstance(error, RateLimitedError):
        print_error(
            str(error),
            solution=f"wait {error.retry_after:.0f}s and run the command again",
        )
        return ExitCode.FAILURE
    if isinstance(error, StoreError):
        print_error("Store request failed", reason=str(error))
        return ExitCode.FAILURE

    if isinstance(error, ValueError):
        print_error(str(error))
        return ExitCode.FAILURE

    raise error


@contextmanager
def handle_errors() -> Iterator[None]:
    """Map core exceptions raised in the block to an exit code."""
    try:
        yield
    except typer.Exit:
        raise
    except (
        KeyboardInterrupt,
        ConfigError,
        ServiceError,
        LockHeldError,
        HistoryError,
        StoreError,
        ValueError,
    ) as e:
        raise typer.Exit(report_error(e)) from e
