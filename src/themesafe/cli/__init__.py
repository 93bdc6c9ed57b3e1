"""
themesafe CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer
from rich.console import Console

from themesafe import __version__
from themesafe.cli import diff, guard, history, init_history, promote, push, rollback
from themesafe.cli.context import setup_logging
from themesafe.core.config import load_layered_env

# Help panel names for command grouping
PANEL_WRITE = "Change a Target"
PANEL_READ = "Inspect History"
PANEL_SETUP = "Setup and Checks"

# Create the main Typer app
app = typer.Typer(
    name="themesafe",
    help="Safe push, rollback and promotion for store themes",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    themesafe - versioned, guarded theme sync.

    Every push, rollback and promotion is recorded in theme/'s history
    and labelled, so any state the dev or live target has been in can be
    restored.

    Quick Start:
        1. themesafe init-history              # Download the dev target
        2. edit files under theme/
        3. themesafe push sections/header.liquid
        4. themesafe promote                   # When ready for live
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)
    ctx.obj = {"debug": debug}


# =============================================================================
# Change a Target
# =============================================================================

app.command(name="push", rich_help_panel=PANEL_WRITE)(push.push)
app.command(name="rollback", rich_help_panel=PANEL_WRITE)(rollback.rollback)
app.command(name="promote", rich_help_panel=PANEL_WRITE)(promote.promote)


# =============================================================================
# Inspect History
# =============================================================================

app.command(name="diff", rich_help_panel=PANEL_READ)(diff.diff)
app.command(name="history", rich_help_panel=PANEL_READ)(history.history)


# =============================================================================
# Setup and Checks
# =============================================================================

app.command(name="init-history", rich_help_panel=PANEL_SETUP)(init_history.init_history)
app.command(name="guard", rich_help_panel=PANEL_SETUP)(guard.guard)


@app.command(rich_help_panel=PANEL_SETUP)
def version() -> None:
    """Show themesafe version and exit."""
    console.print(f"themesafe version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
