"""
kbsync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer

from kbsync import __version__
from kbsync.cli import sync
from kbsync.core.config.env import load_layered_env

# Create the main Typer app
app = typer.Typer(
    name="kbsync",
    help="Sync a personal knowledge base with a remote repository",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def _configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"kbsync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """
    kbsync - push and pull knowledge base documents.

    Quick Start:
        1. kbsync connect --owner me --repo notes --token <token>
        2. kbsync diff               # See what changed locally
        3. kbsync push               # Commit changes to the remote
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    _configure_logging(debug)

    ctx.obj = {"debug": debug}


app.command(name="connect")(sync.connect)
app.command(name="status")(sync.status)
app.command(name="diff")(sync.diff)
app.command(name="push")(sync.push)
app.command(name="pull")(sync.pull)


def cli_main() -> None:
    app()


__all__ = ["app", "cli_main"]
