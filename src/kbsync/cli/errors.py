"""
Standardized error handling and exit codes for the kbsync CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console

from kbsync.core.remote.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SyncError,
    TransportError,
)


console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for kbsync operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Remote or unexpected failure."""

    USER_ERROR = 2
    """Configuration or input error (actionable by user)."""


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

    Example:
        >>> print_error(
        ...     "Not connected",
        ...     reason="No sync target has been saved",
        ...     solution="kbsync connect --owner you --repo notes",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_not_connected_error() -> None:
    """Print error when no sync target has been saved."""
    print_error(
        "Not connected to a repository",
        reason="No sync target has been saved yet",
        solution="kbsync connect --owner <owner> --repo <repo>",
    )


def print_missing_token_error() -> None:
    """Print error when no credential is available."""
    print_error(
        "No access token provided",
        reason="The remote API requires a personal access token",
        solution="kbsync connect --token <token>  # or set KBSYNC_TOKEN",
    )


def print_sync_error(error: SyncError) -> None:
    """Print a remote failure with a hint matching its kind."""
    if isinstance(error, AuthError):
        print_error(
            error.message,
            reason="The access token was rejected",
            solution="kbsync connect --token <new token>",
        )
    elif isinstance(error, PermissionDeniedError):
        print_error(
            error.message,
            reason="The token is valid but cannot write to this repository",
            solution="Ask the repository owner for write access, or use another repository",
        )
    elif isinstance(error, ConflictError):
        print_error(
            error.message,
            reason="Another writer pushed to the branch during this push",
            solution="kbsync pull  # then push again",
        )
    elif isinstance(error, NotFoundError):
        print_error(
            error.message,
            solution="kbsync connect --branch <branch>  # to sync with another branch",
        )
    elif isinstance(error, TransportError):
        print_error(
            error.message,
            reason="The remote could not be reached or answered unexpectedly",
            solution="Check your network connection and try again",
        )
    else:
        print_error(error.message)


def exit_code_for(error: SyncError) -> ExitCode:
    """Exit code for a remote failure; credential and target problems are user errors."""
    if isinstance(error, (AuthError, PermissionDeniedError, NotFoundError)):
        return ExitCode.USER_ERROR
    return ExitCode.GENERAL_ERROR
