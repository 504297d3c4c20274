"""
kbsync CLI - connect, status, diff, push and pull commands.

Provides the command-line interface to the SyncOrchestrator. The saved
sync target lives in the user config directory; the access token comes
from KBSYNC_TOKEN when set, otherwise from the saved target.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.table import Table

from kbsync.cli.errors import (
    ExitCode,
    exit_code_for,
    print_error,
    print_missing_token_error,
    print_not_connected_error,
    print_sync_error,
)
from kbsync.core.config import (
    JsonConfigStore,
    KbsyncConfig,
    SyncTarget,
    get_data_dir,
    get_env_token,
    get_sync_target_path,
    load_config,
)
from kbsync.core.documents import FileDocumentStore
from kbsync.core.remote import RemoteObjectClient, RepositoryInfo, RetryConfig
from kbsync.core.sync import (
    ChangeSet,
    ChangeStatus,
    Manifest,
    MessageKind,
    SyncOrchestrator,
    SyncResult,
)

console = Console()

_STATUS_STYLES = {
    ChangeStatus.ADDED: ("+", "green"),
    ChangeStatus.MODIFIED: ("~", "yellow"),
    ChangeStatus.DELETED: ("-", "red"),
    ChangeStatus.UNCHANGED: ("=", "dim"),
}

_MESSAGE_STYLES = {
    MessageKind.SUCCESS: "[green]✓[/green]",
    MessageKind.ERROR: "[red]✗[/red]",
    MessageKind.INFO: "[blue]i[/blue]",
}


def _config_store() -> JsonConfigStore:
    return JsonConfigStore(get_sync_target_path())


def _make_client(
    config: KbsyncConfig, credential: str, owner: str, repo: str
) -> RemoteObjectClient:
    return RemoteObjectClient(
        credential,
        owner,
        repo,
        api_url=config.api_url,
        web_url=config.web_url,
        timeout=config.timeout,
        retry=RetryConfig(max_retries=config.max_retries),
    )


def _load_target(store: JsonConfigStore) -> SyncTarget:
    target = store.load()
    if target is None:
        print_not_connected_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    return target


@contextmanager
def _session() -> Iterator[SyncOrchestrator]:
    """Orchestrator for the saved target, closing the client afterwards."""
    config = load_config()
    store = _config_store()
    target = _load_target(store)

    credential = get_env_token() or target.credential
    if not credential:
        print_missing_token_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    with _make_client(config, credential, target.owner_id, target.repo_id) as client:
        yield SyncOrchestrator(
            client,
            FileDocumentStore(get_data_dir(config)),
            target,
            store,
            Manifest.from_config(config),
        )


def _report(result: SyncResult) -> None:
    """Print the result's status message, or the error with a hint."""
    if result.error is not None:
        print_sync_error(result.error)
        raise typer.Exit(exit_code_for(result.error))

    status = result.status_message
    console.print(f"{_MESSAGE_STYLES[status.kind]} {status.text}")
    if result.commit_url:
        console.print(f"[dim]{result.commit_url}[/dim]")


def _changes_table(changes: ChangeSet) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("", width=1)
    table.add_column("Path")
    table.add_column("Status")
    table.add_column("Lines", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Push", justify="center")

    for record in changes.records:
        symbol, style = _STATUS_STYLES[record.status]
        lines = f"+{record.estimated_additions} -{record.estimated_deletions}"
        if record.remote_size_bytes is None:
            size = f"{record.local_size_bytes} B"
        else:
            size = f"{record.remote_size_bytes} → {record.local_size_bytes} B"
        table.add_row(
            f"[{style}]{symbol}[/{style}]",
            record.path,
            f"[{style}]{record.status.value}[/{style}]",
            lines if record.is_change else "",
            size,
            "✓" if record.will_push else "",
        )
    return table


def connect(
    owner: str | None = typer.Option(None, "--owner", "-o", help="Repository owner"),
    repo: str | None = typer.Option(None, "--repo", "-r", help="Repository name"),
    url: str | None = typer.Option(
        None,
        "--url",
        help="Repository or published site URL (instead of --owner/--repo)",
    ),
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Branch to sync with (defaults to the repository's default branch)",
    ),
    base_path: str = typer.Option(
        "data",
        "--base-path",
        help="Directory in the repository that holds the documents",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        help="Personal access token (or set KBSYNC_TOKEN)",
    ),
) -> None:
    """
    Connect to a repository and save it as the sync target.

    Checks that the token is valid and may push to the repository.

    Examples:
        kbsync connect --owner me --repo notes
        kbsync connect --url https://me.github.io/notes/ --branch gh-pages
    """
    if url:
        parsed = RepositoryInfo.from_url(url)
        if parsed is None:
            print_error(
                f"Unrecognized repository URL: {url}",
                solution="kbsync connect --owner <owner> --repo <repo>",
            )
            raise typer.Exit(ExitCode.USER_ERROR)
        owner, repo = parsed.owner, parsed.repo

    if not owner or not repo:
        print_error(
            "Repository not specified",
            solution="kbsync connect --owner <owner> --repo <repo>",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    credential = token or get_env_token()
    if not credential:
        print_missing_token_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    config = load_config()
    # Tokens taken from the environment are not written to disk
    target = SyncTarget(
        credential=token or "",
        owner_id=owner,
        repo_id=repo,
        branch=branch or "main",
        base_path=base_path,
    )

    with _make_client(config, credential, owner, repo) as client:
        orchestrator = SyncOrchestrator(
            client,
            FileDocumentStore(get_data_dir(config)),
            target,
            _config_store(),
            Manifest.from_config(config),
        )
        result = orchestrator.connect(branch)

    _report(result)


def status() -> None:
    """
    Show the saved sync target and the last successful push.

    Makes no network calls.
    """
    config = load_config()
    target = _load_target(_config_store())

    console.print(f"[bold]Repository:[/bold] {target.full_name}")
    console.print(f"[bold]Branch:[/bold] {target.branch}")
    console.print(f"[bold]Base path:[/bold] {target.base_path or '/'}")
    console.print(f"[bold]Local documents:[/bold] {get_data_dir(config)}")
    console.print(f"[bold]Manifest:[/bold] {', '.join(e.path for e in config.manifest)}")

    if target.last_sync_commit_hash:
        when = (
            target.last_sync_timestamp.strftime("%Y-%m-%d %H:%M:%S")
            if target.last_sync_timestamp
            else "unknown time"
        )
        console.print(
            f"[bold]Last push:[/bold] {target.last_sync_commit_hash[:8]} at {when}"
        )
    else:
        console.print("[dim]Never pushed[/dim]")


def diff() -> None:
    """
    Compare local documents with the remote branch.

    Line counts are estimates from the difference in line totals.
    """
    with _session() as orchestrator:
        detected = orchestrator.detect_changes()

    if not detected.ok:
        print_sync_error(detected.error)
        raise typer.Exit(exit_code_for(detected.error))

    changes = detected.value
    if not changes.records:
        console.print("[yellow]No local documents found[/yellow]")
        return

    console.print(_changes_table(changes))
    console.print(f"\n{changes.summary()}")


def push(
    message: str | None = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (defaults to a timestamped one)",
    ),
    only: list[str] | None = typer.Option(
        None,
        "--only",
        help="Push only this document (path or name); repeatable",
    ),
) -> None:
    """
    Push changed local documents to the remote as one commit.

    Examples:
        kbsync push
        kbsync push -m "Add reading list"
        kbsync push --only links --only data/records.json
    """
    with _session() as orchestrator:
        detected = orchestrator.detect_changes()
        if not detected.ok:
            print_sync_error(detected.error)
            raise typer.Exit(exit_code_for(detected.error))

        changes = detected.value
        if only:
            unknown = [name for name in only if changes.get(name) is None]
            if unknown:
                print_error(
                    f"Unknown document: {', '.join(unknown)}",
                    solution="kbsync diff  # to list synced documents",
                )
                raise typer.Exit(ExitCode.USER_ERROR)
            changes.select_only(only)

        if not changes.selected:
            console.print("[blue]No changes to push[/blue]")
            return

        console.print(f"[blue]Pushing {len(changes.selected)} document(s)...[/blue]")
        result = orchestrator.push(changes, message)

    _report(result)


def pull(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Overwrite local documents without asking",
    ),
) -> None:
    """
    Replace local documents with the versions on the remote branch.

    Unpushed local edits are lost. Documents missing from the remote are
    left as they are.
    """
    with _session() as orchestrator:
        if not yes:
            confirmed = typer.confirm(
                f"Overwrite local documents with {orchestrator.target.full_name}"
                f"@{orchestrator.target.branch}?",
                default=False,
            )
            if not confirmed:
                console.print("[yellow]Pull cancelled[/yellow]")
                return

        console.print("[blue]Pulling remote documents...[/blue]")
        result = orchestrator.pull(confirm=True)

    _report(result)
