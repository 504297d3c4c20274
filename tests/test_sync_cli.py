"""
Tests for the kbsync CLI commands.

Tests cover:
- connect (token sources, URL parsing, validation errors)
- status
- diff
- push (selection, nothing to push, conflicts)
- pull (confirmation)

The REST client is replaced with the in-memory remote.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from conftest import COMMANDS, LINKS, RECORDS
from fakes import FakeRemote
from kbsync.cli import app
from kbsync.cli.errors import ExitCode
from kbsync.core.config import JsonConfigStore, SyncTarget, get_sync_target_path
from kbsync.core.documents import FileDocumentStore

runner = CliRunner()


@pytest.fixture
def saved_store() -> JsonConfigStore:
    store = JsonConfigStore(get_sync_target_path())
    store.save(SyncTarget(credential="ghp_saved", owner_id="me", repo_id="notes"))
    return store


@pytest.fixture
def local(tmp_path) -> FileDocumentStore:
    store = FileDocumentStore(tmp_path / "data" / "kbsync" / "documents")
    store.write("records", RECORDS)
    store.write("links", LINKS)
    store.write("commands", COMMANDS)
    return store


@pytest.fixture
def patched_client(remote: FakeRemote):
    with patch("kbsync.cli.sync._make_client", return_value=remote) as factory:
        yield factory


class TestConnect:
    """Tests for kbsync connect."""

    def test_connect_saves_target(self, patched_client, remote: FakeRemote) -> None:
        result = runner.invoke(app, ["connect", "--owner", "me", "--repo", "notes", "--token", "t"])

        assert result.exit_code == 0, result.output
        assert "Connected to me/notes on branch main" in result.output
        saved = JsonConfigStore(get_sync_target_path()).load()
        assert saved.full_name == "me/notes"
        assert saved.credential == "t"
        assert patched_client.call_args.args[1:] == ("t", "me", "notes")

    def test_env_token_not_saved(self, patched_client, monkeypatch) -> None:
        monkeypatch.setenv("KBSYNC_TOKEN", "from-env")

        result = runner.invoke(app, ["connect", "--owner", "me", "--repo", "notes"])

        assert result.exit_code == 0, result.output
        assert JsonConfigStore(get_sync_target_path()).load().credential == ""
        assert patched_client.call_args.args[1] == "from-env"

    def test_connect_from_pages_url(self, patched_client) -> None:
        result = runner.invoke(
            app, ["connect", "--url", "https://me.github.io/notes/", "--token", "t"]
        )

        assert result.exit_code == 0, result.output
        assert JsonConfigStore(get_sync_target_path()).load().repo_id == "notes"

    def test_missing_token(self, patched_client) -> None:
        result = runner.invoke(app, ["connect", "--owner", "me", "--repo", "notes"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "No access token" in result.output
        patched_client.assert_not_called()

    def test_missing_repository(self) -> None:
        result = runner.invoke(app, ["connect", "--token", "t"])
        assert result.exit_code == ExitCode.USER_ERROR

    def test_rejected_credential(self, patched_client, remote: FakeRemote) -> None:
        remote.credential_valid = False

        result = runner.invoke(app, ["connect", "--owner", "me", "--repo", "notes", "--token", "t"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Invalid or expired credential" in result.output
        assert JsonConfigStore(get_sync_target_path()).load() is None


class TestStatus:
    """Tests for kbsync status."""

    def test_not_connected(self) -> None:
        result = runner.invoke(app, ["status"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Not connected" in result.output

    def test_shows_target(self, saved_store: JsonConfigStore) -> None:
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0, result.output
        assert "me/notes" in result.output
        assert "Never pushed" in result.output


class TestDiff:
    def test_lists_changes(self, saved_store, local, patched_client) -> None:
        result = runner.invoke(app, ["diff"])

        assert result.exit_code == 0, result.output
        assert "data/commands.json" in result.output
        assert "added" in result.output
        assert "+1 added, 2 unchanged" in result.output


class TestPush:
    """Tests for kbsync push."""

    def test_push(self, saved_store, local, patched_client, remote: FakeRemote) -> None:
        result = runner.invoke(app, ["push", "-m", "From the CLI"])

        assert result.exit_code == 0, result.output
        assert "push succeeded" in result.output
        assert remote.files_at("main")["data/commands.json"] == COMMANDS
        assert saved_store.load().last_sync_commit_hash == remote.refs["main"]

    def test_push_only(self, saved_store, local, patched_client, remote: FakeRemote) -> None:
        local.write("links", "[]\n")

        result = runner.invoke(app, ["push", "--only", "links"])

        assert result.exit_code == 0, result.output
        files = remote.files_at("main")
        assert files["data/links.json"] == "[]\n"
        assert "data/commands.json" not in files

    def test_push_only_unknown(self, saved_store, local, patched_client) -> None:
        result = runner.invoke(app, ["push", "--only", "bogus"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Unknown document" in result.output

    def test_nothing_to_push(self, saved_store, local, patched_client, remote) -> None:
        local.write("commands", COMMANDS)
        remote.advance({"data/commands.json": COMMANDS})

        result = runner.invoke(app, ["push"])

        assert result.exit_code == 0, result.output
        assert "No changes to push" in result.output
        assert "create_commit" not in remote.calls

    def test_conflict(self, saved_store, local, patched_client, remote: FakeRemote) -> None:
        remote.before_ref_update = lambda: remote.advance({"README.md": "moved"})

        result = runner.invoke(app, ["push"])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "moved since it was read" in result.output
        assert saved_store.load().last_sync_commit_hash is None


class TestPull:
    """Tests for kbsync pull."""

    def test_pull_with_yes(self, saved_store, local, patched_client) -> None:
        local.write("links", "local edit")

        result = runner.invoke(app, ["pull", "--yes"])

        assert result.exit_code == 0, result.output
        assert "pull succeeded" in result.output
        assert local.read("links") == LINKS

    def test_pull_declined(self, saved_store, local, patched_client, remote: FakeRemote) -> None:
        local.write("links", "local edit")

        result = runner.invoke(app, ["pull"], input="n\n")

        assert result.exit_code == 0, result.output
        assert "Pull cancelled" in result.output
        assert local.read("links") == "local edit"
        assert remote.calls == []

    def test_pull_confirmed(self, saved_store, local, patched_client) -> None:
        local.write("links", "local edit")

        result = runner.invoke(app, ["pull"], input="y\n")

        assert result.exit_code == 0, result.output
        assert local.read("links") == LINKS
