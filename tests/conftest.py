"""
Pytest configuration and shared fixtures.

Provides an in-memory remote seeded with a knowledge base, local document
stores, sync targets, and an isolated environment for config tests.
"""

import os
from datetime import datetime, timezone

import pytest

from fakes import FakeRemote, MemoryConfigStore
from kbsync.core.config import clear_cache
from kbsync.core.config.models import SyncTarget
from kbsync.core.documents import MemoryDocumentStore
from kbsync.core.sync import Manifest, SyncOrchestrator

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)

RECORDS = '[\n  {"id": 1, "title": "Reading list"}\n]\n'
LINKS = '[\n  {"url": "https://example.com", "tags": ["ref"]}\n]\n'
COMMANDS = '[\n  {"cmd": "ls -la", "note": "list"}\n]\n'


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """
    Isolate tests from the real environment.

    Removes KBSYNC_* variables and points XDG directories into tmp_path.
    The config cache is cleared around each test.
    """
    for key in list(os.environ):
        if key.startswith("KBSYNC_"):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)

    clear_cache()
    yield monkeypatch
    clear_cache()

    # load_layered_env writes os.environ directly
    for key in list(os.environ):
        if key.startswith("KBSYNC_"):
            del os.environ[key]


# ==============================================================================
# Sync Fixtures
# ==============================================================================


@pytest.fixture
def target() -> SyncTarget:
    return SyncTarget(credential="ghp_test", owner_id="me", repo_id="notes", branch="main")


@pytest.fixture
def remote() -> FakeRemote:
    """Remote whose main branch holds records and links under data/."""
    return FakeRemote(
        {
            "README.md": "# Notes\n",
            "data/records.json": RECORDS,
            "data/links.json": LINKS,
        }
    )


@pytest.fixture
def documents() -> MemoryDocumentStore:
    """Local store in sync with the ``remote`` fixture, plus one new document."""
    return MemoryDocumentStore({"records": RECORDS, "links": LINKS, "commands": COMMANDS})


@pytest.fixture
def config_store(target: SyncTarget) -> MemoryConfigStore:
    return MemoryConfigStore(target)


@pytest.fixture
def manifest() -> Manifest:
    return Manifest()


@pytest.fixture
def orchestrator(remote, documents, target, config_store, manifest) -> SyncOrchestrator:
    return SyncOrchestrator(
        remote,
        documents,
        target,
        config_store,
        manifest,
        clock=lambda: FIXED_NOW,
    )
