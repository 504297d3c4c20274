"""
Tests for change classification, ChangeSet selection and the manifest.
"""

import pytest

from fakes import FakeRemote
from kbsync.core.config.models import ManifestEntry, SyncTarget
from kbsync.core.documents import MemoryDocumentStore
from kbsync.core.remote.errors import PermissionDeniedError
from kbsync.core.sync import ChangeDetector, ChangeSet, ChangeStatus, Manifest, classify
from kbsync.core.sync.changes import count_lines, estimate_line_delta


class TestLineEstimates:
    """Tests for the line-count estimates."""

    def test_count_lines(self) -> None:
        assert count_lines("") == 0
        assert count_lines("one") == 1
        assert count_lines("one\ntwo") == 2
        assert count_lines("one\ntwo\n") == 3
        assert count_lines("one\r\ntwo") == 2

    def test_only_newline_separates_lines(self) -> None:
        """Form feeds and other separators are legal inside JSON strings."""
        assert count_lines('["a\x0cb", "c\x1cd", "e\u2028f"]') == 1

    def test_trailing_newline_counts(self) -> None:
        assert estimate_line_delta("a\n", "a") == (1, 0)
        assert estimate_line_delta("a", "a\n") == (0, 1)

    def test_delta_is_positive_difference(self) -> None:
        assert estimate_line_delta("a\nb\nc\n", "a\n") == (2, 0)
        assert estimate_line_delta("a\n", "a\nb\nc\n") == (0, 2)

    def test_same_length_edit_reports_nothing(self) -> None:
        """No diff is run, so an in-place edit has a zero estimate."""
        assert estimate_line_delta("a\nb\n", "a\nX\n") == (0, 0)


class TestClassify:
    """Tests for classify()."""

    def test_absent_remote_is_added(self) -> None:
        record = classify("links", "data/links.json", "[\n]\n", None)

        assert record.status == ChangeStatus.ADDED
        assert record.estimated_additions == 3
        assert record.remote_size_bytes is None
        assert record.selected is True

    def test_equal_bytes_are_unchanged(self) -> None:
        record = classify("links", "data/links.json", "[]", "[]", "abc123")

        assert record.status == ChangeStatus.UNCHANGED
        assert record.selected is False
        assert record.remote_hash == "abc123"

    def test_differing_bytes_are_modified(self) -> None:
        record = classify("links", "data/links.json", "a\nb\nc\n", "a\n")

        assert record.status == ChangeStatus.MODIFIED
        assert record.estimated_additions == 2
        assert record.estimated_deletions == 0
        assert record.selected is True

    def test_line_ending_change_is_modified(self) -> None:
        """Comparison is byte for byte; no normalization."""
        record = classify("links", "data/links.json", "a\r\n", "a\n")
        assert record.status == ChangeStatus.MODIFIED

    def test_sizes_are_utf8_bytes(self) -> None:
        record = classify("records", "data/records.json", "日本", "ab")

        assert record.local_size_bytes == 6
        assert record.remote_size_bytes == 2


class TestChangeSet:
    """Tests for ChangeSet selection."""

    @pytest.fixture
    def changes(self) -> ChangeSet:
        return ChangeSet(
            records=[
                classify("records", "data/records.json", "x", "x"),
                classify("links", "data/links.json", "new", "old"),
                classify("commands", "data/commands.json", "cmd", None),
            ],
            ref="main",
        )

    def test_changed_and_selected(self, changes: ChangeSet) -> None:
        assert len(changes) == 3
        assert [r.name for r in changes.changed] == ["links", "commands"]
        assert [r.name for r in changes.selected] == ["links", "commands"]

    def test_toggle(self, changes: ChangeSet) -> None:
        assert changes.toggle("data/links.json") is False
        assert [r.name for r in changes.selected] == ["commands"]
        assert changes.toggle("links") is True

    def test_unchanged_cannot_be_selected(self, changes: ChangeSet) -> None:
        assert changes.toggle("records") is False
        assert changes.get("records").will_push is False

    def test_toggle_unknown_path(self, changes: ChangeSet) -> None:
        with pytest.raises(KeyError):
            changes.toggle("data/nope.json")

    def test_select_only(self, changes: ChangeSet) -> None:
        changes.select_only(["commands", "records"])
        assert [r.name for r in changes.selected] == ["commands"]

    def test_summary(self, changes: ChangeSet) -> None:
        assert changes.summary() == "+1 added, ~1 modified, 1 unchanged"
        assert ChangeSet().summary() == "no documents"


class TestManifest:
    """Tests for the Manifest collection."""

    def test_default_documents(self) -> None:
        manifest = Manifest()
        assert manifest.names == ["records", "links", "commands", "sections", "workspaces"]
        assert "links" in manifest
        assert len(manifest) == 5

    def test_from_names(self) -> None:
        manifest = Manifest.from_names(["notes", "tags"], suffix=".md")
        assert [e.path for e in manifest] == ["notes.md", "tags.md"]
        assert manifest.entry_for_path("tags.md").name == "tags"
        assert manifest.entry_for_path("missing.md") is None

    def test_rejects_duplicates(self) -> None:
        with pytest.raises(ValueError, match="Duplicate manifest entry"):
            Manifest(
                [
                    ManifestEntry(name="links", path="links.json"),
                    ManifestEntry(name="links", path="other.json"),
                ]
            )

    def test_entry_path_must_stay_inside_base(self) -> None:
        with pytest.raises(ValueError):
            ManifestEntry(name="evil", path="../secrets.json")


class TestChangeDetector:
    """Tests for ChangeDetector against the in-memory remote."""

    def test_reads_in_manifest_order(self) -> None:
        remote = FakeRemote({"kb/b.json": "b", "kb/a.json": "a"})
        documents = MemoryDocumentStore({"a": "a", "b": "changed"})
        target = SyncTarget(credential="t", owner_id="me", repo_id="notes", base_path="/kb/")
        detector = ChangeDetector(remote, documents, Manifest.from_names(["b", "a"]))

        changes = detector.detect(target).unwrap()

        assert [r.path for r in changes.records] == ["kb/b.json", "kb/a.json"]
        assert changes.get("b").status == ChangeStatus.MODIFIED
        assert changes.get("a").status == ChangeStatus.UNCHANGED
        assert changes.ref == "main"
        assert remote.calls == ["get_file_content", "get_file_content"]

    def test_empty_base_path(self) -> None:
        remote = FakeRemote({"links.json": "[]"})
        target = SyncTarget(credential="t", owner_id="me", repo_id="notes", base_path="")
        detector = ChangeDetector(
            remote, MemoryDocumentStore({"links": "[]"}), Manifest.from_names(["links"])
        )

        changes = detector.detect(target).unwrap()

        assert changes.get("links.json").status == ChangeStatus.UNCHANGED

    def test_stops_at_first_failure(self) -> None:
        remote = FakeRemote({})
        remote.failures["get_file_content"] = PermissionDeniedError("Forbidden")
        documents = MemoryDocumentStore({"a": "a", "b": "b"})
        target = SyncTarget(credential="t", owner_id="me", repo_id="notes")

        result = ChangeDetector(remote, documents, Manifest.from_names(["a", "b"])).detect(target)

        assert not result.ok
        assert isinstance(result.error, PermissionDeniedError)
        assert remote.count("get_file_content") == 1
