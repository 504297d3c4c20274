"""Tests for local document stores."""

import pytest

from kbsync.core.documents import DocumentStore, FileDocumentStore, MemoryDocumentStore


class TestMemoryDocumentStore:
    def test_read_write(self) -> None:
        store = MemoryDocumentStore({"links": "[]"})

        assert isinstance(store, DocumentStore)
        assert store.read("links") == "[]"
        assert store.read("records") is None

        store.write("records", "{}")
        assert store.read("records") == "{}"


class TestFileDocumentStore:
    """Tests for FileDocumentStore."""

    @pytest.fixture
    def store(self, tmp_path) -> FileDocumentStore:
        return FileDocumentStore(tmp_path / "documents")

    def test_missing_document(self, store: FileDocumentStore) -> None:
        assert store.read("links") is None
        assert store.names() == []

    def test_preserves_exact_bytes(self, store: FileDocumentStore) -> None:
        """Line endings and non-ASCII text survive a write/read cycle."""
        content = "first\r\nsecond\nthird ✓ 日本語"

        store.write("records", content)

        assert store.read("records") == content
        assert store.path_for("records").read_bytes() == content.encode("utf-8")

    def test_overwrite(self, store: FileDocumentStore) -> None:
        store.write("links", "old")
        store.write("links", "new")

        assert store.read("links") == "new"
        assert store.names() == ["links"]

    def test_names_lists_documents(self, store: FileDocumentStore) -> None:
        store.write("records", "a")
        store.write("commands", "b")
        (store.root / "notes.txt").write_text("ignored")

        assert store.names() == ["commands", "records"]

    @pytest.mark.parametrize("name", ["../escape", "a/b", "", ".hidden"])
    def test_rejects_unsafe_names(self, store: FileDocumentStore, name: str) -> None:
        with pytest.raises(ValueError, match="Invalid document name"):
            store.path_for(name)
