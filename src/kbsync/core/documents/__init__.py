"""
Local document storage.

Example:
    >>> from kbsync.core.documents import FileDocumentStore
    >>> store = FileDocumentStore(Path("documents"))
    >>> store.read("records")
"""

from kbsync.core.documents.store import DocumentStore, FileDocumentStore, MemoryDocumentStore

__all__ = ["DocumentStore", "FileDocumentStore", "MemoryDocumentStore"]
