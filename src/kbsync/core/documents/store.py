"""
Local document store protocol and implementations.

The knowledge base keeps its records, links and command snippets in a
local store. The sync engine sees that store only as named text documents
it can read and overwrite.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


@runtime_checkable
class DocumentStore(Protocol):
    """
    Protocol for the local side of a sync.

    Documents are addressed by logical name and hold text exactly as it
    should be stored remotely.
    """

    def read(self, name: str) -> str | None:
        """Return the document's content, or None if it does not exist."""
        ...

    def write(self, name: str, content: str) -> None:
        """Create or overwrite a document."""
        ...


class MemoryDocumentStore:
    """DocumentStore held in a dict, for embedding and tests."""

    def __init__(self, documents: dict[str, str] | None = None) -> None:
        self.documents: dict[str, str] = dict(documents or {})

    def read(self, name: str) -> str | None:
        return self.documents.get(name)

    def write(self, name: str, content: str) -> None:
        self.documents[name] = content


class FileDocumentStore:
    """
    DocumentStore keeping one file per document in a directory.

    Content is read and written as UTF-8 with newline translation
    disabled, so bytes survive a push/pull round trip unchanged.

    Example:
        >>> store = FileDocumentStore(Path("~/.local/share/kbsync/documents"))
        >>> store.write("links", "[]")
        >>> store.read("links")
        '[]'
    """

    def __init__(self, root: Path, suffix: str = ".json") -> None:
        self.root = Path(root).expanduser()
        self.suffix = suffix

    def path_for(self, name: str) -> Path:
        """File holding a document."""
        if not _NAME_PATTERN.match(name):
            raise ValueError(f"Invalid document name: {name!r}")
        return self.root / f"{name}{self.suffix}"

    def read(self, name: str) -> str | None:
        path = self.path_for(name)
        if not path.exists():
            return None
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()

    def write(self, name: str, content: str) -> None:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8", newline="") as f:
                f.write(content)
            temp_path.replace(path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.debug("Wrote document %s (%d bytes)", name, len(content.encode("utf-8")))

    def names(self) -> list[str]:
        """Names of documents present on disk."""
        if not self.root.exists():
            return []
        return sorted(p.name[: -len(self.suffix)] for p in self.root.glob(f"*{self.suffix}"))
