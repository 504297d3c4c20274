"""
The explicit, ordered list of synced documents.

Only documents named here are ever read, compared, pushed or pulled.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from kbsync.core.config.models import DEFAULT_MANIFEST, KbsyncConfig, ManifestEntry


class Manifest:
    """
    Ordered, duplicate-free collection of ManifestEntry.

    Example:
        >>> manifest = Manifest([ManifestEntry(name="links", path="links.json")])
        >>> [entry.name for entry in manifest]
        ['links']
    """

    def __init__(self, entries: Iterable[ManifestEntry] = DEFAULT_MANIFEST) -> None:
        self._entries: list[ManifestEntry] = []
        for entry in entries:
            if any(e.name == entry.name or e.path == entry.path for e in self._entries):
                raise ValueError(f"Duplicate manifest entry: {entry.name} ({entry.path})")
            self._entries.append(entry)

    @classmethod
    def from_config(cls, config: KbsyncConfig) -> Manifest:
        return cls(config.manifest)

    @classmethod
    def from_names(cls, names: Iterable[str], suffix: str = ".json") -> Manifest:
        """Manifest mapping each name to ``<name><suffix>``."""
        return cls(ManifestEntry(name=name, path=f"{name}{suffix}") for name in names)

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return any(e.name == name for e in self._entries)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self._entries]

    def entry_for_path(self, relative_path: str) -> ManifestEntry | None:
        for entry in self._entries:
            if entry.path == relative_path:
                return entry
        return None
