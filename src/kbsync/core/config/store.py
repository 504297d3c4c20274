"""
Persistence for the sync target record.

The sync workflows never read configuration from ambient state: they get a
SyncTarget value and a ConfigStore to save it back through.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from .models import SyncTarget

logger = logging.getLogger(__name__)


@runtime_checkable
class ConfigStore(Protocol):
    """Load/save contract for the SyncTarget record."""

    def load(self) -> SyncTarget | None:
        """Return the saved target, or None if nothing is configured."""
        ...

    def save(self, record: SyncTarget) -> None:
        """Persist the target, replacing any previous record."""
        ...


class JsonConfigStore:
    """
    ConfigStore backed by a JSON file.

    Writes go through a temp file and an atomic rename. The file holds a
    credential, so it is created readable by the owner only.

    Example:
        >>> store = JsonConfigStore(Path("~/.config/kbsync/sync-target.json"))
        >>> target = store.load()
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> SyncTarget | None:
        if not self.path.exists():
            return None

        try:
            return SyncTarget.model_validate_json(self.path.read_text())
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            logger.warning("Failed to load sync target from %s: %s", self.path, e)
            return None

    def save(self, record: SyncTarget) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(".tmp")
        # A leftover temp file would keep its old mode under O_CREAT
        temp_path.unlink(missing_ok=True)
        try:
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.model_dump_json(indent=2))
            temp_path.replace(self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.debug("Saved sync target to %s", self.path)

    def clear(self) -> None:
        """Forget the saved target."""
        if self.path.exists():
            self.path.unlink()
