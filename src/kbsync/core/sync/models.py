"""
Data models for the sync engine.

Defines Pydantic models for change records, push state, and results.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from kbsync.core.remote.errors import SyncError


class ChangeStatus(str, Enum):
    """How a local document compares to its remote counterpart."""

    ADDED = "added"
    MODIFIED = "modified"
    # Never produced: only manifest entries are observed, so a remote-only
    # file is invisible rather than deleted.
    DELETED = "deleted"
    UNCHANGED = "unchanged"


class PushState(str, Enum):
    """States of the push workflow."""

    IDLE = "idle"
    CHANGES_DETECTED = "changes_detected"
    BUILDING = "building"
    COMMITTING = "committing"
    PUSHED = "pushed"
    FAILED = "failed"


class MessageKind(str, Enum):
    """Category of the status message shown after an attempt."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class ChangeRecord(BaseModel):
    """
    One manifest document classified against the remote.

    Created fresh by every change detection and never persisted. The line
    estimates are the positive difference in line counts, not a diff.
    """

    name: str = Field(description="Logical document name")
    path: str = Field(description="Repository path of the document")
    status: ChangeStatus
    estimated_additions: int = Field(default=0, ge=0)
    estimated_deletions: int = Field(default=0, ge=0)
    local_size_bytes: int = Field(default=0, ge=0)
    remote_size_bytes: int | None = Field(default=None, ge=0)
    remote_hash: str | None = Field(
        default=None,
        description="Blob hash of the remote file when it exists",
    )
    selected: bool = Field(default=False)

    @property
    def is_change(self) -> bool:
        return self.status != ChangeStatus.UNCHANGED

    @property
    def will_push(self) -> bool:
        """Selected and actually different from the remote."""
        return self.selected and self.is_change


class ChangeSet(BaseModel):
    """
    Ordered change records from one detection, in manifest order.

    Example:
        >>> changes.toggle("data/links.json")
        >>> [c.path for c in changes.selected]
    """

    records: list[ChangeRecord] = Field(default_factory=list)
    ref: str | None = Field(default=None, description="Branch the remote side was read from")

    def __len__(self) -> int:
        return len(self.records)

    @property
    def changed(self) -> list[ChangeRecord]:
        return [r for r in self.records if r.is_change]

    @property
    def selected(self) -> list[ChangeRecord]:
        return [r for r in self.records if r.will_push]

    def get(self, path: str) -> ChangeRecord | None:
        """Look up a record by repository path or document name."""
        for record in self.records:
            if record.path == path or record.name == path:
                return record
        return None

    def toggle(self, path: str) -> bool:
        """
        Flip the selection of one record.

        Unchanged records cannot be selected.

        Returns:
            The new selection state

        Raises:
            KeyError: If no record matches ``path``
        """
        record = self.get(path)
        if record is None:
            raise KeyError(path)
        if record.is_change:
            record.selected = not record.selected
        return record.selected

    def select_only(self, paths: list[str]) -> None:
        """Select exactly the given changed records (by path or name)."""
        wanted = set(paths)
        for record in self.records:
            record.selected = record.is_change and (
                record.path in wanted or record.name in wanted
            )

    def count(self, status: ChangeStatus) -> int:
        return sum(1 for r in self.records if r.status == status)

    def summary(self) -> str:
        """Short human-readable summary like '+1 added, ~2 modified'."""
        parts = []
        if added := self.count(ChangeStatus.ADDED):
            parts.append(f"+{added} added")
        if modified := self.count(ChangeStatus.MODIFIED):
            parts.append(f"~{modified} modified")
        if unchanged := self.count(ChangeStatus.UNCHANGED):
            parts.append(f"{unchanged} unchanged")
        return ", ".join(parts) or "no documents"


class StatusMessage(BaseModel):
    """The single user-facing message produced by one attempt."""

    kind: MessageKind
    text: str


class SyncResult(BaseModel):
    """
    Result of one push or pull invocation.

    Provides detailed feedback about what happened during the sync.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool = Field(description="Whether the operation succeeded")

    operation: str = Field(description="Type of operation (push, pull, connect)")

    commit_hash: str | None = Field(
        default=None,
        description="Head commit after the operation",
    )

    commit_url: str | None = Field(default=None)

    files_updated: int = Field(
        default=0,
        description="Documents written remotely (push) or locally (pull)",
    )

    error: SyncError | None = Field(default=None, exclude=True)

    message: str = Field(default="", description="Human-readable result message")

    updated_paths: list[str] = Field(default_factory=list)

    # Timing
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def duration_seconds(self) -> float | None:
        """Calculate operation duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def error_kind(self) -> str | None:
        return self.error.kind if self.error else None

    @property
    def status_message(self) -> StatusMessage:
        """Categorized message for display."""
        if not self.success:
            # Declined or unconfirmed attempts carry no error
            kind = MessageKind.ERROR if self.error else MessageKind.INFO
            return StatusMessage(kind=kind, text=self.summary())
        if self.files_updated == 0:
            return StatusMessage(kind=MessageKind.INFO, text=self.summary())
        return StatusMessage(kind=MessageKind.SUCCESS, text=self.summary())

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        if not self.success:
            detail = self.message or (str(self.error) if self.error else "unknown error")
            return f"{self.operation} failed: {detail}"

        parts = [f"{self.operation} succeeded"]

        if self.commit_hash:
            parts.append(f"commit {self.commit_hash[:8]}")

        if self.operation != "connect":
            parts.append(f"{self.files_updated} file(s) updated")

        if self.message:
            parts.append(self.message)

        return ", ".join(parts)
