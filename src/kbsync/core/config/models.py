"""
Configuration data models for kbsync.

These models define the structure of .kbsync.json and
~/.config/kbsync/config.json, and the persisted sync target record,
with validation via Pydantic.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ManifestEntry(BaseModel):
    """
    One synced logical document.

    Maps the name the local store knows a document by to the file path it
    occupies under the target's base path.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Logical document name in the local store")
    path: str = Field(..., min_length=1, description="File path relative to the base path")

    @field_validator("path")
    @classmethod
    def _relative_path(cls, v: str) -> str:
        cleaned = v.strip("/")
        if not cleaned or ".." in PurePosixPath(cleaned).parts:
            raise ValueError(f"Manifest path must be relative and inside the base path: {v!r}")
        return cleaned


DEFAULT_MANIFEST: tuple[ManifestEntry, ...] = (
    ManifestEntry(name="records", path="records.json"),
    ManifestEntry(name="links", path="links.json"),
    ManifestEntry(name="commands", path="commands.json"),
    ManifestEntry(name="sections", path="sections.json"),
    ManifestEntry(name="workspaces", path="workspaces.json"),
)


class SyncTarget(BaseModel):
    """
    Where and how to sync: the persisted sync target record.

    Loaded and saved through a ConfigStore. The last-sync fields change
    only after a push has moved the remote branch.

    Example:
        >>> target = SyncTarget(
        ...     credential="ghp_xxx", owner_id="user", repo_id="notes", branch="main"
        ... )
        >>> target.remote_path("records.json")
        'data/records.json'
    """

    credential: str = Field(..., repr=False, description="Bearer token for the remote")
    owner_id: str = Field(..., min_length=1, description="Repository owner")
    repo_id: str = Field(..., min_length=1, description="Repository name")
    branch: str = Field(default="main", min_length=1, description="Branch to sync with")
    base_path: str = Field(default="data", description="Directory holding synced documents")

    last_sync_commit_hash: str | None = Field(
        default=None,
        description="Commit created by the last successful push",
    )
    last_sync_timestamp: datetime | None = Field(
        default=None,
        description="When the last successful push finished",
    )

    @field_validator("base_path")
    @classmethod
    def _strip_slashes(cls, v: str) -> str:
        return v.strip("/")

    @property
    def full_name(self) -> str:
        return f"{self.owner_id}/{self.repo_id}"

    def remote_path(self, relative_path: str) -> str:
        """Repository path of a document under the base path."""
        if not self.base_path:
            return relative_path
        return f"{self.base_path}/{relative_path}"

    def with_sync(self, commit_hash: str, at: datetime) -> SyncTarget:
        """Copy of this target recording a successful push."""
        return self.model_copy(
            update={"last_sync_commit_hash": commit_hash, "last_sync_timestamp": at}
        )


class KbsyncConfig(BaseModel):
    """
    Main kbsync configuration.

    Merged from defaults, user config, project config and KBSYNC_* env vars.
    """

    model_config = ConfigDict(extra="ignore")

    api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the remote REST API",
    )
    web_url: str = Field(
        default="https://github.com",
        description="Base URL for commit links",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Retries for transient transport failures (0 disables)",
    )
    data_dir: str | None = Field(
        default=None,
        description="Directory of the local document store (defaults to XDG data home)",
    )
    manifest: list[ManifestEntry] = Field(
        default_factory=lambda: list(DEFAULT_MANIFEST),
        description="Ordered list of synced documents",
    )

    @field_validator("manifest")
    @classmethod
    def _unique_entries(cls, v: list[ManifestEntry]) -> list[ManifestEntry]:
        names = [entry.name for entry in v]
        paths = [entry.path for entry in v]
        if len(set(names)) != len(names):
            raise ValueError("Manifest document names must be unique")
        if len(set(paths)) != len(paths):
            raise ValueError("Manifest paths must be unique")
        return v
