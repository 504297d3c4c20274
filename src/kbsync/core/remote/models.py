"""
Data models for remote repository objects.

Defines Pydantic models for the values returned by the remote client:
file contents, tree entries, the authenticated identity and repository
metadata.
"""

from __future__ import annotations

import hashlib
import re
from typing import Any

from pydantic import BaseModel, Field, computed_field


def git_blob_hash(content: str | bytes) -> str:
    """
    Compute the content address of a blob.

    Uses the git object format (``blob <size>\\0<bytes>`` hashed with SHA-1)
    so the result matches the hash the remote assigns to the same bytes.

    Example:
        >>> git_blob_hash("")
        'e69de29bb2d1d6434b8b29ae775ad8c2e48c5391'
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    header = f"blob {len(data)}\0".encode()
    return hashlib.sha1(header + data).hexdigest()


class RemoteFile(BaseModel):
    """A file read from the remote at a given ref."""

    path: str = Field(..., description="Repository-relative path")
    hash: str = Field(..., description="Blob hash of the file content")
    content: str = Field(..., description="Decoded UTF-8 content")

    @computed_field
    @property
    def size_bytes(self) -> int:
        """Size of the encoded content in bytes."""
        return len(self.content.encode("utf-8"))


class TreeEntry(BaseModel):
    """One blob in a tree listing, path relative to the listed prefix."""

    path: str
    blob_hash: str


class Identity(BaseModel):
    """The account a credential belongs to."""

    login: str
    name: str | None = None


class RepositoryInfo(BaseModel):
    """
    Repository metadata.

    Example:
        >>> RepositoryInfo.from_url("https://github.com/user/notes.git")
        RepositoryInfo(owner='user', repo='notes', ...)
    """

    owner: str = Field(..., description="Repository owner (user or organization)")
    repo: str = Field(..., description="Repository name")
    default_branch: str | None = Field(default=None)
    can_push: bool = Field(default=False, description="Whether the credential may write")
    private: bool = Field(default=False)
    size: int = Field(default=0, description="Repository size reported by the remote")

    @computed_field
    @property
    def full_name(self) -> str:
        """Full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    @property
    def is_empty(self) -> bool:
        """A repository with no objects reports size 0."""
        return self.size == 0

    @classmethod
    def from_api(cls, data: Any) -> RepositoryInfo:
        """
        Build from a repository API payload.

        Raises:
            ValueError: If the payload is not a repository object
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a repository object, got {type(data).__name__}")
        owner = data.get("owner")
        permissions = data.get("permissions")
        return cls(
            owner=owner.get("login", "") if isinstance(owner, dict) else "",
            repo=data.get("name", ""),
            default_branch=data.get("default_branch"),
            can_push=isinstance(permissions, dict) and bool(permissions.get("push", False)),
            private=bool(data.get("private", False)),
            size=data.get("size") or 0,
        )

    @classmethod
    def from_url(cls, url: str) -> RepositoryInfo | None:
        """
        Parse owner and repository name from a URL.

        Handles formats:
        - git@github.com:user/repo.git
        - https://github.com/user/repo(.git)
        - https://user.github.io/repo/ (a published site)

        Returns:
            RepositoryInfo or None if the URL is not recognized
        """
        if not url:
            return None

        ssh_match = re.match(r"git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$", url)
        if ssh_match:
            return cls(owner=ssh_match.group(1), repo=ssh_match.group(2))

        https_match = re.match(r"https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$", url)
        if https_match:
            return cls(owner=https_match.group(1), repo=https_match.group(2))

        pages_match = re.match(r"https?://([^./]+)\.github\.io/([^/]+)", url)
        if pages_match:
            return cls(owner=pages_match.group(1), repo=pages_match.group(2))

        return None


__all__ = [
    "Identity",
    "RemoteFile",
    "RepositoryInfo",
    "TreeEntry",
    "git_blob_hash",
]
