"""
Remote object store protocol.

Defines the interface the sync workflows depend on. The HTTP client in
``kbsync.core.remote.client`` implements it; tests substitute an in-memory
fake that returns canned results at each step.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from kbsync.core.remote.models import Identity, RemoteFile, RepositoryInfo, TreeEntry
from kbsync.core.remote.result import Result


@runtime_checkable
class RemoteObjects(Protocol):
    """
    Protocol for remote object store implementations.

    Each method performs one network round trip and returns a tagged
    result. Implementations never raise for remote failures.
    """

    def get_file_content(self, path: str, ref: str) -> Result[RemoteFile]:
        """Read a file at a ref. Missing files are ``Err(NotFoundError)``."""
        ...

    def create_blob(self, content: str) -> Result[str]:
        """Store content as a blob and return its hash."""
        ...

    def get_branch_head(self, branch: str) -> Result[str]:
        """Return the commit hash the branch points at."""
        ...

    def get_commit_tree(self, commit_hash: str) -> Result[str]:
        """Return the tree hash of a commit."""
        ...

    def list_tree_entries(self, tree_hash: str, prefix: str = "") -> Result[list[TreeEntry]]:
        """List blobs below ``prefix`` recursively, paths relative to it."""
        ...

    def create_tree(self, base_tree_hash: str | None, entries: dict[str, str]) -> Result[str]:
        """Create a tree from a base tree plus ``{path: blob_hash}`` overrides."""
        ...

    def create_commit(self, message: str, tree_hash: str, parent_hash: str | None) -> Result[str]:
        """Create a commit; ``parent_hash=None`` makes a root commit."""
        ...

    def update_branch_ref(self, branch: str, commit_hash: str) -> Result[None]:
        """Fast-forward the branch; a moved branch is ``Err(ConflictError)``."""
        ...

    def create_branch_ref(self, branch: str, commit_hash: str) -> Result[None]:
        """Create a new branch ref."""
        ...

    def validate_credential(self) -> Result[Identity]:
        """Look up the identity behind the credential."""
        ...

    def check_write_permission(self, repo_id: str) -> Result[RepositoryInfo]:
        """Confirm the credential may push to the repository."""
        ...

    def get_repository(self) -> Result[RepositoryInfo]:
        """Read repository metadata."""
        ...

    def list_branches(self) -> Result[list[str]]:
        """List branch names."""
        ...
