"""
Remote object repository access.

Provides a REST client that exposes the remote's content-addressed object
graph (blobs, trees, commits, branch refs) one primitive at a time, and
returns tagged results instead of raising.

Example:
    >>> from kbsync.core.remote import RemoteObjectClient
    >>> client = RemoteObjectClient("ghp_xxx", "user", "notes")
    >>> result = client.get_file_content("data/records.json", "main")
    >>> if result.ok:
    ...     print(result.value.content)
"""

from kbsync.core.remote.backend import RemoteObjects
from kbsync.core.remote.client import RemoteObjectClient
from kbsync.core.remote.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SyncError,
    TransportError,
)
from kbsync.core.remote.http import RetryConfig
from kbsync.core.remote.models import (
    Identity,
    RemoteFile,
    RepositoryInfo,
    TreeEntry,
    git_blob_hash,
)
from kbsync.core.remote.result import Err, Ok, Result

__all__ = [
    "AuthError",
    "ConflictError",
    "Err",
    "Identity",
    "NotFoundError",
    "Ok",
    "PermissionDeniedError",
    "RemoteFile",
    "RemoteObjectClient",
    "RemoteObjects",
    "RepositoryInfo",
    "Result",
    "RetryConfig",
    "SyncError",
    "TransportError",
    "TreeEntry",
    "git_blob_hash",
]
