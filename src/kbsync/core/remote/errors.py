"""
Error taxonomy for remote repository operations.

Every failure the sync engine can report is one of these classes. They are
returned inside ``Err`` results by the remote client rather than raised,
but remain ordinary exceptions so callers can raise them if they prefer.

Exception Hierarchy:
    SyncError (base)
    ├── AuthError (credential rejected)
    ├── PermissionDeniedError (valid credential, no write access)
    ├── NotFoundError (missing branch, commit, or path)
    ├── ConflictError (branch moved since it was read)
    └── TransportError (network failure or unclassified response)

Example:
    >>> err = NotFoundError("branch", "Branch 'main' not found")
    >>> err.kind
    'not_found'
    >>> str(err)
    "Branch 'main' not found"
"""

from __future__ import annotations


class SyncError(Exception):
    """
    Base class for all sync failures.

    Attributes:
        message: Human-readable error message
        context: Extra details (status code, path, branch, ...)
    """

    kind = "error"

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SyncError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class AuthError(SyncError):
    """The credential is missing, invalid, or expired."""

    kind = "auth"


class PermissionDeniedError(SyncError):
    """
    The credential is valid but cannot write to the target repository.

    Kept separate from AuthError so the caller can tell "log in again"
    apart from "ask the repository owner for access".
    """

    kind = "permission"


class NotFoundError(SyncError):
    """
    A branch, commit, tree, or path does not exist on the remote.

    Attributes:
        what: Which kind of object was missing ("branch", "commit", "path", ...)
    """

    kind = "not_found"

    def __init__(self, what: str, message: str | None = None, **context: object) -> None:
        super().__init__(message or f"Remote {what} not found", what=what, **context)
        self.what = what


class ConflictError(SyncError):
    """
    The branch ref update was rejected because the branch advanced.

    Never retried: recovering would need merge logic.
    """

    kind = "conflict"


class TransportError(SyncError):
    """
    Network failure, timeout, or a response that fits no other class.

    Attributes:
        status_code: HTTP status if a response was received
    """

    kind = "transport"

    def __init__(self, message: str, status_code: int | None = None, **context: object) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


__all__ = [
    "SyncError",
    "AuthError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "TransportError",
]
