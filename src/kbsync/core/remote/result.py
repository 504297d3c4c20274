"""
Tagged results for remote calls.

Remote operations return ``Ok(value)`` or ``Err(error)`` instead of raising.
Stages are chained with ``then()``, which short-circuits on the first
``Err`` so a workflow reads top to bottom without a try/except per call.

Example:
    >>> head = client.get_branch_head("main")
    >>> tree = head.then(client.get_commit_tree)
    >>> if not tree.ok:
    ...     print(tree.error)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

from kbsync.core.remote.errors import SyncError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None

    def then(self, fn: Callable[[T], Result[U]]) -> Result[U]:
        """Feed the value into the next stage."""
        return fn(self.value)

    def map(self, fn: Callable[[T], U]) -> Result[U]:
        """Transform the value, keeping the result successful."""
        return Ok(fn(self.value))

    def map_error(self, fn: Callable[[SyncError], SyncError]) -> Result[T]:
        return self

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed result carrying a classified SyncError."""

    error: SyncError

    @property
    def ok(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None

    def then(self, fn: Callable[[object], Result[U]]) -> Err:
        return self

    def map(self, fn: Callable[[object], U]) -> Err:
        return self

    def map_error(self, fn: Callable[[SyncError], SyncError]) -> Err:
        """Replace the error, e.g. to attach workflow context."""
        return Err(fn(self.error))

    def unwrap(self) -> NoReturn:
        raise self.error


Result = Union[Ok[T], Err]

__all__ = ["Ok", "Err", "Result"]
