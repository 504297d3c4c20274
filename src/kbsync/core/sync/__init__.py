"""
Push and pull workflows for the knowledge base.

Provides change detection against the remote branch, single-commit
selective push, and confirmed full-overwrite pull.

Example:
    >>> from kbsync.core.sync import SyncOrchestrator
    >>> orchestrator = SyncOrchestrator(client, documents, target, store)
    >>> changes = orchestrator.detect_changes().unwrap()
    >>> result = orchestrator.push(changes, message="Weekly notes")
"""

from kbsync.core.sync.changes import ChangeDetector, classify
from kbsync.core.sync.commit import CommitBuilder, CommitPlan
from kbsync.core.sync.manifest import Manifest
from kbsync.core.sync.models import (
    ChangeRecord,
    ChangeSet,
    ChangeStatus,
    MessageKind,
    PushState,
    StatusMessage,
    SyncResult,
)
from kbsync.core.sync.orchestrator import (
    CONFIRMATION_REQUIRED,
    SyncOrchestrator,
    default_commit_message,
)

__all__ = [
    "CONFIRMATION_REQUIRED",
    "ChangeDetector",
    "ChangeRecord",
    "ChangeSet",
    "ChangeStatus",
    "CommitBuilder",
    "CommitPlan",
    "Manifest",
    "MessageKind",
    "PushState",
    "StatusMessage",
    "SyncOrchestrator",
    "SyncResult",
    "classify",
    "default_commit_message",
]
