"""
Builds one tree and one commit from a set of selected changes.

Blobs are created first, one per selected document. Any blob whose hash
already sits at the same path in the base tree is a no-op and is dropped.
The remaining paths go into a single tree layered on the base tree, so
every path not mentioned is inherited unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from kbsync.core.documents.store import DocumentStore
from kbsync.core.remote.backend import RemoteObjects
from kbsync.core.remote.errors import NotFoundError
from kbsync.core.remote.result import Err, Ok, Result
from kbsync.core.sync.models import ChangeRecord

logger = logging.getLogger(__name__)


@dataclass
class CommitPlan:
    """What a push will write: changed paths and, once built, the objects."""

    base_tree: str
    parent: str
    entries: dict[str, str] = field(default_factory=dict)
    tree_hash: str | None = None
    commit_hash: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.entries


class CommitBuilder:
    """
    Turns selected change records into remote objects.

    Example:
        >>> builder = CommitBuilder(client, documents)
        >>> plan = builder.stage_blobs(base_tree, head, changes, existing).unwrap()
        >>> if not plan.is_empty:
        ...     plan = builder.commit(plan, "Sync data").unwrap()
    """

    def __init__(self, remote: RemoteObjects, documents: DocumentStore) -> None:
        self.remote = remote
        self.documents = documents

    def stage_blobs(
        self,
        base_tree: str,
        parent: str,
        changes: list[ChangeRecord],
        existing: dict[str, str] | None = None,
    ) -> Result[CommitPlan]:
        """
        Create a blob for every selected, changed record.

        Args:
            base_tree: Tree hash of the parent commit
            parent: Commit the new commit will descend from
            changes: Change records; unselected and unchanged ones are ignored
            existing: ``{path: blob_hash}`` already in the base tree

        Returns:
            Ok(CommitPlan) whose entries hold only real changes
        """
        existing = existing or {}
        plan = CommitPlan(base_tree=base_tree, parent=parent)

        for record in changes:
            if not record.will_push:
                continue

            content = self.documents.read(record.name)
            if content is None:
                return Err(
                    NotFoundError(
                        "document", f"Local document '{record.name}' disappeared before push"
                    )
                )

            blob = self.remote.create_blob(content)
            if not blob.ok:
                return blob

            if existing.get(record.path) == blob.value:
                logger.debug("%s matches the base tree, skipping", record.path)
                continue

            plan.entries[record.path] = blob.value

        return Ok(plan)

    def commit(self, plan: CommitPlan, message: str) -> Result[CommitPlan]:
        """
        Create the tree and the commit for a non-empty plan.

        The commit's single parent is ``plan.parent``, the head read at the
        start of the push.
        """
        if plan.is_empty:
            raise ValueError("Refusing to build a commit with no changed paths")

        tree = self.remote.create_tree(plan.base_tree, plan.entries)
        if not tree.ok:
            return tree
        plan.tree_hash = tree.value
        logger.debug("Created tree: %s", plan.tree_hash)

        commit = self.remote.create_commit(message, plan.tree_hash, plan.parent)
        if not commit.ok:
            return commit
        plan.commit_hash = commit.value
        logger.debug("Created commit: %s", plan.commit_hash)

        return Ok(plan)
