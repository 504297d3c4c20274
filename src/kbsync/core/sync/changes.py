"""
Change detection between the local store and the remote branch.

Each manifest document is fetched from the remote and compared with the
local copy byte for byte. Line deltas are a coarse estimate from line
counts; no diff algorithm is run.
"""

from __future__ import annotations

import logging

from kbsync.core.config.models import SyncTarget
from kbsync.core.documents.store import DocumentStore
from kbsync.core.remote.backend import RemoteObjects
from kbsync.core.remote.errors import NotFoundError
from kbsync.core.remote.result import Err, Ok, Result
from kbsync.core.sync.manifest import Manifest
from kbsync.core.sync.models import ChangeRecord, ChangeSet, ChangeStatus

logger = logging.getLogger(__name__)


def count_lines(text: str) -> int:
    """
    Number of newline-separated lines in ``text``.

    Only ``\\n`` separates lines, and a trailing newline starts an (empty)
    last line. "" has no lines.
    """
    return text.count("\n") + 1 if text else 0


def estimate_line_delta(local: str, remote: str) -> tuple[int, int]:
    """
    Estimate (additions, deletions) from line counts alone.

    Only the positive difference is reported on each side, so a document
    edited in place without changing its length reports (0, 0).
    """
    difference = count_lines(local) - count_lines(remote)
    return max(difference, 0), max(-difference, 0)


def classify(
    name: str,
    path: str,
    local: str,
    remote: str | None,
    remote_hash: str | None = None,
) -> ChangeRecord:
    """
    Build the change record for one document.

    Args:
        name: Logical document name
        path: Repository path
        local: Local content
        remote: Remote content, or None if the path does not exist remotely
        remote_hash: Blob hash of the remote content
    """
    local_size = len(local.encode("utf-8"))

    if remote is None:
        return ChangeRecord(
            name=name,
            path=path,
            status=ChangeStatus.ADDED,
            estimated_additions=count_lines(local),
            local_size_bytes=local_size,
            selected=True,
        )

    remote_size = len(remote.encode("utf-8"))

    if local == remote:
        return ChangeRecord(
            name=name,
            path=path,
            status=ChangeStatus.UNCHANGED,
            local_size_bytes=local_size,
            remote_size_bytes=remote_size,
            remote_hash=remote_hash,
            selected=False,
        )

    additions, deletions = estimate_line_delta(local, remote)
    return ChangeRecord(
        name=name,
        path=path,
        status=ChangeStatus.MODIFIED,
        estimated_additions=additions,
        estimated_deletions=deletions,
        local_size_bytes=local_size,
        remote_size_bytes=remote_size,
        remote_hash=remote_hash,
        selected=True,
    )


class ChangeDetector:
    """
    Classifies manifest documents as added, modified or unchanged.

    Documents that exist remotely but are not in the manifest are never
    looked at, so nothing is ever classified as deleted. Documents missing
    from the local store are skipped: there is nothing to push for them.

    Example:
        >>> detector = ChangeDetector(client, documents, Manifest())
        >>> result = detector.detect(target)
        >>> for record in result.unwrap().changed:
        ...     print(record.path, record.status)
    """

    def __init__(
        self,
        remote: RemoteObjects,
        documents: DocumentStore,
        manifest: Manifest,
    ) -> None:
        self.remote = remote
        self.documents = documents
        self.manifest = manifest

    def detect(self, target: SyncTarget) -> Result[ChangeSet]:
        """
        Compare every manifest document with the target branch.

        One remote read per document, in manifest order. A missing remote
        file means ``added``; any other failure aborts detection.

        Returns:
            Ok(ChangeSet) or the first remote error
        """
        records: list[ChangeRecord] = []

        for entry in self.manifest:
            local = self.documents.read(entry.name)
            if local is None:
                logger.info("Skipping %s: not present in the local store", entry.name)
                continue

            path = target.remote_path(entry.path)
            fetched = self.remote.get_file_content(path, target.branch)

            if fetched.ok:
                record = classify(
                    entry.name, path, local, fetched.value.content, fetched.value.hash
                )
            elif isinstance(fetched.error, NotFoundError):
                record = classify(entry.name, path, local, None)
            else:
                logger.info("Change detection aborted at %s: %s", path, fetched.error)
                return Err(fetched.error)

            logger.debug("%s: %s", path, record.status.value)
            records.append(record)

        changes = ChangeSet(records=records, ref=target.branch)
        logger.info("Detected changes on %s: %s", target.branch, changes.summary())
        return Ok(changes)
