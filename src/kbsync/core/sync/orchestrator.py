"""
Push, pull and connect workflows.

The orchestrator sequences RemoteObjectClient calls strictly one at a time
and stops at the first failure. It never reads configuration from ambient
state: the SyncTarget and the ConfigStore it saves through are injected.

Push writes exactly one commit whose parent is the branch head read at the
start of the attempt. The remote's fast-forward check is the only guard
against concurrent writers; a rejected ref update is reported as a
conflict and never forced.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from kbsync.core.config.models import SyncTarget
from kbsync.core.config.store import ConfigStore
from kbsync.core.documents.store import DocumentStore
from kbsync.core.remote.backend import RemoteObjects
from kbsync.core.remote.errors import NotFoundError, SyncError, TransportError
from kbsync.core.remote.models import RepositoryInfo
from kbsync.core.remote.result import Err, Result
from kbsync.core.sync.changes import ChangeDetector
from kbsync.core.sync.commit import CommitBuilder, CommitPlan
from kbsync.core.sync.manifest import Manifest
from kbsync.core.sync.models import ChangeSet, PushState, SyncResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PushState, str], None]

CONFIRMATION_REQUIRED = "Pull overwrites local documents; confirmation required"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_empty_repository(error: SyncError) -> bool:
    # The remote answers git data reads on a repository with no commits with 409
    return isinstance(error, TransportError) and error.status_code == 409


def default_commit_message(at: datetime) -> str:
    """Commit message used when the caller gives none."""
    return f"Sync data - {at.strftime('%Y-%m-%d %H:%M:%S')} UTC"


class SyncOrchestrator:
    """
    Runs sync workflows against one SyncTarget.

    Example:
        >>> orchestrator = SyncOrchestrator(client, documents, target, store)
        >>> changes = orchestrator.detect_changes().unwrap()
        >>> changes.toggle("data/links.json")
        >>> result = orchestrator.push(changes)
        >>> print(result.summary())
    """

    def __init__(
        self,
        remote: RemoteObjects,
        documents: DocumentStore,
        target: SyncTarget,
        config_store: ConfigStore,
        manifest: Manifest | None = None,
        *,
        progress: ProgressCallback | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            remote: Remote object store (the REST client or a fake)
            documents: Local document store
            target: Where to sync; replaced after each successful push
            config_store: Where the updated target is saved
            manifest: Documents to sync (defaults to the standard five)
            progress: Called with the new state and a detail line on every
                push state change
            clock: Source of timestamps
        """
        self.remote = remote
        self.documents = documents
        self.target = target
        self.config_store = config_store
        self.manifest = manifest or Manifest()
        self.progress = progress
        self.clock = clock

        self.state = PushState.IDLE
        self.transitions: list[PushState] = [PushState.IDLE]

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(self, state: PushState, detail: str = "") -> None:
        logger.debug("Push state: %s -> %s %s", self.state.value, state.value, detail)
        self.state = state
        self.transitions.append(state)
        if self.progress is not None:
            self.progress(state, detail)

    def _commit_url(self, commit_hash: str) -> str | None:
        commit_url = getattr(self.remote, "commit_url", None)
        return commit_url(commit_hash) if callable(commit_url) else None

    def _failed(self, operation: str, error: SyncError, started_at: datetime) -> SyncResult:
        if operation == "push":
            self._transition(PushState.FAILED, error.message)
        logger.info("%s failed (%s): %s", operation, error.kind, error.message)
        return SyncResult(
            success=False,
            operation=operation,
            error=error,
            message=error.message,
            started_at=started_at,
            completed_at=self.clock(),
        )

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------

    def detect_changes(self) -> Result[ChangeSet]:
        """Classify every manifest document against the target branch."""
        detector = ChangeDetector(self.remote, self.documents, self.manifest)
        result = detector.detect(self.target)
        if result.ok:
            self._transition(PushState.CHANGES_DETECTED, result.value.summary())
        else:
            self._transition(PushState.FAILED, result.error.message)
        return result

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def _resolve_head(self) -> Result[str]:
        """
        Read the branch head.

        A missing branch in an empty repository is bootstrapped with a root
        commit. In a populated repository the error names the branches
        that do exist.
        """
        branch = self.target.branch
        head = self.remote.get_branch_head(branch)
        if head.ok:
            return head
        if _is_empty_repository(head.error):
            return self._bootstrap(branch)
        if not isinstance(head.error, NotFoundError):
            return head

        repository = self.remote.get_repository()
        if not repository.ok:
            return repository
        if repository.value.is_empty:
            return self._bootstrap(branch)

        branches = self.remote.list_branches()
        if not branches.ok:
            return branches
        if branches.value:
            available = ", ".join(branches.value)
            return Err(
                NotFoundError(
                    "branch",
                    f"Branch '{branch}' not found. Available branches: {available}",
                    branch=branch,
                )
            )
        return Err(NotFoundError("branch", f"Branch '{branch}' not found", branch=branch))

    def _bootstrap(self, branch: str) -> Result[str]:
        logger.info("Repository %s is empty, creating branch %s", self.target.full_name, branch)
        if self.progress is not None:
            self.progress(self.state, f"initializing empty repository on {branch}")

        tree = self.remote.create_tree(None, {})
        commit = tree.then(
            lambda tree_hash: self.remote.create_commit("Initial commit", tree_hash, None)
        )
        return commit.then(
            lambda commit_hash: self.remote.create_branch_ref(branch, commit_hash).map(
                lambda _: commit_hash
            )
        )

    def _read_base(self, head: str) -> Result[tuple[str, str]]:
        """Return (head, base tree hash)."""
        return (
            self.remote.get_commit_tree(head)
            .map_error(
                lambda e: NotFoundError("commit", f"Commit {head[:8]} not found", commit=head)
                if isinstance(e, NotFoundError)
                else e
            )
            .map(lambda tree: (head, tree))
        )

    def _stage(self, base: tuple[str, str], changes: ChangeSet) -> Result[CommitPlan]:
        head, base_tree = base
        listing = self.remote.list_tree_entries(base_tree, self.target.base_path)
        if not listing.ok:
            return listing

        existing = {
            self.target.remote_path(entry.path): entry.blob_hash for entry in listing.value
        }
        builder = CommitBuilder(self.remote, self.documents)
        return builder.stage_blobs(base_tree, head, changes.selected, existing)

    def _advance_branch(self, plan: CommitPlan) -> Result[CommitPlan]:
        assert plan.commit_hash is not None
        return self.remote.update_branch_ref(self.target.branch, plan.commit_hash).map(
            lambda _: plan
        )

    def _record_sync(self, commit_hash: str, at: datetime) -> str:
        """Save the last-sync fields. Returns a note for the result message."""
        updated = self.target.with_sync(commit_hash, at)
        try:
            self.config_store.save(updated)
        except OSError as e:
            logger.warning("Pushed %s but could not save sync state: %s", commit_hash[:8], e)
            self.target = updated
            return "sync state could not be saved"
        self.target = updated
        return ""

    def push(self, changes: ChangeSet, message: str | None = None) -> SyncResult:
        """
        Push the selected changes as one commit.

        Only selected, changed records are written. Any failure aborts the
        attempt; blobs already created stay orphaned on the remote, which
        is harmless. A fresh call starts over from reading the branch head.

        Args:
            changes: Change set from detect_changes, with selection applied
            message: Commit message (defaults to a timestamped one)

        Returns:
            SyncResult describing the attempt
        """
        started_at = self.clock()
        branch = self.target.branch
        logger.info("Pushing %d document(s) to %s", len(changes.selected), branch)

        self._transition(PushState.BUILDING, f"reading {branch}")
        staged = (
            self._resolve_head()
            .then(self._read_base)
            .then(lambda base: self._stage(base, changes))
        )
        if not staged.ok:
            return self._failed("push", staged.error, started_at)

        plan = staged.value
        if plan.is_empty:
            self._transition(PushState.PUSHED, "nothing to push")
            logger.info("Nothing to push: remote already matches the selected documents")
            return SyncResult(
                success=True,
                operation="push",
                commit_hash=plan.parent,
                commit_url=self._commit_url(plan.parent),
                files_updated=0,
                message="Already up to date",
                started_at=started_at,
                completed_at=self.clock(),
            )

        self._transition(PushState.COMMITTING, f"{len(plan.entries)} file(s)")
        builder = CommitBuilder(self.remote, self.documents)
        committed = builder.commit(plan, message or default_commit_message(started_at)).then(
            self._advance_branch
        )
        if not committed.ok:
            return self._failed("push", committed.error, started_at)

        commit_hash = committed.value.commit_hash
        assert commit_hash is not None
        completed_at = self.clock()
        note = self._record_sync(commit_hash, completed_at)

        self._transition(PushState.PUSHED, commit_hash[:8])
        logger.info("Pushed %s to %s", commit_hash[:8], branch)
        return SyncResult(
            success=True,
            operation="push",
            commit_hash=commit_hash,
            commit_url=self._commit_url(commit_hash),
            files_updated=len(plan.entries),
            updated_paths=list(plan.entries),
            message=note,
            started_at=started_at,
            completed_at=completed_at,
        )

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def pull(self, confirm: bool = False) -> SyncResult:
        """
        Overwrite local documents with the remote branch's versions.

        Destructive for unpushed local edits, so nothing happens unless
        ``confirm`` is true. Every document is fetched before any is
        written; a failure part way leaves the local store untouched.
        Documents missing remotely are left alone. The remote is never
        modified.
        """
        started_at = self.clock()
        if not confirm:
            logger.info("Pull not confirmed, nothing done")
            return SyncResult(
                success=False,
                operation="pull",
                message=CONFIRMATION_REQUIRED,
                started_at=started_at,
                completed_at=self.clock(),
            )

        fetched: list[tuple[str, str, str]] = []
        for entry in self.manifest:
            path = self.target.remote_path(entry.path)
            result = self.remote.get_file_content(path, self.target.branch)
            if result.ok:
                fetched.append((entry.name, path, result.value.content))
            elif isinstance(result.error, NotFoundError):
                logger.debug("%s not on %s, skipping", path, self.target.branch)
            else:
                return self._failed("pull", result.error, started_at)

        for name, _path, content in fetched:
            self.documents.write(name, content)

        logger.info("Pulled %d document(s) from %s", len(fetched), self.target.branch)
        return SyncResult(
            success=True,
            operation="pull",
            files_updated=len(fetched),
            updated_paths=[path for _name, path, _content in fetched],
            started_at=started_at,
            completed_at=self.clock(),
        )

    # ------------------------------------------------------------------
    # Connect
    # ------------------------------------------------------------------

    def validate(self) -> Result[RepositoryInfo]:
        """
        Check the credential, then write access to the target repository.

        A rejected credential is AuthError; a valid credential without push
        access is PermissionDeniedError.
        """
        identity = self.remote.validate_credential()
        if not identity.ok:
            return identity
        logger.info("Authenticated as %s", identity.value.login)
        return self.remote.check_write_permission(self.target.full_name)

    def connect(self, branch: str | None = None) -> SyncResult:
        """
        Validate the target and save it.

        Args:
            branch: Branch to sync with; None adopts the repository's
                default branch
        """
        started_at = self.clock()
        validated = self.validate()
        if not validated.ok:
            return self._failed("connect", validated.error, started_at)

        info = validated.value
        chosen = branch or info.default_branch or self.target.branch
        target = self.target.model_copy(update={"branch": chosen})
        try:
            self.config_store.save(target)
        except OSError as e:
            logger.warning("Could not save sync target: %s", e)
            return self._failed(
                "connect", SyncError(f"Could not save sync target: {e}"), started_at
            )
        self.target = target

        logger.info("Connected to %s on %s", info.full_name, chosen)
        return SyncResult(
            success=True,
            operation="connect",
            message=f"Connected to {info.full_name} on branch {chosen}",
            started_at=started_at,
            completed_at=self.clock(),
        )
