"""
kbsync - Sync a personal knowledge base with a remote repository.

Pushes selected local documents as a single commit and pulls remote
documents over local ones, using only the remote's REST API.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from kbsync.core.config.models import KbsyncConfig, SyncTarget
from kbsync.core.sync.models import ChangeStatus, SyncResult

__all__ = ["ChangeStatus", "KbsyncConfig", "SyncResult", "SyncTarget", "__version__"]
