"""
Configuration models, loading, and the sync target store.

This module provides Pydantic models for kbsync configuration with
multi-layer merging (defaults < user < project < env vars), and the
ConfigStore contract through which the sync target record is persisted.
"""

from .env import get_env_token, load_layered_env
from .loader import (
    clear_cache,
    get_config_dir,
    get_data_dir,
    get_project_config_path,
    get_sync_target_path,
    get_user_config_path,
    load_config,
)
from .models import DEFAULT_MANIFEST, KbsyncConfig, ManifestEntry, SyncTarget
from .store import ConfigStore, JsonConfigStore

__all__ = [
    # Models
    "DEFAULT_MANIFEST",
    "KbsyncConfig",
    "ManifestEntry",
    "SyncTarget",
    # Store
    "ConfigStore",
    "JsonConfigStore",
    # Loader functions
    "clear_cache",
    "get_config_dir",
    "get_data_dir",
    "get_env_token",
    "get_project_config_path",
    "get_sync_target_path",
    "get_user_config_path",
    "load_config",
    "load_layered_env",
]
