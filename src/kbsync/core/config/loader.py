"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import KbsyncConfig

logger = logging.getLogger(__name__)

APP_NAME = "kbsync"
PROJECT_CONFIG_FILE = ".kbsync.json"
SYNC_TARGET_FILE = "sync-target.json"

# Global cache to avoid reloading config multiple times per session
_config_cache: KbsyncConfig | None = None


def get_xdg_config_home() -> Path:
    """Return $XDG_CONFIG_HOME, defaulting to ~/.config."""
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_xdg_data_home() -> Path:
    """Return $XDG_DATA_HOME, defaulting to ~/.local/share."""
    if xdg_home := os.environ.get("XDG_DATA_HOME"):
        return Path(xdg_home)
    return Path.home() / ".local" / "share"


def get_config_dir() -> Path:
    """Directory holding user-level kbsync files."""
    return get_xdg_config_home() / APP_NAME


def get_user_config_path() -> Path:
    """Path to ~/.config/kbsync/config.json (or XDG equivalent)."""
    return get_config_dir() / "config.json"


def get_sync_target_path() -> Path:
    """Path to the persisted sync target record."""
    return get_config_dir() / SYNC_TARGET_FILE


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Path to .kbsync.json in the given (or current) directory."""
    return (cwd or Path.cwd()) / PROJECT_CONFIG_FILE


def get_data_dir(config: KbsyncConfig) -> Path:
    """Directory of the local document store."""
    if config.data_dir:
        return Path(config.data_dir).expanduser()
    return get_xdg_data_home() / APP_NAME / "documents"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries; values in ``override`` win.

    Nested dicts are merged, lists and scalars are replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 10, 'y': 2}}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """Load a JSON object from a file, returning None if missing or invalid."""
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None

    if isinstance(data, dict):
        return data
    logger.warning("Ignoring config at %s: top level is not an object", path)
    return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        KBSYNC_API_URL - overrides api_url
        KBSYNC_TIMEOUT - overrides timeout
        KBSYNC_MAX_RETRIES - overrides max_retries
        KBSYNC_DATA_DIR - overrides data_dir
    """
    result = config_dict.copy()

    if api_url := os.environ.get("KBSYNC_API_URL"):
        result["api_url"] = api_url

    if data_dir := os.environ.get("KBSYNC_DATA_DIR"):
        result["data_dir"] = data_dir

    if timeout_str := os.environ.get("KBSYNC_TIMEOUT"):
        try:
            result["timeout"] = float(timeout_str)
        except ValueError:
            logger.warning("Invalid KBSYNC_TIMEOUT value '%s', ignoring", timeout_str)

    if retries_str := os.environ.get("KBSYNC_MAX_RETRIES"):
        try:
            result["max_retries"] = int(retries_str)
        except ValueError:
            logger.warning("Invalid KBSYNC_MAX_RETRIES value '%s', ignoring", retries_str)

    return result


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> KbsyncConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (KBSYNC_*)
        2. Project config (.kbsync.json)
        3. User config (~/.config/kbsync/config.json)
        4. Model defaults

    Args:
        project_dir: Directory to load .kbsync.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated KbsyncConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged: dict[str, Any] = {}

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = KbsyncConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """Clear the cached configuration."""
    global _config_cache
    _config_cache = None
