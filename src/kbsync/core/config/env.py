"""Environment loading helpers.

The credential may come from a ``.env`` file rather than the saved sync
target. Values are layered so that an exported shell variable always wins:

  os.environ (pre-existing) > project .env > user .env
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

TOKEN_ENV_VAR = "KBSYNC_TOKEN"


def _read_env(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    return {str(k): str(v) for k, v in dotenv_values(path).items() if k and v is not None}


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> None:
    """Load KBSYNC_* variables from user and project .env files.

    Args:
        project_dir: base directory for project env paths (defaults to cwd)
        user_env_paths: explicit user env file paths
        project_env_paths: explicit project env file paths
    """
    project_dir = project_dir or Path.cwd()

    if user_env_paths is None:
        xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
        user_env_paths = [xdg_home / "kbsync" / ".env"]

    if project_env_paths is None:
        project_env_paths = [project_dir / ".env", project_dir / ".env.local"]

    preexisting = set(os.environ)

    # Later files override earlier ones, the shell overrides them all
    for path in [*user_env_paths, *project_env_paths]:
        for key, value in _read_env(Path(path)).items():
            if key.startswith("KBSYNC_") and key not in preexisting:
                os.environ[key] = value


def get_env_token() -> str | None:
    """Credential from the environment, if one is set."""
    return os.environ.get(TOKEN_ENV_VAR) or None
