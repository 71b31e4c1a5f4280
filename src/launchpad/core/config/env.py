"""Environment loading helpers.

Launchpad reads its API URL, API key and user id from ``LAUNCHPAD_*``
variables, usually kept in .env files. Files are applied lowest precedence
first:

- ~/.config/launchpad/.env (user)
- <project>/.env
- <project>/.env.local (untracked per-checkout overrides)

A later file overrides values set by an earlier file; no file overrides a
variable already exported in the shell.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

ENV_PREFIX = "LAUNCHPAD_"


def env_file_layers(project_dir: Path | None = None) -> list[Path]:
    """The .env files Launchpad reads, lowest precedence first."""
    if project_dir is None:
        project_dir = Path.cwd()
    return [
        get_xdg_config_home() / "launchpad" / ".env",
        project_dir / ".env",
        project_dir / ".env.local",
    ]


def load_layered_env(
    *,
    project_dir: Path | None = None,
    paths: Iterable[Path] | None = None,
) -> dict[str, Path]:
    """Apply layered .env files to ``os.environ``.

    Args:
        project_dir: Base directory for project env files (defaults to cwd)
        paths: Explicit env files, lowest precedence first

    Returns:
        The file each file-provided ``LAUNCHPAD_*`` variable came from
    """
    layers = list(paths) if paths is not None else env_file_layers(project_dir)

    merged: dict[str, str] = {}
    sources: dict[str, Path] = {}
    for path in layers:
        path = Path(path)
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if value is None:
                continue
            merged[key] = value
            sources[key] = path

    applied: dict[str, Path] = {}
    for key, value in merged.items():
        if key in os.environ:
            continue
        os.environ[key] = value
        if key.startswith(ENV_PREFIX):
            applied[key] = sources[key]

    for key, path in sorted(applied.items()):
        logger.debug("%s loaded from %s", key, path)
    return applied


__all__ = ["ENV_PREFIX", "env_file_layers", "load_layered_env"]
