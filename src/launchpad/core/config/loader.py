"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import LaunchpadConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: LaunchpadConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/launchpad/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "launchpad" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .launchpad.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".launchpad.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested
    dicts are merged, not replaced.

    Example:
        >>> base = {"a": 1, "b": {"x": 10, "y": 20}}
        >>> override = {"b": {"y": 30, "z": 40}, "c": 3}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'x': 10, 'y': 30, 'z': 40}, 'c': 3}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient: warn and continue
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _set(result: dict[str, Any], section: str, key: str, value: Any) -> None:
    if section not in result or not isinstance(result[section], dict):
        result[section] = {}
    result[section][key] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        LAUNCHPAD_API_URL - overrides api.base_url
        LAUNCHPAD_API_KEY - overrides api.api_key
        LAUNCHPAD_USER_ID - overrides sync.user_id
        LAUNCHPAD_RECONCILE_INTERVAL - overrides sync.reconcile_interval_seconds
        LAUNCHPAD_STATE_DIR - overrides cache.state_dir

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if url := os.environ.get("LAUNCHPAD_API_URL"):
        _set(result, "api", "base_url", url)

    if api_key := os.environ.get("LAUNCHPAD_API_KEY"):
        _set(result, "api", "api_key", api_key)

    if user_id := os.environ.get("LAUNCHPAD_USER_ID"):
        _set(result, "sync", "user_id", user_id)

    if interval_str := os.environ.get("LAUNCHPAD_RECONCILE_INTERVAL"):
        try:
            interval = float(interval_str)
            if interval <= 0:
                logger.warning(
                    "LAUNCHPAD_RECONCILE_INTERVAL must be > 0, got %s, ignoring", interval_str
                )
            else:
                _set(result, "sync", "reconcile_interval_seconds", interval)
        except ValueError:
            logger.warning("Invalid LAUNCHPAD_RECONCILE_INTERVAL value '%s', ignoring", interval_str)

    if state_dir := os.environ.get("LAUNCHPAD_STATE_DIR"):
        _set(result, "cache", "state_dir", state_dir)

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "retry": {"max_retries": 3, "base_delay_ms": 1000, "max_delay_ms": 8000},
        "sync": {"reconcile_interval_seconds": 30.0},
        "guard": {"enabled": True, "min_protected_count": 3},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> LaunchpadConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (LAUNCHPAD_*)
        2. Project config (.launchpad.json)
        3. User config (~/.config/launchpad/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .launchpad.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated LaunchpadConfig instance

    Raises:
        pydantic.ValidationError: If the merged config fails validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = LaunchpadConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
