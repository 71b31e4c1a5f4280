"""
Configuration models and loading.

This module provides Pydantic models for launchpad configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    ApiConfig,
    CacheConfig,
    GuardConfig,
    LaunchpadConfig,
    RetryConfig,
    SyncConfig,
)

__all__ = [
    # Models
    "ApiConfig",
    "CacheConfig",
    "GuardConfig",
    "LaunchpadConfig",
    "RetryConfig",
    "SyncConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
