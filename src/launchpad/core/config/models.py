"""
Configuration data models for launchpad.

These models define the structure of .launchpad.json and
~/.config/launchpad/config.json files, with validation and type safety
via Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ApiConfig(BaseModel):
    """
    Remote store connection settings.
    """
    base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the remote store (no trailing slash needed)"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Sent as X-API-Key when set"
    )
    identity_header: str = Field(
        default="X-Figma-User-Id",
        description="Header that namespaces per-user collections"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-request timeout; the only way a remote call is cancelled"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so endpoints can always start with '/'."""
        return v.rstrip("/")


class RetryConfig(BaseModel):
    """
    Transport retry policy.

    Delay before retry ``n`` (1-indexed) is
    ``min(base_delay_ms * 2^(n-1), max_delay_ms)``.
    """
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after the initial attempt (transient failures only)"
    )
    base_delay_ms: int = Field(
        default=1000,
        gt=0,
        description="Delay before the first retry"
    )
    max_delay_ms: int = Field(
        default=8000,
        gt=0,
        description="Upper bound for any single delay"
    )
    jitter: bool = Field(
        default=False,
        description="Add +/-20% random variance to each delay"
    )

    @model_validator(mode="after")
    def check_cap(self) -> "RetryConfig":
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        return self


class SyncConfig(BaseModel):
    """
    Collection sync behavior.
    """
    user_id: Optional[str] = Field(
        default=None,
        description="Stable identity for per-user collections"
    )
    reconcile_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="How often fallback collections retry the remote store"
    )


class GuardConfig(BaseModel):
    """
    Destructive-change guard thresholds.

    Empirically chosen defaults: a collection of 3+ items can't be cleared,
    and no single write may remove more than two-thirds of it.
    """
    enabled: bool = Field(
        default=True,
        description="Disable only for deliberate bulk maintenance"
    )
    min_protected_count: int = Field(
        default=3,
        ge=1,
        description="Collections smaller than this are never guarded"
    )
    max_loss_fraction: float = Field(
        default=2 / 3,
        gt=0.0,
        le=1.0,
        description="Largest fraction of items one write may remove"
    )


class CacheConfig(BaseModel):
    """
    Local durable cache location.
    """
    state_dir: str = Field(
        default=".launchpad",
        description="Directory holding the cache file (relative to project dir)"
    )
    filename: str = Field(
        default="state.json",
        description="Flat key/value JSON map"
    )


class LaunchpadConfig(BaseModel):
    """
    Top-level launchpad configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = LaunchpadConfig(
        ...     api=ApiConfig(base_url="https://kit.example.com"),
        ...     sync=SyncConfig(user_id="1234"),
        ... )
        >>> config.guard.min_protected_count
        3
    """
    api: ApiConfig = Field(
        default_factory=ApiConfig,
        description="Remote store connection"
    )
    retry: RetryConfig = Field(
        default_factory=RetryConfig,
        description="Transport retry policy"
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Collection sync behavior"
    )
    guard: GuardConfig = Field(
        default_factory=GuardConfig,
        description="Destructive-change guard"
    )
    cache: CacheConfig = Field(
        default_factory=CacheConfig,
        description="Local durable cache"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )
