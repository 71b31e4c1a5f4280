"""
Data models for collection sync.

Defines the observable per-collection state, write results and the enums
that parameterize a collection.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from launchpad.core.exceptions import LaunchpadError


class SyncPhase(str, Enum):
    """Lifecycle phase of a collection within a session."""

    LOADING = "loading"
    LOADED = "loaded"
    LOADED_FALLBACK = "loaded_fallback"
    SYNCING = "syncing"
    RECONCILED = "reconciled"


class CollectionScope(str, Enum):
    """Whether a collection is team-wide or namespaced by user identity."""

    SHARED = "shared"
    PER_USER = "per_user"


class WriteMode(str, Enum):
    """
    How writes reach the remote store.

    VERIFIED writes are read back before the visible state changes;
    BEST_EFFORT writes update the visible state at once and push in the
    background.
    """

    VERIFIED = "verified"
    BEST_EFFORT = "best_effort"


def count_items(value: Any) -> int:
    """
    Count items in a collection value.

    Lists count their elements, mappings their keys, None is empty and any
    other scalar counts as one item.
    """
    if value is None:
        return 0
    if isinstance(value, (list, tuple)):
        return len(value)
    if isinstance(value, Mapping):
        return len(value)
    return 1


class SyncState(BaseModel):
    """
    Observable state of one collection.

    ``has_loaded_once`` gates the very first write so a default value can
    never overwrite real remote data. ``using_fallback`` means ``value``
    came from the local cache and background reconciliation is running.

    Example:
        >>> state = SyncState(value=[{"id": "t1", "name": "Deck"}], has_loaded_once=True)
        >>> state.item_count
        1
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: Any = Field(default=None, description="Current collection value")
    loading: bool = Field(default=False)
    has_loaded_once: bool = Field(default=False)
    using_fallback: bool = Field(default=False)
    last_known_count: int = Field(default=0, ge=0)
    phase: SyncPhase = Field(default=SyncPhase.LOADING)

    @property
    def item_count(self) -> int:
        return count_items(self.value)


class SaveResult(BaseModel):
    """
    Outcome of a write to a collection.

    ``accepted`` means the write passed validation and the guard; ``synced``
    means the remote store has confirmed it (always False for best-effort
    writes at return time, whose push happens in the background).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    collection: str = Field(description="Collection name")
    accepted: bool = Field(description="Whether the write was applied locally")
    synced: bool = Field(default=False, description="Whether the remote store confirmed it")
    value: Any = Field(default=None, description="Value visible after the write")
    error: LaunchpadError | None = Field(default=None, description="Why the write was rejected or not synced")

    @property
    def success(self) -> bool:
        return self.accepted and self.error is None

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        if not self.accepted:
            return f"{self.collection} write rejected: {self.error}"
        if self.error is not None:
            return f"{self.collection} saved locally, not synced: {self.error}"
        if self.synced:
            return f"{self.collection} saved ({count_items(self.value)} items)"
        return f"{self.collection} saved locally, syncing in background"
