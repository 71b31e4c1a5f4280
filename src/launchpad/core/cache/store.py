"""
Local durable cache.

A mirror of the remote store, never the source of truth during normal
operation, but the only value available when the transport is unreachable.
Every successful remote read or write is written through here.

Storage failures are logged and reported as a False return: losing the
mirror must never abort a sync.
"""

import logging
from pathlib import Path
from typing import Any

from launchpad.core.cache.storage import HostStorage, JsonFileStorage, MemoryStorage
from launchpad.core.config.models import CacheConfig
from launchpad.core.exceptions import CacheError

logger = logging.getLogger(__name__)

LAST_KNOWN_GOOD_KEY = "last-known-good"


def collection_key(name: str, user_id: str | None = None) -> str:
    """Cache key for a collection; per-user collections are suffixed with the identity."""
    return f"{name}:{user_id}" if user_id else name


def migration_marker_key(name: str, user_id: str) -> str:
    return f"migrated:{name}:{user_id}"


class LocalCache:
    """
    Key/value persistence facade over a host storage backend.

    Example:
        >>> cache = LocalCache.in_memory()
        >>> cache.save("templates", [{"id": "t1", "name": "Deck"}])
        True
        >>> cache.load("saved_items:42", default=[])
        []
    """

    def __init__(self, storage: HostStorage) -> None:
        self.storage = storage

    def save(self, key: str, value: Any) -> bool:
        """
        Persist a value.

        Returns:
            True if stored, False if the backend failed (already logged)
        """
        try:
            self.storage.persist(key, value)
        except CacheError as e:
            logger.warning("Local cache write failed for %s: %s", key, e)
            return False
        return True

    def load(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` if absent or unreadable."""
        try:
            value = self.storage.load(key)
        except CacheError as e:
            logger.warning("Local cache read failed for %s: %s", key, e)
            return default
        return default if value is None else value

    def delete(self, key: str) -> bool:
        try:
            self.storage.remove(key)
        except CacheError as e:
            logger.warning("Local cache delete failed for %s: %s", key, e)
            return False
        return True

    @classmethod
    def in_memory(cls, initial: dict[str, Any] | None = None) -> "LocalCache":
        return cls(MemoryStorage(initial))

    @classmethod
    def from_config(cls, config: CacheConfig, project_dir: Path | None = None) -> "LocalCache":
        """
        Create a file-backed cache at ``<project_dir>/<state_dir>/<filename>``.

        Absolute ``state_dir`` values are used as-is.
        """
        base = Path(config.state_dir)
        if not base.is_absolute():
            base = (project_dir or Path.cwd()) / base
        return cls(JsonFileStorage(base / config.filename))


__all__ = [
    "LocalCache",
    "LAST_KNOWN_GOOD_KEY",
    "collection_key",
    "migration_marker_key",
]
