"""
Local durable cache and its host storage backends.
"""

from launchpad.core.cache.storage import HostStorage, JsonFileStorage, MemoryStorage
from launchpad.core.cache.store import (
    LAST_KNOWN_GOOD_KEY,
    LocalCache,
    collection_key,
    migration_marker_key,
)

__all__ = [
    "HostStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "LocalCache",
    "LAST_KNOWN_GOOD_KEY",
    "collection_key",
    "migration_marker_key",
]
