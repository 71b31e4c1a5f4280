"""
Collection sync: registry, validation, guard and the sync engine.

``SyncSession`` lives in ``launchpad.core.sync.session``.
"""

from launchpad.core.sync.collections import COLLECTIONS, CollectionSpec, get_collection
from launchpad.core.sync.engine import CollectionSyncEngine
from launchpad.core.sync.guards import DestructiveChangeGuard
from launchpad.core.sync.models import (
    CollectionScope,
    SaveResult,
    SyncPhase,
    SyncState,
    WriteMode,
    count_items,
)
from launchpad.core.sync.remote import CollectionRemote, RemoteStore

__all__ = [
    "COLLECTIONS",
    "CollectionSpec",
    "get_collection",
    "CollectionSyncEngine",
    "DestructiveChangeGuard",
    "CollectionScope",
    "SaveResult",
    "SyncPhase",
    "SyncState",
    "WriteMode",
    "count_items",
    "CollectionRemote",
    "RemoteStore",
]
