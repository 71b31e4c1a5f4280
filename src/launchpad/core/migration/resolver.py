"""
One-time merge of a legacy shared collection into a per-user collection.

Saved bookmarks used to live in one team-wide list; they are now stored per
user. The first time a user's per-user collection is observed empty, the
legacy shared list and whatever the local cache holds are merged, the
marker for that identity is set, and the result is persisted. The marker is
set before persisting so a crash mid-write can't cause a second merge that
re-introduces items the user later removed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from launchpad.core.cache.store import LocalCache, collection_key, migration_marker_key
from launchpad.core.sync.collections import CollectionSpec, saved_item_key
from launchpad.core.sync.remote import CollectionRemote

logger = logging.getLogger(__name__)


class MigrationMarkers:
    """Persisted per-identity "already migrated" flags."""

    def __init__(self, cache: LocalCache) -> None:
        self.cache = cache

    def is_set(self, collection: str, user_id: str) -> bool:
        return bool(self.cache.load(migration_marker_key(collection, user_id), default=False))

    def mark(self, collection: str, user_id: str) -> bool:
        return self.cache.save(migration_marker_key(collection, user_id), True)


@dataclass
class MigrationOutcome:
    """Result of a completed merge."""

    value: list[Any]
    legacy_count: int
    local_count: int
    pushed: bool


def merge_unique(*sources: list[Any], key=saved_item_key) -> list[Any]:
    """
    Concatenate lists, dropping items whose structural key was already seen.

    Earlier sources win; order within a source is preserved.

    Example:
        >>> merge_unique([{"templateId": "a"}], [{"templateId": "a"}, {"templateId": "b"}])
        [{'templateId': 'a'}, {'templateId': 'b'}]
    """
    seen: set[str] = set()
    merged: list[Any] = []
    for source in sources:
        for item in source:
            k = key(item)
            if k in seen:
                continue
            seen.add(k)
            merged.append(item)
    return merged


class MigrationResolver:
    """
    Runs the legacy-to-per-user merge at most once per identity.

    Example:
        >>> resolver = MigrationResolver(remote, cache)
        >>> outcome = await resolver.resolve(get_collection("saved_items"), "42")
        >>> outcome.value
        [{'templateId': 'a'}, {'templateId': 'b'}]
    """

    def __init__(
        self,
        remote: CollectionRemote,
        cache: LocalCache,
        markers: MigrationMarkers | None = None,
    ) -> None:
        self.remote = remote
        self.cache = cache
        self.markers = markers or MigrationMarkers(cache)

    def needs_migration(self, spec: CollectionSpec, user_id: str | None) -> bool:
        return bool(spec.migrate_from_shared and user_id and not self.markers.is_set(spec.name, user_id))

    async def resolve(self, spec: CollectionSpec, user_id: str) -> MigrationOutcome | None:
        """
        Merge legacy and cached items for ``user_id``.

        Returns:
            The outcome, or None if the marker was already set or the legacy
            collection couldn't be fetched (the attempt is retried on the
            next load)
        """
        if not self.needs_migration(spec, user_id):
            return None

        legacy_result = await self.remote.read(spec, user_id, legacy=True)
        if legacy_result.ok:
            legacy = _as_list(legacy_result.data, spec.name, "legacy")
        elif legacy_result.is_client_error:
            # No legacy collection on this server
            legacy = []
        else:
            logger.info(
                "Deferring %s migration for %s: legacy fetch failed (%s)",
                spec.name,
                user_id,
                legacy_result.error,
            )
            return None

        key = collection_key(spec.name, user_id)
        local = _as_list(self.cache.load(key, default=[]), spec.name, "cached")
        merged = merge_unique(legacy, local, key=spec.dedupe_key or saved_item_key)

        self.markers.mark(spec.name, user_id)
        self.cache.save(key, merged)

        pushed = False
        if merged:
            write = await self.remote.write(spec, merged, user_id)
            pushed = write.ok
            if not pushed:
                logger.warning("Migrated %s for %s but push failed: %s", spec.name, user_id, write.error)

        logger.info(
            "Migrated %s for %s: %d legacy + %d cached -> %d",
            spec.name,
            user_id,
            len(legacy),
            len(local),
            len(merged),
        )
        return MigrationOutcome(
            value=merged, legacy_count=len(legacy), local_count=len(local), pushed=pushed
        )


def _as_list(value: Any, collection: str, source: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Ignoring %s %s: expected a list, got %s", source, collection, type(value).__name__)
        return []
    return value
