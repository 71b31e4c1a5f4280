"""
Sync session: every collection one panel needs, sharing one transport,
cache, ledger, notifier and migration resolver.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from launchpad.core.cache.store import LocalCache
from launchpad.core.config.models import LaunchpadConfig
from launchpad.core.ledger.store import LastKnownGoodLedger
from launchpad.core.migration.resolver import MigrationResolver
from launchpad.core.notify import Notifier, NotifySink
from launchpad.core.sync.collections import COLLECTIONS, CollectionSpec
from launchpad.core.sync.engine import CollectionSyncEngine
from launchpad.core.sync.guards import DestructiveChangeGuard
from launchpad.core.sync.models import SyncState
from launchpad.core.sync.remote import CollectionRemote, RemoteStore
from launchpad.core.transport.client import Transport

logger = logging.getLogger(__name__)


class SyncSession:
    """
    Builds and owns one engine per registered collection.

    Per-user collections are only built when a user id is known. A read-only
    session loads and falls back but never migrates, writes or reconciles.

    Example:
        >>> async with SyncSession(load_config(), user_id="42") as session:
        ...     await session.load_all()
        ...     templates = session.engine("templates").value
    """

    def __init__(
        self,
        config: LaunchpadConfig | None = None,
        user_id: str | None = None,
        *,
        transport: Transport | None = None,
        remote: CollectionRemote | None = None,
        cache: LocalCache | None = None,
        notify_sink: NotifySink | None = None,
        collections: dict[str, CollectionSpec] | None = None,
        project_dir: Path | None = None,
        read_only: bool = False,
    ) -> None:
        self.config = config or LaunchpadConfig()
        self.read_only = read_only
        self.user_id = user_id or self.config.sync.user_id

        self._owns_transport = transport is None and remote is None
        self.transport = transport
        if remote is None:
            if self.transport is None:
                self.transport = Transport(self.config.api, self.config.retry)
            remote = RemoteStore(self.transport)
        self.remote = remote

        self.cache = cache or LocalCache.from_config(self.config.cache, project_dir)
        self.ledger = LastKnownGoodLedger(self.cache)
        self.notifier = Notifier(notify_sink)
        self.guard = DestructiveChangeGuard(self.config.guard)
        self.migration = MigrationResolver(self.remote, self.cache)

        self.engines: dict[str, CollectionSyncEngine] = {}
        for name, spec in (collections or COLLECTIONS).items():
            if spec.is_per_user and not self.user_id:
                logger.debug("Skipping per-user collection %s: no user id", name)
                continue
            self.engines[name] = CollectionSyncEngine(
                spec,
                self.remote,
                self.cache,
                self.ledger,
                user_id=self.user_id,
                guard=self.guard,
                notifier=self.notifier,
                migration=None if read_only or not spec.migrate_from_shared else self.migration,
                reconcile_interval=self.config.sync.reconcile_interval_seconds,
                read_only=read_only,
            )

    async def __aenter__(self) -> "SyncSession":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    def engine(self, name: str) -> CollectionSyncEngine:
        """
        Return the engine for a collection.

        Raises:
            KeyError: If the collection is unknown, or per-user without a user id
        """
        try:
            return self.engines[name]
        except KeyError:
            if name in COLLECTIONS and COLLECTIONS[name].is_per_user:
                raise KeyError(f"'{name}' is per-user; start the session with a user id") from None
            raise KeyError(f"Unknown collection '{name}'") from None

    async def load_all(self) -> dict[str, SyncState]:
        """Load every collection concurrently."""
        states = await asyncio.gather(*(engine.load() for engine in self.engines.values()))
        return dict(zip(self.engines, states))

    def visibility_regained(self) -> None:
        for engine in self.engines.values():
            engine.visibility_regained()

    async def wait_idle(self) -> None:
        await asyncio.gather(*(engine.wait_idle() for engine in self.engines.values()))

    async def close(self) -> None:
        await asyncio.gather(*(engine.close() for engine in self.engines.values()))
        if self._owns_transport and self.transport is not None:
            await self.transport.aclose()


__all__ = ["SyncSession"]
