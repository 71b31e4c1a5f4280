"""
Collection sync engine.

One engine instance keeps one collection consistent between the remote
store and the local cache for the lifetime of a session:

    loading -> loaded (remote) | loaded_fallback (cache) -> [syncing] -> reconciled

The previously committed value stays visible until a write (and, for
verified collections, its read-back) succeeds. When the remote store is
unreachable or contradicts the last-known-good ledger, the engine shows the
cached value and reconciles in the background until the remote store
agrees.

Example:
    >>> engine = CollectionSyncEngine(get_collection("templates"), remote, cache, ledger)
    >>> await engine.load()
    >>> result = await engine.save([*engine.value, {"id": "t9", "name": "Roadmap"}])
    >>> result.summary()
    'templates saved (13 items)'
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from launchpad.core.cache.store import LocalCache, collection_key
from launchpad.core.exceptions import (
    GuardRejection,
    LaunchpadError,
    SuspiciousEmptyRemote,
    ValidationError,
)
from launchpad.core.ledger.store import LastKnownGoodLedger
from launchpad.core.notify import Notifier
from launchpad.core.sync.collections import CollectionSpec
from launchpad.core.sync.guards import DestructiveChangeGuard
from launchpad.core.sync.models import SaveResult, SyncPhase, SyncState, WriteMode, count_items
from launchpad.core.sync.remote import CollectionRemote
from launchpad.core.transport.models import TransportResult

if TYPE_CHECKING:
    from launchpad.core.migration.resolver import MigrationResolver

logger = logging.getLogger(__name__)

Subscriber = Callable[[SyncState], None]

DEFAULT_RECONCILE_INTERVAL = 30.0


class CollectionSyncEngine:
    """
    Keeps one collection in sync.

    Engine methods never raise sync-layer errors: ``save()`` reports them in
    its ``SaveResult`` and state changes are published to subscribers.
    """

    def __init__(
        self,
        spec: CollectionSpec,
        remote: CollectionRemote,
        cache: LocalCache,
        ledger: LastKnownGoodLedger,
        *,
        user_id: str | None = None,
        guard: DestructiveChangeGuard | None = None,
        notifier: Notifier | None = None,
        migration: MigrationResolver | None = None,
        reconcile_interval: float = DEFAULT_RECONCILE_INTERVAL,
        read_only: bool = False,
    ) -> None:
        """
        Args:
            spec: Collection description
            remote: Remote collection contract
            cache: Local durable cache
            ledger: Last-known-good counts
            user_id: Identity; required for per-user collections
            guard: Destructive-change guard (default thresholds if omitted)
            notifier: User-facing notifications (logs if omitted)
            migration: Resolver for collections that migrate from shared
            reconcile_interval: Seconds between background reconciliation attempts
            read_only: Load and fall back only; never write or reconcile

        Raises:
            ValueError: If a per-user collection is built without a user id
        """
        if spec.is_per_user and not user_id:
            raise ValueError(f"{spec.name} is per-user and needs a user id")

        self.spec = spec
        self.remote = remote
        self.cache = cache
        self.ledger = ledger
        self.user_id = user_id if spec.is_per_user else None
        self.guard = guard or DestructiveChangeGuard()
        self.notifier = notifier or Notifier()
        self.migration = migration
        self.reconcile_interval = reconcile_interval
        self.read_only = read_only
        self.key = collection_key(spec.name, self.user_id)

        self._state = SyncState(
            value=spec.default(),
            last_known_count=ledger.last_count(self.key),
        )
        self._lock = asyncio.Lock()
        self._wake = asyncio.Event()
        self._subscribers: list[Subscriber] = []
        self._background: set[asyncio.Task[Any]] = set()
        self._reconcile_task: asyncio.Task[None] | None = None
        self._pending_push = False
        self._closed = False

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        """A copy of the current state."""
        return self._state.model_copy(deep=True)

    @property
    def value(self) -> Any:
        return copy.deepcopy(self._state.value)

    @property
    def is_reconciling(self) -> bool:
        return self._reconcile_task is not None and not self._reconcile_task.done()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with a state copy after every change.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _set_state(self, **changes: Any) -> None:
        self._state = self._state.model_copy(update=changes)
        for callback in list(self._subscribers):
            try:
                callback(self.state)
            except Exception:
                logger.warning("Subscriber for %s failed", self.spec.name, exc_info=True)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    async def load(self) -> SyncState:
        """Fetch the collection, falling back to the local cache."""
        self._set_state(loading=True, phase=SyncPhase.LOADING)
        result = await self.remote.read(self.spec, self.user_id)
        if result.ok:
            await self._accept_remote(result.data)
        else:
            logger.warning("Loading %s failed: %s", self.spec.name, result.error)
            self._fallback_after_failure()
        return self.state

    async def _accept_remote(self, value: Any) -> None:
        if count_items(value) > 0:
            self._commit(value)
            return

        if self.migration is not None and self.migration.needs_migration(self.spec, self.user_id):
            outcome = await self.migration.resolve(self.spec, self.user_id)
            if outcome is not None:
                if outcome.pushed or not outcome.value:
                    # Not yet confirmed by a read, so the ledger stays unseeded
                    self._commit(outcome.value, record=False)
                else:
                    self._pending_push = True
                    self._enter_fallback(outcome.value)
                return

        if self.ledger.is_suspicious_empty(self.key, 0):
            cached = self.cache.load(self.key)
            if count_items(cached) > 0:
                err = SuspiciousEmptyRemote(self.spec.name, self.ledger.last_count(self.key))
                logger.warning("%s; restoring %d cached items", err, count_items(cached))
                restoring = "" if self.read_only else " and restoring them"
                self.notifier.notify(
                    f"Server returned no {self.spec.label}. "
                    f"Showing {count_items(cached)} from local cache{restoring}.",
                    is_error=True,
                )
                self._pending_push = True
                self._enter_fallback(cached, immediate=True)
                return

        if self.spec.default_when_empty:
            self._commit(self.spec.default(), record=False)
            return

        self._commit(value)

    def _fallback_after_failure(self) -> None:
        cached = self.cache.load(self.key)
        if count_items(cached) > 0:
            self.notifier.notify(
                f"Couldn't reach the server. Showing {count_items(cached)} cached {self.spec.label}.",
                is_error=True,
            )
            self._enter_fallback(cached)
            return

        # First run with nothing cached
        self._set_state(
            value=self.spec.default(),
            loading=False,
            has_loaded_once=True,
            using_fallback=False,
            phase=SyncPhase.LOADED,
        )

    def _commit(self, value: Any, *, phase: SyncPhase = SyncPhase.LOADED, record: bool = True) -> None:
        """Make a remote-confirmed value the committed state."""
        self.cache.save(self.key, value)
        if record:
            self.ledger.record(self.key, count_items(value))
        self._set_state(
            value=value,
            loading=False,
            has_loaded_once=True,
            using_fallback=False,
            last_known_count=self.ledger.last_count(self.key),
            phase=phase,
        )

    def _enter_fallback(self, value: Any, *, immediate: bool = False) -> None:
        self._set_state(
            value=value,
            loading=False,
            has_loaded_once=True,
            using_fallback=True,
            phase=SyncPhase.LOADED_FALLBACK,
        )
        self._start_reconciliation(immediate=immediate)

    # ------------------------------------------------------------------
    # Background reconciliation
    # ------------------------------------------------------------------

    def _start_reconciliation(self, *, immediate: bool = False) -> None:
        if self._closed or self.read_only:
            return
        if self.is_reconciling:
            if immediate:
                self._wake.set()
            return
        self._reconcile_task = asyncio.get_running_loop().create_task(
            self._reconcile_loop(immediate)
        )

    async def _reconcile_loop(self, immediate: bool) -> None:
        first = immediate
        while self._state.using_fallback and not self._closed:
            if not first:
                try:
                    await asyncio.wait_for(self._wake.wait(), timeout=self.reconcile_interval)
                except asyncio.TimeoutError:
                    pass
            first = False
            self._wake.clear()
            await self.reconcile()
        logger.debug("Reconciliation loop for %s stopped", self.spec.name)

    def visibility_regained(self) -> None:
        """Trigger an immediate reconciliation attempt (e.g. the panel became visible)."""
        if self._state.using_fallback:
            self._start_reconciliation(immediate=True)

    async def reconcile(self) -> bool:
        """
        Run one reconciliation attempt.

        Pushes the local value when the remote store is empty (or a
        best-effort write never landed) and local data exists, unless the
        destructive-change guard refuses to shrink the remote copy; otherwise
        adopts the remote value.

        Returns:
            True if the collection is reconciled
        """
        if not self._state.using_fallback:
            return True

        async with self._lock:
            if not self._state.using_fallback:
                return True

            result = await self.remote.read(self.spec, self.user_id)
            if not result.ok:
                logger.info("Reconcile %s: remote still unavailable (%s)", self.spec.name, result.error)
                return False

            local = self._state.value
            if count_items(local) > 0 and (count_items(result.data) == 0 or self._pending_push):
                rejection = self._check_push(result.data, local)
                if rejection is None:
                    return await self._push_local(local, result.data)
                self._pending_push = False
                self._commit(result.data, phase=SyncPhase.RECONCILED)
                self.notifier.notify(f"{rejection} Showing the server copy.", is_error=True)
                return True

            self._pending_push = False
            self._commit(result.data, phase=SyncPhase.RECONCILED)
            self.notifier.notify(f"Back online. {self.spec.label.capitalize()} are in sync.")
            return True

    def _check_push(self, remote_value: Any, local: Any) -> GuardRejection | None:
        if not self.spec.guarded:
            return None
        return self.guard.check(self.spec.name, count_items(remote_value), count_items(local))

    async def _push_local(self, local: Any, remote_value: Any) -> bool:
        self._set_state(phase=SyncPhase.SYNCING)
        write = await self.remote.write(self.spec, local, self.user_id)
        if not write.ok:
            if write.is_client_error:
                self._pending_push = False
                self._commit(remote_value, phase=SyncPhase.RECONCILED)
                self.notifier.notify(
                    f"Server rejected cached {self.spec.label}: {write.error}. Showing the server copy.",
                    is_error=True,
                )
                return True
            self._set_state(phase=SyncPhase.LOADED_FALLBACK)
            return False

        confirm = await self.remote.read(self.spec, self.user_id)
        if not confirm.ok:
            self._set_state(phase=SyncPhase.LOADED_FALLBACK)
            return False

        self._pending_push = False
        self._commit(confirm.data, phase=SyncPhase.RECONCILED)
        self.notifier.notify(
            f"Restored {count_items(confirm.data)} {self.spec.label} to the server."
        )
        return True

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def save(self, next_value: Any) -> SaveResult:
        """
        Replace the collection's value.

        Validation, the destructive-change guard and the has-loaded check
        run first; a rejected write leaves the state untouched. Verified
        writes run those checks under the write lock, against the value the
        previous write committed.
        """
        if self.spec.mode is WriteMode.VERIFIED:
            async with self._lock:
                rejected = self._check_write(next_value)
                if rejected is not None:
                    return rejected
                value = copy.deepcopy(next_value)
                self.cache.save(self.key, value)
                return await self._write_verified(value)

        # No await between the checks and the visible update
        rejected = self._check_write(next_value)
        if rejected is not None:
            return rejected
        value = copy.deepcopy(next_value)
        self.cache.save(self.key, value)
        self._set_state(value=value)
        self._track(self._write_background(value))
        return SaveResult(collection=self.spec.name, accepted=True, synced=False, value=value)

    def _check_write(self, next_value: Any) -> SaveResult | None:
        if self.read_only:
            return self._reject(
                LaunchpadError(
                    f"{self.spec.label.capitalize()} are read-only in this session; write refused",
                    collection=self.spec.name,
                )
            )

        if not self._state.has_loaded_once:
            return self._reject(
                LaunchpadError(
                    f"{self.spec.label.capitalize()} haven't loaded yet; write refused",
                    collection=self.spec.name,
                )
            )

        problems = self.spec.validator(next_value)
        if problems:
            err = ValidationError(self.spec.name, problems)
            logger.warning("Rejected %s write: %s", self.spec.name, err)
            return self._reject(err)

        if self.spec.guarded:
            # The ledger still counts items an empty default or fallback value hides
            previous = max(count_items(self._state.value), self._state.last_known_count)
            rejection = self.guard.check(self.spec.name, previous, count_items(next_value))
            if rejection is not None:
                self.notifier.notify(str(rejection), is_error=True)
                return self._reject(rejection)

        return None

    def _reject(self, error: LaunchpadError) -> SaveResult:
        return SaveResult(
            collection=self.spec.name, accepted=False, value=self.value, error=error
        )

    async def _write_verified(self, value: Any) -> SaveResult:
        """Write, read back and commit. The caller holds the write lock."""
        self._set_state(phase=SyncPhase.SYNCING)
        write = await self.remote.write(self.spec, value, self.user_id)

        if write.ok:
            readback = await self.remote.read(self.spec, self.user_id)
            if readback.ok:
                self._pending_push = False
                self._commit_written(readback.data)
                return SaveResult(
                    collection=self.spec.name, accepted=True, synced=True, value=readback.data
                )
            # Acknowledged but unconfirmed; reconciliation confirms it later
            logger.warning("Read-back of %s failed: %s", self.spec.name, readback.error)
            self._enter_fallback(value)
            return SaveResult(
                collection=self.spec.name,
                accepted=True,
                synced=False,
                value=value,
                error=readback.to_error(),
            )

        if write.is_client_error:
            return await self._adopt_after_rejection(write)

        logger.warning("Saving %s failed: %s", self.spec.name, write.error)
        refetch = await self.remote.read(self.spec, self.user_id)
        if refetch.ok and not (count_items(refetch.data) == 0 and count_items(value) > 0):
            self._commit(refetch.data)
            self.notifier.notify(
                f"Couldn't save {self.spec.label}. Showing the server copy.", is_error=True
            )
            return SaveResult(
                collection=self.spec.name,
                accepted=True,
                synced=False,
                value=refetch.data,
                error=write.to_error(),
            )

        # Reconciliation pushes this value only while the remote stays empty
        self._pending_push = False
        if refetch.ok:
            message = f"Couldn't save {self.spec.label} to the server. Kept locally; will retry."
        else:
            message = (
                f"Couldn't reach the server to save {self.spec.label}. "
                "The server copy will be shown once it's reachable."
            )
        self.notifier.notify(message, is_error=True)
        self._enter_fallback(value)
        return SaveResult(
            collection=self.spec.name,
            accepted=True,
            synced=False,
            value=value,
            error=write.to_error(),
        )

    async def _write_background(self, value: Any) -> None:
        async with self._lock:
            write = await self.remote.write(self.spec, value, self.user_id)
            if write.ok:
                self._record_written(value)
                if self._state.value is value:
                    self._pending_push = False
                    if self._state.using_fallback:
                        self._set_state(
                            using_fallback=False,
                            last_known_count=self.ledger.last_count(self.key),
                            phase=SyncPhase.RECONCILED,
                        )
                    else:
                        self._set_state(last_known_count=self.ledger.last_count(self.key))
                return

            if write.is_client_error:
                await self._adopt_after_rejection(write)
                return

            logger.warning("Background save of %s failed: %s", self.spec.name, write.error)
            self._pending_push = True
            if not self._state.using_fallback:
                self.notifier.notify(
                    f"Couldn't save {self.spec.label} to the server. Kept locally; will retry.",
                    is_error=True,
                )
                self._enter_fallback(self._state.value)

    async def _adopt_after_rejection(self, write: TransportResult) -> SaveResult:
        """The server refused a write (4xx): show what the server has instead."""
        err = write.to_error()
        logger.warning("Server rejected %s write: %s", self.spec.name, err)
        self.notifier.notify(f"Server rejected {self.spec.label} change: {write.error}", is_error=True)

        refetch = await self.remote.read(self.spec, self.user_id)
        if refetch.ok:
            self._pending_push = False
            self._commit(refetch.data)
        else:
            # Keep showing the last committed value
            self.cache.save(self.key, self._state.value)
            self._set_state(phase=SyncPhase.LOADED_FALLBACK if self._state.using_fallback else SyncPhase.LOADED)

        return SaveResult(
            collection=self.spec.name, accepted=False, synced=False, value=self.value, error=err
        )

    def _record_written(self, value: Any) -> None:
        count = count_items(value)
        if count > 0:
            self.ledger.record(self.key, count)
        else:
            # Confirmed, intentional empty
            self.ledger.clear(self.key)

    def _commit_written(self, value: Any) -> None:
        self._record_written(value)
        self._commit(value, record=False)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _track(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def wait_idle(self) -> None:
        """Wait for in-flight background writes to settle."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        """Stop reconciliation and cancel background work."""
        self._closed = True
        self._wake.set()
        tasks = list(self._background)
        if self._reconcile_task is not None:
            tasks.append(self._reconcile_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._reconcile_task = None
        self._subscribers.clear()


__all__ = ["CollectionSyncEngine", "DEFAULT_RECONCILE_INTERVAL"]
