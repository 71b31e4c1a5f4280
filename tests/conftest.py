"""
Pytest configuration and shared fixtures.

Provides an in-memory remote store with failure injection, a local cache,
ledger and recording notifier, and an engine factory wired to them.
"""

import asyncio
import copy
from typing import Any

import pytest

from launchpad.core.cache.store import LocalCache, collection_key
from launchpad.core.config import loader
from launchpad.core.ledger.store import LastKnownGoodLedger
from launchpad.core.migration.resolver import MigrationResolver
from launchpad.core.notify import Notifier
from launchpad.core.sync.collections import CollectionSpec, get_collection
from launchpad.core.sync.engine import CollectionSyncEngine
from launchpad.core.transport.models import TransportResult

_FAILURE_STATUS = {"client": 400, "server": 503}


def _failure(spec: CollectionSpec, method: str, error_type: str) -> TransportResult:
    return TransportResult(
        ok=False,
        endpoint=spec.endpoint,
        method=method,
        status_code=_FAILURE_STATUS.get(error_type),
        error=f"injected {error_type} failure",
        error_type=error_type,
        attempts=1,
    )


class FakeRemote:
    """
    In-memory remote store.

    ``read_failures``/``write_failures`` are queues of error types consumed
    by the next calls; ``reads_down``/``writes_down`` fail every call.
    ``write_gate`` blocks writes until set. ``events`` records every call.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = copy.deepcopy(data or {})
        self.legacy: dict[str, Any] = {}
        self.read_failures: list[str] = []
        self.write_failures: list[str] = []
        self.reads_down = False
        self.writes_down = False
        self.write_gate: asyncio.Event | None = None
        self.events: list[tuple[str, str, Any]] = []

    @staticmethod
    def _key(spec: CollectionSpec, user_id: str | None) -> str:
        return collection_key(spec.name, user_id if spec.is_per_user else None)

    async def read(
        self, spec: CollectionSpec, user_id: str | None = None, *, legacy: bool = False
    ) -> TransportResult:
        self.events.append(("read", spec.name, "legacy" if legacy else user_id))
        if self.read_failures:
            return _failure(spec, "GET", self.read_failures.pop(0))
        if self.reads_down:
            return _failure(spec, "GET", "network")
        if legacy:
            if spec.name not in self.legacy:
                return _failure(spec, "GET", "client")
            value = self.legacy[spec.name]
        else:
            value = self.data.get(self._key(spec, user_id), [])
        return TransportResult(ok=True, endpoint=spec.endpoint, status_code=200, data=copy.deepcopy(value))

    async def write(
        self, spec: CollectionSpec, value: Any, user_id: str | None = None
    ) -> TransportResult:
        self.events.append(("write_start", spec.name, copy.deepcopy(value)))
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.write_failures:
            return _failure(spec, "POST", self.write_failures.pop(0))
        if self.writes_down:
            return _failure(spec, "POST", "network")
        self.data[self._key(spec, user_id)] = copy.deepcopy(value)
        self.events.append(("write_end", spec.name, copy.deepcopy(value)))
        return TransportResult(ok=True, endpoint=spec.endpoint, method="POST", status_code=200)

    def writes(self, name: str | None = None) -> list[Any]:
        """Values of completed writes, optionally for one collection."""
        return [v for kind, n, v in self.events if kind == "write_end" and (name is None or n == name)]


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


def _templates(count: int) -> list[dict[str, str]]:
    return [{"id": f"t{i}", "name": f"Template {i}"} for i in range(1, count + 1)]


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def wait_until():
    """Poll until ``predicate()`` is true or fail after ``timeout`` seconds."""
    return _wait_until


@pytest.fixture
def make_templates():
    """Build ``count`` valid template records."""
    return _templates


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def cache() -> LocalCache:
    return LocalCache.in_memory()


@pytest.fixture
def ledger(cache) -> LastKnownGoodLedger:
    return LastKnownGoodLedger(cache)


@pytest.fixture
def notes() -> list[tuple[str, bool]]:
    """Notifications delivered to the recording sink."""
    return []


@pytest.fixture
def notifier(notes) -> Notifier:
    return Notifier(lambda message, is_error: notes.append((message, is_error)))


@pytest.fixture
def make_engine(remote, cache, ledger, notifier):
    """Build engines for registered collections sharing the fixtures above."""

    def _make(name: str, user_id: str | None = None, **kwargs: Any) -> CollectionSyncEngine:
        spec = get_collection(name)
        kwargs.setdefault("reconcile_interval", 3600.0)
        if spec.migrate_from_shared:
            kwargs.setdefault("migration", MigrationResolver(remote, cache))
        return CollectionSyncEngine(
            spec, remote, cache, ledger, user_id=user_id, notifier=notifier, **kwargs
        )

    return _make


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config loading away from the real user config and environment."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in (
        "LAUNCHPAD_API_URL",
        "LAUNCHPAD_API_KEY",
        "LAUNCHPAD_USER_ID",
        "LAUNCHPAD_RECONCILE_INTERVAL",
        "LAUNCHPAD_STATE_DIR",
    ):
        # setenv first so teardown also removes values set directly in os.environ
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    loader.clear_cache()
    yield
    loader.clear_cache()
