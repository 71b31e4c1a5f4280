"""Tests for SyncSession wiring."""

import pytest

from launchpad.core.config.models import LaunchpadConfig, SyncConfig
from launchpad.core.ledger.store import LastKnownGoodLedger
from launchpad.core.sync.collections import COLLECTIONS
from launchpad.core.sync.session import SyncSession


class TestSessionEngines:
    """Tests for which engines a session builds."""

    def test_anonymous_session_skips_per_user(self, remote, cache) -> None:
        session = SyncSession(remote=remote, cache=cache)

        assert "templates" in session.engines
        assert "saved_items" not in session.engines
        assert "hidden_clouds" not in session.engines

    def test_user_session_builds_everything(self, remote, cache) -> None:
        session = SyncSession(user_id="42", remote=remote, cache=cache)

        assert set(session.engines) == set(COLLECTIONS)

    def test_user_id_from_config(self, remote, cache) -> None:
        config = LaunchpadConfig(sync=SyncConfig(user_id="7"))
        session = SyncSession(config, remote=remote, cache=cache)

        assert session.user_id == "7"
        assert "saved_items" in session.engines

    def test_engine_lookup_errors(self, remote, cache) -> None:
        session = SyncSession(remote=remote, cache=cache)

        with pytest.raises(KeyError, match="per-user"):
            session.engine("saved_items")
        with pytest.raises(KeyError, match="Unknown collection"):
            session.engine("users")

    def test_subset_of_collections(self, remote, cache) -> None:
        session = SyncSession(remote=remote, cache=cache, collections={"templates": COLLECTIONS["templates"]})

        assert list(session.engines) == ["templates"]


class TestSessionLoad:
    """Tests for loading all collections together."""

    @pytest.mark.asyncio
    async def test_load_all(self, remote, cache, make_templates) -> None:
        remote.data["templates"] = make_templates(2)
        remote.data["saved_items:42"] = [{"templateId": "t1"}]

        async with SyncSession(user_id="42", remote=remote, cache=cache) as session:
            states = await session.load_all()

        assert set(states) == set(COLLECTIONS)
        assert states["templates"].value == make_templates(2)
        assert states["saved_items"].value == [{"templateId": "t1"}]
        assert all(s.has_loaded_once for s in states.values())

    @pytest.mark.asyncio
    async def test_notifications_reach_sink(self, remote, cache, make_templates) -> None:
        cache.save("templates", make_templates(2))
        remote.reads_down = True
        messages = []

        async with SyncSession(
            remote=remote, cache=cache, notify_sink=lambda m, is_error: messages.append(m)
        ) as session:
            states = await session.load_all()

            assert states["templates"].using_fallback is True
            assert session.engine("templates").is_reconciling is True

        assert messages == ["Couldn't reach the server. Showing 2 cached templates."]
        assert session.engine("templates").is_reconciling is False

    @pytest.mark.asyncio
    async def test_shared_ledger_across_engines(self, remote, cache, make_templates) -> None:
        remote.data["templates"] = make_templates(4)

        async with SyncSession(remote=remote, cache=cache) as session:
            await session.load_all()

            assert session.ledger.last_count("templates") == 4
            assert session.engine("templates").state.last_known_count == 4


class TestReadOnlySession:
    """Tests for sessions that only inspect collections."""

    @pytest.mark.asyncio
    async def test_suspicious_empty_shown_without_restoring(self, remote, cache, make_templates) -> None:
        LastKnownGoodLedger(cache).record("templates", 5)
        cache.save("templates", make_templates(5))
        remote.legacy["saved_items"] = [{"templateId": "a"}]
        messages = []

        async with SyncSession(
            user_id="42",
            remote=remote,
            cache=cache,
            notify_sink=lambda m, is_error: messages.append(m),
            read_only=True,
        ) as session:
            states = await session.load_all()
            engine = session.engine("templates")

            assert states["templates"].using_fallback is True
            assert states["templates"].value == make_templates(5)
            assert engine.is_reconciling is False

            result = await engine.save(make_templates(6))
            assert result.accepted is False
            assert "read-only" in str(result.error)

        assert remote.writes() == []
        assert not any(e[2] == "legacy" for e in remote.events)
        assert "Server returned no templates. Showing 5 from local cache." in messages
