"""Tests for the backup client and models."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from launchpad.core.backups.client import BackupClient, is_allowed_backup_key, user_id_from_key
from launchpad.core.backups.models import BackupInfo, RestoreResult
from launchpad.core.config.models import ApiConfig, RetryConfig
from launchpad.core.exceptions import LaunchpadError, TransportError
from launchpad.core.transport.client import Transport

BACKUP = {
    "id": 7,
    "itemCount": 12,
    "action": "pre_write",
    "createdBy": "figma:42",
    "createdAt": "2025-03-01T10:00:00Z",
}


def make_client(handler) -> BackupClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BackupClient(
        Transport(ApiConfig(base_url="http://store.test"), RetryConfig(max_retries=0), client=client)
    )


class TestBackupKeys:
    @pytest.mark.parametrize("key", ["templates", "housekeeping_rules", "saved_items:42"])
    def test_allowed(self, key: str) -> None:
        assert is_allowed_backup_key(key) is True

    @pytest.mark.parametrize("key", ["users", "saved_items:", "saved_items:4/2", "hidden_clouds"])
    def test_rejected(self, key: str) -> None:
        assert is_allowed_backup_key(key) is False

    def test_user_id_from_key(self) -> None:
        assert user_id_from_key("saved_items:42") == "42"
        assert user_id_from_key("templates") is None


class TestBackupModels:
    def test_backup_info_from_camel_case(self) -> None:
        info = BackupInfo.model_validate(BACKUP)

        assert info.item_count == 12
        assert info.created_by == "figma:42"
        assert info.created_at == datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_restore_summary(self) -> None:
        ok = RestoreResult.model_validate({"success": True, "message": "Restored templates", "itemCount": 3})
        failed = RestoreResult(success=False, message="Backup not found")

        assert ok.summary() == "Restored templates (3 items)"
        assert failed.summary() == "Failed: Backup not found"


class TestBackupClient:
    """Tests for BackupClient requests."""

    @pytest.mark.asyncio
    async def test_list_backups(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"backups": [BACKUP]})

        backups = await make_client(handler).list_backups("templates", limit=5)

        assert [b.id for b in backups] == [7]
        assert seen[0].url.path == "/api/backups/templates"
        assert seen[0].url.params["limit"] == "5"
        assert "x-figma-user-id" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_user_key_sends_identity(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"backups": []})

        assert await make_client(handler).list_backups("saved_items:42") == []
        assert seen[0].headers["x-figma-user-id"] == "42"

    @pytest.mark.asyncio
    async def test_user_id_escaped_in_path(self) -> None:
        """Characters in a user id stay inside the path segment."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"backups": []})

        await make_client(handler).list_backups("saved_items:4 2?x")

        assert seen[0].url.path == "/api/backups/saved_items:4 2?x"
        assert b"%3F" in seen[0].url.raw_path
        assert dict(seen[0].url.params) == {"limit": "20"}

    @pytest.mark.asyncio
    async def test_invalid_key_makes_no_request(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(LaunchpadError, match="Invalid data key 'users'"):
            await make_client(handler).list_backups("users")

        assert seen == []

    @pytest.mark.asyncio
    async def test_list_backup_types(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["x-figma-user-id"] == "42"
            return httpx.Response(
                200,
                json={"backupTypes": [{"data_key": "templates", "backup_count": 4}, {"data_key": "saved_items:42"}]},
            )

        types = await make_client(handler).list_backup_types(user_id="42")

        assert [t.data_key for t in types] == ["templates", "saved_items:42"]

    @pytest.mark.asyncio
    async def test_get_backup(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/backups/templates/7"
            return httpx.Response(200, json={**BACKUP, "dataKey": "templates", "data": [{"id": "t1"}]})

        backup = await make_client(handler).get_backup("templates", 7)

        assert backup.data_key == "templates"
        assert backup.data == [{"id": "t1"}]

    @pytest.mark.asyncio
    async def test_get_malformed_backup(self) -> None:
        client = make_client(lambda request: httpx.Response(200, json={"id": 7}))

        with pytest.raises(LaunchpadError, match="Malformed backup #7"):
            await client.get_backup("templates", 7)

    @pytest.mark.asyncio
    async def test_restore_with_merge(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"success": True, "message": "Merged backup", "itemCount": 14, "restoredFrom": BACKUP["createdAt"]},
            )

        result = await make_client(handler).restore("templates", 7, merge=True)

        assert result.success is True
        assert result.item_count == 14
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/backups/templates/7/restore"
        assert json.loads(seen[0].content) == {"merge": True}

    @pytest.mark.asyncio
    async def test_create_for_user_key(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "message": "Backup created", "itemCount": 2})

        result = await make_client(handler).create("saved_items:42", user_id="42")

        assert result.summary() == "Backup created (2 items)"
        assert seen[0].url.path == "/api/backups/saved_items:42/create"
        assert seen[0].headers["x-figma-user-id"] == "42"
        assert json.loads(seen[0].content) == {"userId": "42"}

    @pytest.mark.asyncio
    async def test_server_error_raises(self) -> None:
        client = make_client(lambda request: httpx.Response(404, json={"error": "Backup not found"}))

        with pytest.raises(TransportError, match="Backup not found"):
            await client.restore("templates", 99)
