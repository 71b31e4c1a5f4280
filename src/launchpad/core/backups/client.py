"""
Client for the remote store's backup endpoints.

Unlike the sync engine, this is an operator tool: failures raise
``TransportError`` (or ``LaunchpadError`` for bad input) instead of being
absorbed.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from launchpad.core.backups.models import BackupData, BackupInfo, BackupType, RestoreResult
from launchpad.core.exceptions import LaunchpadError
from launchpad.core.transport.client import Transport

logger = logging.getLogger(__name__)

ALLOWED_BACKUP_KEYS = (
    "templates",
    "saved_items",
    "figma_links",
    "cloud_figma_links",
    "custom_clouds",
    "editable_clouds",
    "cloud_categories",
    "status_symbols",
    "cloud_pocs",
    "housekeeping_rules",
)

_USER_KEY_PATTERN = re.compile(r"^saved_items:([^/]+)$")


def is_allowed_backup_key(data_key: str) -> bool:
    """
    Check a data key against the server's whitelist.

    Example:
        >>> is_allowed_backup_key("saved_items:42")
        True
        >>> is_allowed_backup_key("users")
        False
    """
    return data_key in ALLOWED_BACKUP_KEYS or bool(_USER_KEY_PATTERN.match(data_key))


def user_id_from_key(data_key: str) -> str | None:
    """Return the user id embedded in a per-user key, if any."""
    match = _USER_KEY_PATTERN.match(data_key)
    return match.group(1) if match else None


def _backup_path(data_key: str, *parts: object) -> str:
    """Build a backup endpoint; the key may carry an arbitrary user id."""
    segments = [quote(data_key, safe=":"), *(quote(str(p), safe="") for p in parts)]
    return "/api/backups/" + "/".join(segments)


class BackupClient:
    """
    List, inspect, restore and create backups.

    Example:
        >>> async with Transport(config.api, config.retry) as transport:
        ...     backups = await BackupClient(transport).list_backups("templates", limit=5)
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def _check_key(self, data_key: str) -> None:
        if not is_allowed_backup_key(data_key):
            raise LaunchpadError(
                f"Invalid data key '{data_key}'. Must be one of: "
                f"{', '.join(ALLOWED_BACKUP_KEYS)}, or saved_items:<userId>",
                data_key=data_key,
            )

    async def _call(self, endpoint: str, data_key: str | None = None, **kwargs: Any) -> Any:
        user_id = user_id_from_key(data_key) if data_key else None
        result = await self.transport.request(endpoint, user_id=user_id, **kwargs)
        return result.unwrap()

    async def list_backup_types(self, user_id: str | None = None) -> list[BackupType]:
        """List data keys that have backups (per-user keys only for ``user_id``)."""
        result = await self.transport.request("/api/backups", user_id=user_id)
        data = result.unwrap() or {}
        return [BackupType.model_validate(t) for t in data.get("backupTypes", [])]

    async def list_backups(self, data_key: str, limit: int = 20) -> list[BackupInfo]:
        self._check_key(data_key)
        data = await self._call(_backup_path(data_key), data_key, params={"limit": limit})
        data = data or {}
        return [BackupInfo.model_validate(b) for b in data.get("backups", [])]

    async def get_backup(self, data_key: str, backup_id: int) -> BackupData:
        self._check_key(data_key)
        data = await self._call(_backup_path(data_key, backup_id), data_key)
        try:
            return BackupData.model_validate(data)
        except PydanticValidationError as e:
            raise LaunchpadError(f"Malformed backup #{backup_id}: {e}", data_key=data_key) from e

    async def restore(self, data_key: str, backup_id: int, merge: bool = False) -> RestoreResult:
        """
        Restore a collection from a backup.

        Args:
            data_key: Backed-up data key
            backup_id: Backup to restore
            merge: Merge the backup into current data instead of replacing it
        """
        self._check_key(data_key)
        data = await self._call(
            _backup_path(data_key, backup_id, "restore"),
            data_key,
            method="POST",
            body={"merge": merge},
        )
        result = RestoreResult.model_validate(data or {})
        logger.info("Restore %s #%s: %s", data_key, backup_id, result.summary())
        return result

    async def create(self, data_key: str, user_id: str | None = None) -> RestoreResult:
        """Create a manual backup of a collection's current server data."""
        self._check_key(data_key)
        body: dict[str, Any] = {}
        if user_id:
            body["userId"] = user_id
        data = await self._call(
            _backup_path(data_key, "create"), data_key, method="POST", body=body
        )
        return RestoreResult.model_validate(data or {})


__all__ = [
    "ALLOWED_BACKUP_KEYS",
    "BackupClient",
    "is_allowed_backup_key",
    "user_id_from_key",
]
