"""
Server-side backup listing, preview, restore and creation.
"""

from launchpad.core.backups.client import (
    ALLOWED_BACKUP_KEYS,
    BackupClient,
    is_allowed_backup_key,
    user_id_from_key,
)
from launchpad.core.backups.models import BackupData, BackupInfo, BackupType, RestoreResult

__all__ = [
    "ALLOWED_BACKUP_KEYS",
    "BackupClient",
    "is_allowed_backup_key",
    "user_id_from_key",
    "BackupData",
    "BackupInfo",
    "BackupType",
    "RestoreResult",
]
