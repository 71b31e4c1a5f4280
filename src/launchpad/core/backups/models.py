"""
Data models for server-side backups.

The remote store snapshots a collection before risky writes and on demand;
these models mirror its camelCase JSON.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BackupType(BaseModel):
    """A data key that has at least one backup."""

    model_config = ConfigDict(extra="allow")

    data_key: str = Field(description="Backed-up data key")


class BackupInfo(BaseModel):
    """
    One backup snapshot, without its data.

    Example:
        >>> BackupInfo.model_validate({"id": 7, "itemCount": 12, "action": "manual"})
        BackupInfo(id=7, item_count=12, action='manual', created_by=None, created_at=None)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int
    item_count: int = Field(default=0, alias="itemCount")
    action: str | None = Field(default=None, description="What triggered the snapshot")
    created_by: str | None = Field(default=None, alias="createdBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class BackupData(BaseModel):
    """A backup snapshot including its data (for preview before restore)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    data_key: str = Field(alias="dataKey")
    item_count: int = Field(default=0, alias="itemCount")
    action: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    data: Any = None


class RestoreResult(BaseModel):
    """Outcome of a restore or a manual backup."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    message: str = ""
    item_count: int = Field(default=0, alias="itemCount")
    restored_from: datetime | None = Field(default=None, alias="restoredFrom")

    def summary(self) -> str:
        if not self.success:
            return f"Failed: {self.message}"
        return f"{self.message} ({self.item_count} items)"
