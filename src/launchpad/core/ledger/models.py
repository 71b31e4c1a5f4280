"""
Data models for the last-known-good ledger.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class LastKnownGood(BaseModel):
    """
    Last non-empty item count observed for a collection.

    Stored separately from the collection's own cache entry so that a
    clobbered cache entry can't also erase the evidence that data existed.

    Example:
        >>> record = LastKnownGood(collection_name="templates", item_count=12)
        >>> record.model_dump(mode="json")["item_count"]
        12
    """

    collection_name: str = Field(description="Collection (or per-user cache key) the count belongs to")
    item_count: int = Field(ge=0, description="Number of items last observed")
    observed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the count was recorded",
    )
