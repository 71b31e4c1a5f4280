"""
Last-known-good ledger.

Remembers, per collection, how many items were last seen in a healthy
state. An empty remote response for a collection the ledger says had items
is treated as suspicious rather than as a legitimate deletion.
"""

import logging

from pydantic import ValidationError as PydanticValidationError

from launchpad.core.cache.store import LAST_KNOWN_GOOD_KEY, LocalCache
from launchpad.core.ledger.models import LastKnownGood

logger = logging.getLogger(__name__)


class LastKnownGoodLedger:
    """
    Ledger of item counts persisted under the ``last-known-good`` cache key.

    Example:
        >>> ledger = LastKnownGoodLedger(LocalCache.in_memory())
        >>> ledger.record("templates", 5)
        >>> ledger.is_suspicious_empty("templates", 0)
        True
    """

    def __init__(self, cache: LocalCache) -> None:
        self.cache = cache

    def _load_all(self) -> dict[str, dict]:
        raw = self.cache.load(LAST_KNOWN_GOOD_KEY, default={})
        if not isinstance(raw, dict):
            logger.warning("Discarding malformed last-known-good ledger")
            return {}
        return raw

    def get(self, key: str) -> LastKnownGood | None:
        """Return the record for a collection key, if one exists."""
        entry = self._load_all().get(key)
        if entry is None:
            return None
        try:
            return LastKnownGood.model_validate(entry)
        except PydanticValidationError as e:
            logger.warning("Ignoring malformed ledger entry for %s: %s", key, e)
            return None

    def last_count(self, key: str) -> int:
        record = self.get(key)
        return record.item_count if record else 0

    def record(self, key: str, item_count: int) -> None:
        """
        Record the count observed for a collection.

        Only non-zero counts are recorded: the ledger tracks the last time
        the collection held data, so a confirmed deletion down to zero
        doesn't overwrite it. Use ``clear()`` after an intentional delete.
        """
        if item_count <= 0:
            return
        entries = self._load_all()
        entries[key] = LastKnownGood(collection_name=key, item_count=item_count).model_dump(
            mode="json"
        )
        self.cache.save(LAST_KNOWN_GOOD_KEY, entries)

    def clear(self, key: str) -> None:
        """Forget a collection's count (after a confirmed, intentional empty)."""
        entries = self._load_all()
        if entries.pop(key, None) is not None:
            self.cache.save(LAST_KNOWN_GOOD_KEY, entries)

    def is_suspicious_empty(self, key: str, observed_count: int) -> bool:
        """True when the remote reports nothing but the ledger remembers items."""
        return observed_count == 0 and self.last_count(key) > 0
