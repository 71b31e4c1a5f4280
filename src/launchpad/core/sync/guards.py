"""
Destructive-change guard.

Blocks writes that would empty or drastically shrink a collection in one
step. Small collections (fewer than ``min_protected_count`` items) are never
blocked, so deleting the last one or two items stays possible.
"""

import logging

from launchpad.core.config.models import GuardConfig
from launchpad.core.exceptions import GuardRejection

logger = logging.getLogger(__name__)


class DestructiveChangeGuard:
    """
    Example:
        >>> guard = DestructiveChangeGuard()
        >>> guard.check("templates", previous_count=5, next_count=0)
        GuardRejection('Cannot delete all templates at once. Delete them one at a time.')
        >>> guard.check("templates", previous_count=2, next_count=0) is None
        True
    """

    def __init__(self, config: GuardConfig | None = None) -> None:
        self.config = config or GuardConfig()

    def check(self, collection: str, previous_count: int, next_count: int) -> GuardRejection | None:
        """
        Return a GuardRejection if the write looks like accidental data loss.
        """
        if not self.config.enabled:
            return None
        if previous_count < self.config.min_protected_count or next_count >= previous_count:
            return None

        removed_fraction = (previous_count - next_count) / previous_count
        if next_count == 0 or removed_fraction > self.config.max_loss_fraction:
            logger.warning(
                "Blocked %s write: %d -> %d items", collection, previous_count, next_count
            )
            return GuardRejection(collection, previous_count, next_count)
        return None


__all__ = ["DestructiveChangeGuard"]
