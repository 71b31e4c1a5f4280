"""
Last-known-good ledger: per-collection item counts used to detect
suspicious empty responses from the remote store.
"""

from launchpad.core.ledger.models import LastKnownGood
from launchpad.core.ledger.store import LastKnownGoodLedger

__all__ = ["LastKnownGood", "LastKnownGoodLedger"]
