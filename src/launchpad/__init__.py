"""
Launchpad - resilient sync layer for the template library panel.

Keeps the panel's collections (templates, saved items, clouds, categories,
status symbols, contacts, links) consistent between the remote store and a
local durable cache.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from launchpad.core.config.models import LaunchpadConfig
from launchpad.core.sync.models import SaveResult, SyncPhase, SyncState

__all__ = ["LaunchpadConfig", "SaveResult", "SyncPhase", "SyncState", "__version__"]
