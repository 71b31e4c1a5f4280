"""
One-time migration of legacy shared collections into per-user ones.
"""

from launchpad.core.migration.resolver import (
    MigrationMarkers,
    MigrationOutcome,
    MigrationResolver,
    merge_unique,
)

__all__ = ["MigrationMarkers", "MigrationOutcome", "MigrationResolver", "merge_unique"]
