"""
Collection registry.

Each collection the panel syncs is described by a ``CollectionSpec``: where
it lives on the remote store, how its payload is wrapped, who it belongs to,
how writes are confirmed and how candidate values are validated. One
generic engine handles every collection; nothing here is per-collection
code.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from launchpad.core.sync.models import CollectionScope, WriteMode
from launchpad.core.sync.validators import (
    CustomCloud,
    HousekeepingRule,
    SavedItem,
    StatusSymbol,
    TemplateRecord,
    Validator,
    accept_any,
    list_or_mapping,
    mapping_of_lists,
    nullable,
    records,
    require_list,
    require_mapping,
)


def default_status_symbols() -> list[dict[str, str]]:
    return [
        {"id": "ready", "symbol": "\U0001f7e2", "label": "Ready"},
        {"id": "progress", "symbol": "\U0001f7e1", "label": "In Progress"},
        {"id": "deprecated", "symbol": "❌", "label": "Deprecated"},
    ]


def default_housekeeping_rules() -> list[dict[str, Any]]:
    return [
        {
            "id": "frame-guidelines",
            "title": "Frame & Resolution Guidelines",
            "description": (
                "All designs are made at 16:9 aspect ratio and built with Auto Layout. "
                "Build designs at 1600x900 or 1920x1080."
            ),
            "hasComplianceCheck": True,
            "links": [],
        },
        {
            "id": "page-structure",
            "title": "Page Structure",
            "description": (
                "Starting with a blank file? Use a page structure to lay it out the "
                "team's way. Contact your team POCs to edit or add page structures."
            ),
            "hasComplianceCheck": False,
            "links": [
                {"label": "Exploratory Work", "action": "scaffold"},
                {"label": "Release Work", "action": "scaffold"},
            ],
        },
        {
            "id": "starter-kit-info",
            "title": "What is part of Starter Kit and what's not",
            "description": "Starter Kit contains only defined, team-approved components.",
            "hasComplianceCheck": False,
            "links": [],
        },
    ]


def saved_item_key(item: Any) -> str:
    """Structural identity of a saved bookmark: template plus optional variant."""
    if not isinstance(item, dict):
        return repr(item)
    return f"{item.get('templateId')}::{item.get('variantKey') or ''}"


@dataclass(frozen=True)
class CollectionSpec:
    """
    Description of one synced collection.

    Example:
        >>> spec = CollectionSpec(name="notes")
        >>> spec.endpoint
        '/collections/notes'
    """

    name: str
    endpoint: str = ""
    body_key: str = "value"
    response_key: str | None = None
    scope: CollectionScope = CollectionScope.SHARED
    mode: WriteMode = WriteMode.BEST_EFFORT
    validator: Validator = accept_any
    guarded: bool = True
    default: Callable[[], Any] = list
    default_when_empty: bool = False
    migrate_from_shared: bool = False
    dedupe_key: Callable[[Any], str] | None = None

    def __post_init__(self) -> None:
        if not self.endpoint:
            object.__setattr__(self, "endpoint", f"/collections/{self.name}")
        if self.migrate_from_shared and self.scope is not CollectionScope.PER_USER:
            raise ValueError(f"{self.name}: only per-user collections can migrate from shared")

    @property
    def is_per_user(self) -> bool:
        return self.scope is CollectionScope.PER_USER

    @property
    def label(self) -> str:
        return self.name.replace("_", " ")

    def endpoint_for(self, user_id: str | None = None) -> str:
        """Resolve the endpoint, filling ``{user_id}`` for per-user routes."""
        if "{user_id}" in self.endpoint:
            if not user_id:
                raise ValueError(f"{self.name} requires a user id")
            return self.endpoint.format(user_id=user_id)
        return self.endpoint


COLLECTIONS: dict[str, CollectionSpec] = {
    spec.name: spec
    for spec in (
        CollectionSpec(
            name="templates",
            endpoint="/api/templates",
            body_key="templates",
            mode=WriteMode.VERIFIED,
            validator=records(TemplateRecord),
        ),
        CollectionSpec(
            name="saved_items",
            endpoint="/api/saved-items",
            body_key="savedItems",
            scope=CollectionScope.PER_USER,
            mode=WriteMode.VERIFIED,
            validator=records(SavedItem),
            migrate_from_shared=True,
            dedupe_key=saved_item_key,
        ),
        CollectionSpec(
            name="figma_links",
            endpoint="/api/figma-links",
            body_key="links",
            validator=require_list,
        ),
        CollectionSpec(
            name="cloud_figma_links",
            endpoint="/api/cloud-figma-links",
            body_key="links",
            validator=require_mapping,
            default=dict,
        ),
        CollectionSpec(
            name="custom_clouds",
            endpoint="/api/custom-clouds",
            body_key="clouds",
            validator=records(CustomCloud),
        ),
        CollectionSpec(
            name="editable_clouds",
            endpoint="/api/editable-clouds",
            body_key="clouds",
            validator=nullable(list_or_mapping),
            default=lambda: None,
        ),
        CollectionSpec(
            name="cloud_categories",
            endpoint="/api/cloud-categories",
            body_key="categories",
            validator=mapping_of_lists,
            default=dict,
        ),
        CollectionSpec(
            name="status_symbols",
            endpoint="/api/status-symbols",
            body_key="symbols",
            validator=records(StatusSymbol),
            default=default_status_symbols,
            default_when_empty=True,
        ),
        CollectionSpec(
            name="cloud_pocs",
            endpoint="/api/cloud-pocs",
            body_key="pocs",
            validator=require_mapping,
            default=dict,
        ),
        CollectionSpec(
            name="housekeeping_rules",
            endpoint="/api/housekeeping-rules",
            body_key="rules",
            validator=records(HousekeepingRule),
            default=default_housekeeping_rules,
            default_when_empty=True,
        ),
        CollectionSpec(
            name="hidden_clouds",
            endpoint="/api/user/{user_id}/hidden-clouds",
            body_key="hiddenClouds",
            response_key="hiddenClouds",
            scope=CollectionScope.PER_USER,
            validator=require_list,
            guarded=False,
        ),
    )
}


def get_collection(name: str) -> CollectionSpec:
    """
    Look up a registered collection.

    Raises:
        KeyError: If no collection has that name
    """
    try:
        return COLLECTIONS[name]
    except KeyError:
        known = ", ".join(sorted(COLLECTIONS))
        raise KeyError(f"Unknown collection '{name}'. Known collections: {known}") from None


__all__ = [
    "CollectionSpec",
    "COLLECTIONS",
    "get_collection",
    "saved_item_key",
    "default_status_symbols",
    "default_housekeeping_rules",
]
