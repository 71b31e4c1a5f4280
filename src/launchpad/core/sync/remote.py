"""
Remote collection contract.

Maps a ``CollectionSpec`` onto transport calls: ``GET`` reads the value
(optionally unwrapping a response key), ``POST`` replaces it with
``{<body_key>: value}``. Per-user collections add the identity header and a
``userId`` body field.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from launchpad.core.sync.collections import CollectionSpec
from launchpad.core.transport.client import Transport
from launchpad.core.transport.models import TransportResult

logger = logging.getLogger(__name__)


class CollectionRemote(Protocol):
    """What the sync engine needs from the remote store."""

    async def read(
        self, spec: CollectionSpec, user_id: str | None = None, *, legacy: bool = False
    ) -> TransportResult: ...

    async def write(
        self, spec: CollectionSpec, value: Any, user_id: str | None = None
    ) -> TransportResult: ...


class RemoteStore:
    """
    Collection reads and writes over a ``Transport``.

    Example:
        >>> remote = RemoteStore(transport)
        >>> result = await remote.read(get_collection("saved_items"), user_id="42")
        >>> result.data
        [{'templateId': 't1'}]
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    async def read(
        self, spec: CollectionSpec, user_id: str | None = None, *, legacy: bool = False
    ) -> TransportResult:
        """
        Fetch a collection.

        Args:
            spec: Collection to read
            user_id: Identity for per-user collections
            legacy: Read the pre-migration shared copy of a per-user
                collection (same endpoint, no identity header)
        """
        identity = user_id if spec.is_per_user and not legacy else None
        result = await self.transport.request(spec.endpoint_for(user_id), user_id=identity)
        if not result.ok:
            return result
        return result.model_copy(update={"data": _unwrap(spec, result.data)})

    async def write(
        self, spec: CollectionSpec, value: Any, user_id: str | None = None
    ) -> TransportResult:
        """Replace a collection's remote value."""
        body: dict[str, Any] = {spec.body_key: value}
        identity = None
        if spec.is_per_user:
            identity = user_id
            body["userId"] = user_id
        return await self.transport.request(
            spec.endpoint_for(user_id), method="POST", body=body, user_id=identity
        )


def _unwrap(spec: CollectionSpec, data: Any) -> Any:
    if spec.response_key and isinstance(data, dict) and spec.response_key in data:
        return data[spec.response_key]
    return data


__all__ = ["CollectionRemote", "RemoteStore"]
