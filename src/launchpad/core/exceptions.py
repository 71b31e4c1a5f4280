"""
Error taxonomy for the sync layer.

Exception Hierarchy:
    LaunchpadError (base)
    ├── TransportError (network, timeout, 4xx/5xx from the remote store)
    ├── ValidationError (malformed records, write rejected)
    ├── GuardRejection (suspicious bulk delete, write rejected)
    ├── SuspiciousEmptyRemote (remote contradicts the last-known-good ledger)
    └── CacheError (local storage backend failure)

None of these are fatal. The sync engine catches them, keeps the previous
state and reports them through ``SaveResult`` and the notifier; only the
backup client and the CLI let them propagate.

Example:
    >>> from launchpad.core.exceptions import GuardRejection
    >>> err = GuardRejection("templates", previous_count=12, attempted_count=0)
    >>> str(err)
    'Cannot delete all templates at once. Delete them one at a time.'
"""


class LaunchpadError(Exception):
    """
    Base exception for all sync layer errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class TransportError(LaunchpadError):
    """
    A request to the remote store failed.

    ``error_type`` classifies the failure so callers can decide between
    reconciling and retrying later:

    - ``network``: connection refused, DNS, reset
    - ``timeout``: the per-request timeout elapsed
    - ``server``: 5xx response (retried by the transport)
    - ``client``: 4xx response (never retried)
    - ``parse``: response body was not JSON

    Attributes:
        endpoint: Path that was requested
        status_code: HTTP status, when a response was received
        error_type: Failure classification (see above)
        attempts: Number of attempts made before giving up
    """

    def __init__(
        self,
        endpoint: str,
        message: str,
        *,
        status_code: int | None = None,
        error_type: str = "network",
        attempts: int = 1,
        **context: object,
    ) -> None:
        super().__init__(
            message,
            endpoint=endpoint,
            status_code=status_code,
            error_type=error_type,
            attempts=attempts,
            **context,
        )
        self.endpoint = endpoint
        self.status_code = status_code
        self.error_type = error_type
        self.attempts = attempts

    @property
    def is_client_error(self) -> bool:
        """True for 4xx rejections, which must not be retried blindly."""
        return self.error_type == "client"

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"[{self.endpoint}] HTTP {self.status_code}: {self.message}"
        return f"[{self.endpoint}] {self.message}"


class ValidationError(LaunchpadError):
    """
    A candidate value failed its collection's validator.

    The whole write is rejected; invalid records are never dropped silently.

    Attributes:
        collection: Name of the collection
        problems: One entry per failing record or shape problem
    """

    def __init__(self, collection: str, problems: list[str]) -> None:
        shown = "; ".join(problems[:3])
        if len(problems) > 3:
            shown += f" (+{len(problems) - 3} more)"
        super().__init__(
            f"Invalid {collection.replace('_', ' ')}: {shown}",
            collection=collection,
            problems=problems,
        )
        self.collection = collection
        self.problems = problems


class GuardRejection(LaunchpadError):
    """
    A write would shrink a collection implausibly and was blocked.

    Attributes:
        collection: Name of the collection
        previous_count: Item count before the write
        attempted_count: Item count the write tried to set
    """

    def __init__(self, collection: str, previous_count: int, attempted_count: int) -> None:
        label = collection.replace("_", " ")
        if attempted_count == 0:
            message = f"Cannot delete all {label} at once. Delete them one at a time."
        else:
            message = (
                f"Cannot reduce {label} from {previous_count} to {attempted_count}. "
                "This looks like accidental data loss."
            )
        super().__init__(
            message,
            collection=collection,
            previous_count=previous_count,
            attempted_count=attempted_count,
        )
        self.collection = collection
        self.previous_count = previous_count
        self.attempted_count = attempted_count


class SuspiciousEmptyRemote(LaunchpadError):
    """
    The remote store returned nothing for a collection the ledger says had items.

    Not a hard failure: it triggers adoption of the local cache.
    """

    def __init__(self, collection: str, last_known_count: int) -> None:
        super().__init__(
            f"Server returned no {collection.replace('_', ' ')} "
            f"but {last_known_count} were last seen",
            collection=collection,
            last_known_count=last_known_count,
        )
        self.collection = collection
        self.last_known_count = last_known_count


class CacheError(LaunchpadError):
    """Reading or writing the local storage backend failed."""

    def __init__(self, key: str, message: str, **context: object) -> None:
        super().__init__(message, key=key, **context)
        self.key = key

    def __str__(self) -> str:
        return f"[cache:{self.key}] {self.message}"


__all__ = [
    "LaunchpadError",
    "TransportError",
    "ValidationError",
    "GuardRejection",
    "SuspiciousEmptyRemote",
    "CacheError",
]
