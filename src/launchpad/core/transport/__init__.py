"""
Transport to the remote store.

Authenticated JSON requests with capped exponential backoff on transient
failures and typed results.

Example:
    >>> from launchpad.core.transport import Transport
    >>> async with Transport() as transport:
    ...     result = await transport.request("/api/templates")
"""

from launchpad.core.transport.client import Transport
from launchpad.core.transport.models import TransportResult
from launchpad.core.transport.retry import BackoffPolicy, is_retryable_error, with_retry

__all__ = [
    "Transport",
    "TransportResult",
    "BackoffPolicy",
    "is_retryable_error",
    "with_retry",
]
