"""
Data models for transport results.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from launchpad.core.exceptions import TransportError


class TransportResult(BaseModel):
    """
    Outcome of one logical request (including its retries).

    The transport never raises for HTTP or network failures; it returns a
    result the caller inspects, or unwraps when it prefers exceptions.

    Example:
        >>> result = await transport.request("/api/templates")
        >>> if result.ok:
        ...     templates = result.data
        >>> elif result.is_client_error:
        ...     ...  # reconcile instead of retrying
    """

    ok: bool = Field(description="Whether a 2xx response with a parseable body was received")
    endpoint: str = Field(description="Path that was requested")
    method: str = Field(default="GET")
    status_code: int | None = Field(default=None)
    data: Any = Field(default=None, description="Decoded JSON body on success")
    error: str | None = Field(default=None)
    error_type: str | None = Field(
        default=None,
        description="network, timeout, server, client or parse",
    )
    attempts: int = Field(default=1, ge=1)

    @property
    def is_client_error(self) -> bool:
        return self.error_type == "client"

    def to_error(self) -> TransportError:
        """Build the TransportError describing this failed result."""
        return TransportError(
            self.endpoint,
            self.error or "request failed",
            status_code=self.status_code,
            error_type=self.error_type or "network",
            attempts=self.attempts,
        )

    def unwrap(self) -> Any:
        """
        Return the decoded body or raise.

        Raises:
            TransportError: If the request failed
        """
        if not self.ok:
            raise self.to_error()
        return self.data
