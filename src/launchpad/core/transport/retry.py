"""
Async retry logic with capped exponential backoff.

Remote store calls fail transiently (server restarts, dyno sleeps, flaky
plugin networking). Those are retried; client errors are not, because a
400 from the store means it rejected the payload and repeating it would
only be rejected again.

Example:
    >>> import httpx
    >>> from launchpad.core.transport.retry import BackoffPolicy, with_retry
    >>>
    >>> @with_retry(BackoffPolicy())
    ... async def fetch(client: httpx.AsyncClient, url: str) -> httpx.Response:
    ...     response = await client.get(url)
    ...     response.raise_for_status()
    ...     return response

Configuration:
    - Default retries: 3 (after the initial attempt)
    - Delay before retry n: min(1000ms * 2^(n-1), 8000ms) -> 1s, 2s, 4s
    - Jitter: off by default, +/-20% when enabled
"""

import asyncio
import functools
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from launchpad.core.config.models import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BackoffPolicy:
    """
    Retry policy for transport calls.

    Attributes:
        max_retries: Maximum number of retries after the first attempt
        base_delay_ms: Delay before the first retry
        max_delay_ms: Cap applied to every delay
        jitter: Whether to add jitter to delays
        jitter_ratio: Random variance ratio for jitter
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 8000,
        jitter: bool = False,
        jitter_ratio: float = 0.2,
    ) -> None:
        """
        Raises:
            ValueError: If parameters are invalid
        """
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if base_delay_ms <= 0:
            raise ValueError("base_delay_ms must be positive")
        if max_delay_ms < base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        if not 0.0 <= jitter_ratio <= 1.0:
            raise ValueError("jitter_ratio must be between 0.0 and 1.0")

        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.jitter = jitter
        self.jitter_ratio = jitter_ratio

    @classmethod
    def from_config(cls, config: RetryConfig) -> "BackoffPolicy":
        return cls(
            max_retries=config.max_retries,
            base_delay_ms=config.base_delay_ms,
            max_delay_ms=config.max_delay_ms,
            jitter=config.jitter,
        )

    def calculate_delay(self, retry_number: int) -> float:
        """
        Delay in seconds before the given retry (1-indexed).

        Uses ``min(base * 2^(retry_number - 1), cap)``, then applies jitter.
        """
        delay_ms = min(self.base_delay_ms * (2 ** (retry_number - 1)), self.max_delay_ms)

        if self.jitter:
            variance = delay_ms * self.jitter_ratio
            delay_ms = delay_ms + random.uniform(-variance, variance)

        return max(0.0, delay_ms / 1000.0)


def is_retryable_error(exception: BaseException) -> bool:
    """
    Determine if an exception represents a transient, retryable error.

    Retryable: 5xx responses, timeouts, connection and other request errors.
    Not retryable: 4xx responses and anything that isn't an httpx error.
    """
    # HTTPStatusError is also an HTTPError, so check it first
    if isinstance(exception, httpx.HTTPStatusError):
        return 500 <= exception.response.status_code < 600

    if isinstance(exception, httpx.TimeoutException):
        return True

    if isinstance(exception, httpx.HTTPError):
        return True

    return False


def with_retry(
    policy: BackoffPolicy | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator adding retry with capped exponential backoff to a coroutine.

    The last exception is re-raised once retries are exhausted, and
    non-retryable exceptions are re-raised immediately.

    Example:
        >>> @with_retry(BackoffPolicy(max_retries=3))
        ... async def post_templates(client, url, body):
        ...     response = await client.post(url, json=body)
        ...     response.raise_for_status()
        ...     return response
        >>> # Delays on repeated 503s: 1s, 2s, 4s, then the error surfaces
    """
    policy = policy or BackoffPolicy()

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            func_name = getattr(func, "__name__", repr(func))
            attempt = 0

            while True:
                attempt += 1
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_error(e):
                        logger.debug(
                            "%s: non-retryable error on attempt %d: %s", func_name, attempt, e
                        )
                        raise

                    if attempt > policy.max_retries:
                        logger.warning(
                            "%s: max retries (%d) exceeded: %s", func_name, policy.max_retries, e
                        )
                        raise

                    delay = policy.calculate_delay(attempt)
                    logger.info(
                        "%s: retry %d/%d after %.2fs due to: %s",
                        func_name,
                        attempt,
                        policy.max_retries,
                        delay,
                        e,
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator


__all__ = [
    "BackoffPolicy",
    "with_retry",
    "is_retryable_error",
]
