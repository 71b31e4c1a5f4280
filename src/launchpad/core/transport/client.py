"""
Authenticated HTTP transport to the remote store.

Wraps ``httpx.AsyncClient`` with:
- JSON content type on every request, plus X-API-Key and the per-user
  identity header when configured
- retry with capped exponential backoff on transient failures
- typed results instead of exceptions (see ``TransportResult``)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from launchpad.core.config.models import ApiConfig, RetryConfig
from launchpad.core.transport.models import TransportResult
from launchpad.core.transport.retry import BackoffPolicy, with_retry

logger = logging.getLogger(__name__)


class Transport:
    """
    Async client for the remote store.

    Example:
        >>> async with Transport(ApiConfig(base_url="https://kit.example.com")) as transport:
        ...     result = await transport.request("/api/templates")
        ...     templates = result.unwrap()
    """

    def __init__(
        self,
        api: ApiConfig | None = None,
        retry: RetryConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            api: Connection settings (base URL, API key, identity header)
            retry: Retry policy settings
            client: Pre-built client (tests inject one with a MockTransport).
                A client passed in is not closed by ``aclose()``.
        """
        self.api = api or ApiConfig()
        self.policy = BackoffPolicy.from_config(retry or RetryConfig())
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.api.timeout_seconds)

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _build_headers(
        self, headers: dict[str, str] | None, user_id: str | None
    ) -> dict[str, str]:
        request_headers = {"Content-Type": "application/json"}
        if self.api.api_key:
            request_headers["X-API-Key"] = self.api.api_key
        if user_id:
            request_headers[self.api.identity_header] = str(user_id)
        if headers:
            request_headers.update(headers)
        return request_headers

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
        *,
        user_id: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> TransportResult:
        """
        Issue a request, retrying transient failures.

        Args:
            endpoint: Path relative to the base URL (e.g. "/api/templates")
            method: HTTP method
            body: JSON-serializable request body
            headers: Extra headers, applied last
            user_id: Identity for per-user collections
            params: Query parameters

        Returns:
            TransportResult; ``ok`` is False for any failure after retries
        """
        url = f"{self.api.base_url}{endpoint}"
        request_headers = self._build_headers(headers, user_id)
        attempts = 0

        @with_retry(self.policy)
        async def _send() -> httpx.Response:
            nonlocal attempts
            attempts += 1
            response = await self._client.request(
                method,
                url,
                json=body,
                params=params,
                headers=request_headers,
                timeout=self.api.timeout_seconds,
            )
            response.raise_for_status()
            return response

        def _failure(error: str, error_type: str, status_code: int | None = None) -> TransportResult:
            return TransportResult(
                ok=False,
                endpoint=endpoint,
                method=method,
                status_code=status_code,
                error=error,
                error_type=error_type,
                attempts=max(attempts, 1),
            )

        try:
            response = await _send()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            error_type = "client" if 400 <= status_code < 500 else "server"
            return _failure(_error_detail(e.response), error_type, status_code)
        except httpx.TimeoutException as e:
            return _failure(f"Request timed out after {self.api.timeout_seconds}s: {e}", "timeout")
        except httpx.HTTPError as e:
            return _failure(f"Network error: {e}", "network")

        if not response.content:
            data = None
        else:
            try:
                data = response.json()
            except ValueError as e:
                return _failure(f"Invalid JSON in response: {e}", "parse", response.status_code)

        logger.debug("%s %s -> %d (%d attempts)", method, endpoint, response.status_code, attempts)
        return TransportResult(
            ok=True,
            endpoint=endpoint,
            method=method,
            status_code=response.status_code,
            data=data,
            attempts=attempts,
        )

    async def check_health(self) -> bool:
        """Return True if the store answers GET /health with status "ok"."""
        result = await self.request("/health")
        return bool(result.ok and isinstance(result.data, dict) and result.data.get("status") == "ok")


def _error_detail(response: httpx.Response) -> str:
    """Pull the store's error message out of a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:100] or response.reason_phrase
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            return str(message)
    return response.reason_phrase


__all__ = ["Transport"]
