"""Base API client with circuit breaker and retry logic.

This module provides:
- CircuitState enum for circuit breaker states
- CircuitBreaker dataclass for tracking circuit breaker state
- BaseAPIClient class for making resilient HTTP requests
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

import httpx
import structlog

from lptrack.core.exceptions import CircuitBreakerOpenError, UpstreamFetchError

log = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Requests allowed
    OPEN = "open"  # Requests blocked
    HALF_OPEN = "half_open"  # One test request allowed


@dataclass
class CircuitBreaker:
    """Circuit breaker for an upstream service.

    Opens after ``failure_threshold`` consecutive failures and lets a single
    test request through once ``cooldown_seconds`` have elapsed.

    Attributes:
        failure_threshold: Consecutive failures before opening.
        cooldown_seconds: Seconds to wait before the half-open test.
        failure_count: Current consecutive failure count.
        last_failure_time: Time of the most recent failure.
        state: Current circuit state.
    """

    failure_threshold: int = 5
    cooldown_seconds: int = 30
    failure_count: int = field(default=0, init=False)
    last_failure_time: datetime | None = field(default=None, init=False)
    state: CircuitState = field(default=CircuitState.CLOSED, init=False)

    def record_success(self) -> None:
        """Reset the failure count and close the circuit."""
        self.failure_count = 0
        self.state = CircuitState.CLOSED
        log.debug("circuit_breaker_success", state="closed")

    def record_failure(self) -> None:
        """Count a failure; open the circuit at the threshold.

        In HALF_OPEN state a single failure reopens the circuit.
        """
        self.failure_count += 1
        self.last_failure_time = datetime.now(UTC)

        if self.state == CircuitState.HALF_OPEN:
            self.state = CircuitState.OPEN
            log.warning(
                "circuit_breaker_reopened",
                failure_count=self.failure_count,
                state="open",
            )
        elif self.failure_count >= self.failure_threshold:
            self.state = CircuitState.OPEN
            log.warning(
                "circuit_breaker_opened",
                failure_count=self.failure_count,
                threshold=self.failure_threshold,
                state="open",
            )
        else:
            log.debug(
                "circuit_breaker_failure",
                failure_count=self.failure_count,
                threshold=self.failure_threshold,
                state="closed",
            )

    def can_execute(self) -> bool:
        """Check if a request can be executed.

        State transitions:
            - CLOSED: Always True
            - OPEN: False until the cooldown elapsed, then HALF_OPEN
            - HALF_OPEN: True (test request)
        """
        if self.state == CircuitState.CLOSED:
            return True

        if self.state == CircuitState.OPEN:
            if self.last_failure_time is None:
                return False

            elapsed = datetime.now(UTC) - self.last_failure_time
            if elapsed > timedelta(seconds=self.cooldown_seconds):
                self.state = CircuitState.HALF_OPEN
                log.info(
                    "circuit_breaker_half_open",
                    cooldown_elapsed=elapsed.total_seconds(),
                    state="half_open",
                )
                return True
            return False

        return True

    def raise_if_open(self) -> None:
        """Raise if the circuit is open and not ready for a test request.

        Raises:
            CircuitBreakerOpenError: If the circuit is open.
        """
        if not self.can_execute():
            remaining = 0.0
            if self.last_failure_time is not None:
                elapsed = datetime.now(UTC) - self.last_failure_time
                remaining = max(0.0, self.cooldown_seconds - elapsed.total_seconds())
            raise CircuitBreakerOpenError(
                f"Circuit breaker is open. Next retry in {remaining:.1f} seconds."
            )


class BaseAPIClient:
    """Base API client with retry and circuit breaker support.

    Provides resilient HTTP requests with:
    - Lazy client initialization (created on first request)
    - Retry with exponential backoff on 429, 5xx and connection errors
    - Circuit breaker protection
    - Failures surfaced as UpstreamFetchError tagged with ``service``

    Attributes:
        service: Short upstream name used in errors and logs.
        base_url: Base URL for all requests.
        timeout: Request timeout in seconds.
        headers: Default headers for all requests.

    Example:
        client = BaseAPIClient(service="explorer", base_url="https://api.etherscan.io")
        response = await client.get("/v2/api", params={...})
        await client.close()
    """

    def __init__(
        self,
        service: str,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_cooldown: int = 30,
    ) -> None:
        self.service = service
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        self._client: httpx.AsyncClient | None = None
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=circuit_breaker_threshold,
            cooldown_seconds=circuit_breaker_cooldown,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
            )
            log.debug("httpx_client_created", service=self.service, base_url=self.base_url)
        return self._client

    async def close(self) -> None:
        """Close the httpx client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.debug("httpx_client_closed", service=self.service)

    async def __aenter__(self) -> "BaseAPIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        max_retries: int = 3,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an HTTP request with retry and circuit breaker.

        Args:
            method: HTTP method.
            path: Request path (appended to base_url).
            max_retries: Maximum attempts (default: 3).
            **kwargs: Passed to httpx.

        Returns:
            httpx.Response on success.

        Raises:
            CircuitBreakerOpenError: If the circuit breaker is open.
            UpstreamFetchError: On a 4xx (except 429) or after all retries.
        """
        self._circuit_breaker.raise_if_open()

        client = await self._get_client()
        last_error: Exception | None = None

        for attempt in range(max_retries):
            try:
                log.debug(
                    "request_attempt",
                    service=self.service,
                    method=method,
                    path=path,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )

                response = await client.request(method, path, **kwargs)
                response.raise_for_status()

                self._circuit_breaker.record_success()
                return response

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code

                # 4xx errors (except 429) - no retry
                if 400 <= status_code < 500 and status_code != 429:
                    log.warning(
                        "request_client_error",
                        service=self.service,
                        method=method,
                        path=path,
                        status_code=status_code,
                    )
                    raise UpstreamFetchError(
                        service=self.service,
                        message=str(e),
                        status_code=status_code,
                    ) from e

                self._circuit_breaker.record_failure()
                last_error = e
                log.warning(
                    "request_server_error",
                    service=self.service,
                    method=method,
                    path=path,
                    status_code=status_code,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )

            except httpx.RequestError as e:
                self._circuit_breaker.record_failure()
                last_error = e
                log.warning(
                    "request_connection_error",
                    service=self.service,
                    method=method,
                    path=path,
                    error=str(e),
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )

            # Exponential backoff: 1s, 2s, 4s (capped)
            if attempt < max_retries - 1:
                backoff = min(2**attempt, 4)
                log.debug("request_retry_backoff", seconds=backoff)
                await asyncio.sleep(backoff)

        log.error(
            "request_max_retries_exceeded",
            service=self.service,
            method=method,
            path=path,
            max_retries=max_retries,
        )
        raise UpstreamFetchError(
            service=self.service,
            message=f"Max retries ({max_retries}) exceeded: {last_error}",
        )

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request."""
        return await self._request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a POST request."""
        return await self._request("POST", path, **kwargs)

    def _json(self, response: httpx.Response) -> Any:
        """Decode a JSON body.

        Raises:
            UpstreamFetchError: If the body is not JSON.
        """
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFetchError(
                service=self.service,
                message=f"Malformed JSON response: {e}",
                status_code=response.status_code,
            ) from e
