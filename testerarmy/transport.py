"""
HTTP Transport for the Tester Army API.

Handles HTTP communication with a hard per-attempt deadline, automatic retry
with exponential backoff, and error handling.
"""

import asyncio
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from testerarmy.exceptions import (
    APIError,
    BadRequestError,
    RateLimitedError,
    RequestTimeoutError,
    ServerError,
    TesterArmyError,
    UnauthorizedError,
)
from testerarmy.logging import get_logger, log_http_request, log_http_response

USER_AGENT = "tester-army-github-action/0.1.0"

logger = get_logger("http")


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior."""

    max_retries: int = 2
    initial_delay: float = 1.0  # seconds before the first retry
    backoff_factor: float = 2.0


class HTTPTransport:
    """
    Async HTTP transport layer with deadline enforcement and retry logic.

    Handles:
    - Bearer authentication on every request
    - A wall-clock deadline per attempt, cancelling the in-flight request
    - Exponential backoff for server errors and timeouts
    - Error response parsing into typed exceptions

    Each attempt yields either the decoded body or an error object. Whether
    to retry is decided from the error alone, and only the final error is
    raised.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 300.0,
        retry_config: RetryConfig | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            base_url: Base URL for API requests (e.g., "https://api.testerarmy.com")
            api_key: API key sent as a bearer credential
            timeout: Deadline for a single attempt in seconds
            retry_config: Configuration for retry behavior
            sleep: Coroutine function used for backoff delays (default: asyncio.sleep)
            client: httpx client to send requests with (default: a new AsyncClient)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep or asyncio.sleep

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "User-Agent": USER_AGENT,
        }

    async def post(self, path: str, body: dict[str, Any]) -> Any:
        """
        POST a JSON body with automatic retry.

        Args:
            path: API path (e.g., "/api/v1/ci/test")
            body: JSON request body

        Returns:
            Decoded JSON response

        Raises:
            TesterArmyError: On non-retryable errors, or the last error once
                retries are exhausted
        """
        url = f"{self.base_url}{path}"

        for attempt in range(self.retry_config.max_retries + 1):
            outcome = await self._send(url, body)

            if not isinstance(outcome, TesterArmyError):
                return outcome

            if not self._should_retry(outcome, attempt):
                raise outcome

            wait_time = self._get_backoff_time(attempt)
            logger.warning(
                "Attempt %d failed: %s. Retrying in %.1fs",
                attempt + 1,
                outcome.message,
                wait_time,
            )
            await self._sleep(wait_time)

        # Should not reach here, the last attempt never retries
        raise APIError("Request failed with no error details")

    async def _send(self, url: str, body: dict[str, Any]) -> Any:
        """
        Make a single attempt.

        Returns:
            The decoded JSON body on success, otherwise a TesterArmyError
            describing the failure (returned, not raised)
        """
        headers = self.headers
        log_http_request("POST", url, headers, body)
        started = time.monotonic()

        try:
            response = await asyncio.wait_for(
                self._client.post(url, json=body, headers=headers),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return RequestTimeoutError(
                f"Request timed out after {self.timeout * 1000:.0f}ms"
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return APIError(f"Request to Tester Army API failed: {e}")

        log_http_response(
            response.status_code, url, (time.monotonic() - started) * 1000
        )

        if response.is_success:
            try:
                return response.json()
            except ValueError:
                return APIError(
                    "Tester Army API returned a response that is not valid JSON",
                    response.status_code,
                )

        return self._parse_error_response(response)

    def _should_retry(self, error: TesterArmyError, attempt: int) -> bool:
        """
        Determine if a failed attempt should be retried.

        Args:
            error: The error the attempt produced
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return isinstance(error, (ServerError, RequestTimeoutError))

    def _get_backoff_time(self, attempt: int) -> float:
        """
        Calculate backoff time before the next attempt.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Time to wait in seconds
        """
        config = self.retry_config
        return config.initial_delay * config.backoff_factor**attempt

    def _parse_error_response(self, response: httpx.Response) -> APIError:
        """
        Parse an error response into a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            Appropriate APIError subclass
        """
        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            data = {}

        message = data.get("message")
        if not isinstance(message, str) or not message:
            message = response.reason_phrase or "Unknown error"

        code = data.get("code")
        if not isinstance(code, str):
            code = None

        status_code = response.status_code

        if status_code == 400:
            return BadRequestError(message)
        elif status_code == 401:
            return UnauthorizedError(message)
        elif status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            return RateLimitedError(message, retry_after)
        elif status_code == 504:
            return RequestTimeoutError(message)
        elif status_code >= 500:
            return ServerError(message, status_code)
        else:
            return APIError(
                f"Tester Army API error ({status_code}): {message}",
                status_code,
                code,
            )


def _parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds."""
    if value is None:
        return None

    try:
        seconds = float(value)
    except ValueError:
        return None

    return seconds if math.isfinite(seconds) else None
