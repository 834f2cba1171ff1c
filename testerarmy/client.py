"""
Tester Army API client.

Provides the interface for submitting a deployment to the Tester Army CI
test endpoint.
"""

import os
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx

from testerarmy.exceptions import ConfigurationError
from testerarmy.logging import get_logger
from testerarmy.transport import HTTPTransport, RetryConfig
from testerarmy.types.ci_test import CITestRequest, CITestResult

logger = get_logger("client")


class TesterArmyClient:
    """
    Client for the Tester Army API.

    Example:
        ```python
        from testerarmy import CITestRequest, TestContext, TesterArmyClient

        async with TesterArmyClient(api_key="ta_...") as client:
            result = await client.run_ci_test(
                CITestRequest(
                    url="https://my-app-git-feature.vercel.app",
                    context=TestContext(title="Add signup form", changed_files=["app/signup.tsx"]),
                )
            )
            print(result.result, result.description)
        ```
    """

    DEFAULT_BASE_URL = "https://api.testerarmy.com"
    DEFAULT_TIMEOUT = 300.0
    CI_TEST_PATH = "/api/v1/ci/test"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the Tester Army client.

        Args:
            api_key: Tester Army API key
            base_url: Base URL for API requests (default: https://api.testerarmy.com)
            timeout: Deadline for each attempt in seconds (default: 300.0)
            retry_config: Configuration for retry behavior (optional)
            sleep: Coroutine function used for backoff delays (optional)
            http_client: httpx client to send requests with (optional)
        """
        if not api_key:
            raise ConfigurationError("Tester Army API key is required")

        self.base_url = base_url
        self.timeout = timeout

        self._transport = HTTPTransport(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            retry_config=retry_config,
            sleep=sleep,
            client=http_client,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
    ) -> "TesterArmyClient":
        """
        Create a client from environment variables.

        Environment variables:
            TESTERARMY_API_KEY: Tester Army API key (required)
            TESTERARMY_BASE_URL: Base URL for API (optional, default: https://api.testerarmy.com)

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        env = os.environ if environ is None else environ

        api_key = env.get("TESTERARMY_API_KEY")
        if not api_key:
            raise ConfigurationError("TESTERARMY_API_KEY environment variable not set")

        return cls(
            api_key=api_key,
            base_url=env.get("TESTERARMY_BASE_URL") or cls.DEFAULT_BASE_URL,
            timeout=timeout,
            retry_config=retry_config,
        )

    @property
    def transport(self) -> HTTPTransport:
        """Get the underlying HTTP transport (for advanced use cases)."""
        return self._transport

    async def run_ci_test(self, request: CITestRequest) -> CITestResult:
        """
        Run a CI test against a deployment.

        Server errors and timeouts are retried with exponential backoff;
        every other failure is raised on the first attempt.

        Args:
            request: Deployment URL and pull request context to test

        Returns:
            The structured test result

        Raises:
            BadRequestError: If the request was rejected as malformed
            UnauthorizedError: If the API key is invalid
            RateLimitedError: If rate limited, with retry_after when known
            RequestTimeoutError: If every attempt timed out
            ServerError: If every attempt failed with a server error
            APIError: On any other API or transport failure
        """
        logger.debug("Submitting CI test for %s", request.url)
        data = await self._transport.post(self.CI_TEST_PATH, request.to_dict())
        return CITestResult.from_dict(data)

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> "TesterArmyClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
