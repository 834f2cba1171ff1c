"""
Pytest fixtures for Tester Army testing.

Provides factory helpers and fixtures for events, PR contexts, test results
and mock clients.
"""

from collections.abc import Generator
from typing import Any

import pytest

from testerarmy.testing.mock import MockGitHubAPI, MockTesterArmyClient
from testerarmy.types.ci_test import CITestResult, TestPlan
from testerarmy.types.deployment import DeploymentEvent
from testerarmy.types.pulls import PRContext


# ============================================================================
# Helper Functions
# ============================================================================


def create_mock_result(
    result: str = "PASS",
    feature_name: str = "Checkout flow",
    description: str = "Checkout completes with a test card",
    screenshots: list[str] | None = None,
    playwright_code: str | None = None,
    duration: int = 45000,
    test_plan: TestPlan | None = None,
) -> CITestResult:
    """
    Create a CITestResult for testing.

    Example:
        ```python
        failed = create_mock_result(result="FAILED", description="Button is disabled")
        ```
    """
    return CITestResult(
        feature_name=feature_name,
        result=result,
        description=description,
        screenshots=screenshots if screenshots is not None else [],
        playwright_code=playwright_code,
        duration=duration,
        test_plan=test_plan,
    )


def create_deployment_event(
    state: Any = "success",
    environment: Any = "Preview",
    target_url: Any = "https://shop-git-feature-acme.vercel.app",
    environment_url: Any = None,
    deployment_sha: Any = "abc123",
    event_name: str = "deployment_status",
    sha: str = "def456",
) -> DeploymentEvent:
    """
    Create a deployment_status event for testing.

    Any field passed as None is left out of the payload.
    """
    status: dict[str, Any] = {}
    for key, value in (
        ("state", state),
        ("environment", environment),
        ("target_url", target_url),
        ("environment_url", environment_url),
    ):
        if value is not None:
            status[key] = value

    payload: dict[str, Any] = {"deployment_status": status}
    if deployment_sha is not None:
        payload["deployment"] = {"sha": deployment_sha, "ref": "feature"}

    return DeploymentEvent(event_name=event_name, payload=payload, sha=sha)


def create_pr_context(
    number: int = 42,
    title: str = "Add express checkout",
    description: str = "Adds a one-click checkout button",
    changed_files: list[str] | None = None,
    branch: str = "feature",
    base_branch: str = "main",
) -> PRContext:
    """Create a PRContext for testing."""
    return PRContext(
        number=number,
        title=title,
        description=description,
        changed_files=changed_files if changed_files is not None else ["src/checkout.tsx"],
        branch=branch,
        base_branch=base_branch,
    )


# ============================================================================
# Mock Client Fixtures
# ============================================================================


@pytest.fixture
def mock_client() -> Generator[MockTesterArmyClient, None, None]:
    """
    Provide a MockTesterArmyClient for testing.

    Example:
        ```python
        async def test_my_feature(mock_client):
            mock_client.configure_run_ci_test(response=create_mock_result())
            ...
            assert mock_client.was_called("run_ci_test")
        ```
    """
    client = MockTesterArmyClient()
    yield client
    client.reset()


@pytest.fixture
def mock_github() -> MockGitHubAPI:
    """Provide a MockGitHubAPI with no routes configured."""
    return MockGitHubAPI()


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_event() -> DeploymentEvent:
    """Provide a successful preview deployment_status event."""
    return create_deployment_event()


@pytest.fixture
def sample_pr_context() -> PRContext:
    """Provide a sample PRContext."""
    return create_pr_context()


@pytest.fixture
def sample_result() -> CITestResult:
    """Provide a passing CITestResult with screenshots and code."""
    return create_mock_result(
        screenshots=["https://cdn.testerarmy.com/shots/1.png"],
        playwright_code='test("checkout", async ({ page }) => {});',
    )
