"""Tester Army testing utilities.

Provides mock clients and fixtures for testing code built on the action.
"""

from testerarmy.testing.fixtures import (
    create_deployment_event,
    create_mock_result,
    create_pr_context,
)
from testerarmy.testing.mock import MockCall, MockGitHubAPI, MockTesterArmyClient

__all__ = [
    # Mock clients
    "MockTesterArmyClient",
    "MockGitHubAPI",
    "MockCall",
    # Helper functions
    "create_mock_result",
    "create_deployment_event",
    "create_pr_context",
]
