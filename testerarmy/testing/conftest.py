"""
Pytest plugin for Tester Army testing fixtures.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["testerarmy.testing.conftest"]
"""

# Re-export all fixtures for pytest auto-discovery
from testerarmy.testing.fixtures import (
    mock_client,
    mock_github,
    sample_event,
    sample_pr_context,
    sample_result,
)

__all__ = [
    "mock_client",
    "mock_github",
    "sample_event",
    "sample_pr_context",
    "sample_result",
]
