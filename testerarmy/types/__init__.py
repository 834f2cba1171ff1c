"""Tester Army type definitions.

This module exports all data model types used by the action.
"""

from testerarmy.types.ci_test import (
    CITestRequest,
    CITestResult,
    Credentials,
    TestContext,
    TestPlan,
)
from testerarmy.types.deployment import DeploymentEvent, DeploymentInfo
from testerarmy.types.pulls import PRContext

__all__ = [
    # Deployment types
    "DeploymentEvent",
    "DeploymentInfo",
    # CI test types
    "Credentials",
    "TestContext",
    "CITestRequest",
    "TestPlan",
    "CITestResult",
    # Pull request types
    "PRContext",
]
