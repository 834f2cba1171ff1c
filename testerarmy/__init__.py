"""Tester Army - AI testing of preview deployments from GitHub Actions."""

from testerarmy.client import TesterArmyClient
from testerarmy.deployment import extract_deployment_info, is_vercel_deployment
from testerarmy.exceptions import (
    APIError,
    BadRequestError,
    ConfigurationError,
    RateLimitedError,
    RequestTimeoutError,
    ServerError,
    TesterArmyError,
    UnauthorizedError,
)
from testerarmy.logging import WorkflowCommandHandler, configure_logging, get_logger
from testerarmy.transport import HTTPTransport, RetryConfig
from testerarmy.types import (
    CITestRequest,
    CITestResult,
    Credentials,
    DeploymentEvent,
    DeploymentInfo,
    PRContext,
    TestContext,
    TestPlan,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main Client
    "TesterArmyClient",
    # Deployment classification
    "extract_deployment_info",
    "is_vercel_deployment",
    # Exceptions
    "TesterArmyError",
    "ConfigurationError",
    "APIError",
    "BadRequestError",
    "UnauthorizedError",
    "RateLimitedError",
    "RequestTimeoutError",
    "ServerError",
    # Types
    "DeploymentEvent",
    "DeploymentInfo",
    "Credentials",
    "TestContext",
    "CITestRequest",
    "TestPlan",
    "CITestResult",
    "PRContext",
    # Transport
    "HTTPTransport",
    "RetryConfig",
    # Logging
    "WorkflowCommandHandler",
    "configure_logging",
    "get_logger",
]
