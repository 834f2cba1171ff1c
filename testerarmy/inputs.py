"""Action inputs."""

from dataclasses import dataclass

from testerarmy.client import TesterArmyClient
from testerarmy.exceptions import ConfigurationError
from testerarmy.types.ci_test import Credentials

MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 300000
DEFAULT_TIMEOUT_MS = 180000


@dataclass
class ActionInputs:
    """Validated inputs of one action run."""

    api_key: str
    github_token: str
    credentials_email: str | None = None
    credentials_password: str | None = None
    bypass_token: str | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    fail_on_error: bool = True
    base_url: str = TesterArmyClient.DEFAULT_BASE_URL

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError("Input required and not supplied: api-key")

        if not self.github_token:
            raise ConfigurationError("Input required and not supplied: github-token")

        if not MIN_TIMEOUT_MS <= self.timeout_ms <= MAX_TIMEOUT_MS:
            raise ConfigurationError(
                f"Timeout must be between {MIN_TIMEOUT_MS} and {MAX_TIMEOUT_MS} milliseconds"
            )

    @property
    def timeout(self) -> float:
        """Per-attempt deadline in seconds."""
        return self.timeout_ms / 1000

    def credentials(self) -> Credentials | None:
        """Test login credentials, only when both email and password are given."""
        if self.credentials_email and self.credentials_password:
            return Credentials(
                email=self.credentials_email,
                password=self.credentials_password,
            )
        return None
