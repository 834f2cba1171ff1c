"""Tester Army exception classes."""


class TesterArmyError(Exception):
    """Base exception for all Tester Army errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class ConfigurationError(TesterArmyError):
    """Raised when action inputs or environment are invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR")


class APIError(TesterArmyError):
    """
    Raised on API failures that have no more specific type.

    Covers unclassified 4xx responses, malformed response bodies and
    transport-level failures.
    """

    pass


class BadRequestError(APIError):
    """Raised when the API rejects the request as malformed (400)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400, "BAD_REQUEST")


class UnauthorizedError(APIError):
    """Raised when the API key is missing, invalid or expired (401)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 401, "UNAUTHORIZED")


class RateLimitedError(APIError):
    """Raised when rate limited (429)."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message, 429, "RATE_LIMITED")
        self.retry_after = retry_after


class RequestTimeoutError(APIError):
    """Raised when the deadline expires locally or the gateway times out (504)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 504, "TIMEOUT")


class ServerError(APIError):
    """Raised on server errors (5xx)."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, status_code, "SERVER_ERROR")
