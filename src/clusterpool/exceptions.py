"""clusterpool exceptions.

All exceptions inherit from PoolError for easy catching.
"""

from __future__ import annotations

from typing import Any


class PoolError(Exception):
    """Base exception for all clusterpool errors."""

    def __init__(self, message: str, *, response: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class ConfigurationError(PoolError):
    """Pooling configuration is invalid.

    Raised for a pool limit below 1, a missing pooling section, or an empty
    placement candidate set. Never retried.
    """


class CredentialsError(PoolError):
    """Credentials could not be loaded.

    Check that CLUSTERPOOL_APPLICATION_CREDENTIALS points to a valid key file.
    """


class AuthenticationError(PoolError):
    """Invalid, expired or missing credentials."""


class RateLimitError(PoolError):
    """Rate limit exceeded.

    Check retry_after for when to retry.
    """

    def __init__(
        self, message: str, *, retry_after: int | None = None, response: Any = None
    ) -> None:
        super().__init__(message, response=response)
        self.retry_after = retry_after


class ValidationError(PoolError):
    """Request payload was rejected by the cluster service."""

    def __init__(
        self, message: str, *, errors: list[dict[str, Any]] | None = None, response: Any = None
    ) -> None:
        super().__init__(message, response=response)
        self.errors = errors or []


class NotFoundError(PoolError):
    """Cluster not found."""

    def __init__(
        self, message: str, *, resource_type: str = "", resource_id: str = "", response: Any = None
    ) -> None:
        super().__init__(message, response=response)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(PoolError):
    """A cluster with the requested name already exists.

    This is how two allocators racing for the same slot observe each other.
    """


class AcquireError(PoolError):
    """No cluster could be acquired for the job.

    The job is not run when this is raised.
    """

    def __init__(self, message: str, *, client_id: str | None = None) -> None:
        super().__init__(message)
        self.client_id = client_id


class ConnectionError(PoolError):
    """Failed to connect to the cluster service.

    Check network connectivity and api_url configuration.
    """


class TimeoutError(PoolError):
    """Request timed out."""


class ServerError(PoolError):
    """The cluster service failed with a 5xx status."""
