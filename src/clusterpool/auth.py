"""Authentication providers for clusterpool.

Supports:
- APIKey: a static bearer token (application default credentials)
- ServiceAccount: key-file credentials exchanged for short-lived access tokens
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx


class AuthProvider(ABC):
    """Base authentication provider interface.

    All authentication methods must implement this interface.
    """

    @abstractmethod
    def get_headers(self) -> dict[str, str]:
        """Return authentication headers for requests.

        Returns:
            Dictionary of headers to include in requests.
        """
        ...

    @abstractmethod
    def needs_refresh(self) -> bool:
        """Check if credentials need refreshing.

        Returns:
            True if credentials should be refreshed before next request.
        """
        ...

    @abstractmethod
    def refresh(self, client: httpx.Client) -> None:
        """Refresh credentials if needed.

        Args:
            client: HTTP client to use for refresh requests.
        """
        ...

    @property
    @abstractmethod
    def is_authenticated(self) -> bool:
        """Check if currently authenticated."""
        ...


@dataclass
class APIKeyAuth(AuthProvider):
    """Static bearer token authentication.

    Example:
        ```python
        auth = APIKeyAuth(api_key="ya29....")
        client = PoolClient(project="my-project", auth=auth)
        ```

    Attributes:
        api_key: Bearer token sent with every request.
    """

    api_key: str = field(repr=False)  # Never log tokens

    def get_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def needs_refresh(self) -> bool:
        """Static tokens are never refreshed."""
        return False

    def refresh(self, client: Any) -> None:
        pass

    @property
    def is_authenticated(self) -> bool:
        return bool(self.api_key)


@dataclass
class ServiceAccountAuth(AuthProvider):
    """Service account authentication.

    Exchanges the key file's ``client_email`` and ``private_key`` at
    ``token_uri`` for an access token and keeps it fresh.

    Attributes:
        client_email: Service account identity.
        private_key: Secret from the key file.
        token_uri: Absolute token endpoint URL.
    """

    client_email: str
    private_key: str = field(repr=False)  # Never log secrets
    token_uri: str = "https://oauth2.googleapis.com/token"
    _access_token: str | None = field(default=None, repr=False)
    _expires_at: float = field(default=0.0, repr=False)
    _refresh_buffer: int = field(default=60, repr=False)  # Refresh 60s before expiry

    def get_headers(self) -> dict[str, str]:
        if self._access_token:
            return {"Authorization": f"Bearer {self._access_token}"}
        return {}

    def needs_refresh(self) -> bool:
        if not self._access_token:
            return True
        return time.time() >= (self._expires_at - self._refresh_buffer)

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None and time.time() < self._expires_at

    def refresh(self, client: Any) -> None:
        """Fetch a new access token.

        Args:
            client: HTTP client used for the token request.

        Raises:
            httpx.HTTPStatusError: If the token endpoint rejects the credentials.
        """
        response = client.post(
            self.token_uri,
            json={
                "grant_type": "client_credentials",
                "client_email": self.client_email,
                "private_key": self.private_key,
            },
        )
        response.raise_for_status()
        data = response.json()

        self._access_token = data.get("access_token")
        expires_in = data.get("expires_in", 3600)
        self._expires_at = time.time() + expires_in
