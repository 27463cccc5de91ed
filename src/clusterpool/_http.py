"""HTTP transport for the cluster service.

Only reads are retried. A create or delete whose response was lost may
still have taken effect on the server; repeating it would turn a success
into a name conflict, so such failures go straight back to the caller.
"""

from __future__ import annotations

import contextlib
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from clusterpool._version import __version__
from clusterpool.exceptions import (
    AuthenticationError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    PoolError,
    RateLimitError,
    ServerError,
    TimeoutError,
    ValidationError,
)

if TYPE_CHECKING:
    from clusterpool.auth import AuthProvider

logger = logging.getLogger("clusterpool.http")

DEFAULT_HEADERS = {
    "User-Agent": f"clusterpool-python/{__version__}",
    "Accept": "application/json",
    "Content-Type": "application/json",
}

RETRYABLE_METHODS = frozenset({"GET"})
RETRYABLE_ERRORS = (TimeoutError, ConnectionError, RateLimitError, ServerError)
BACKOFF_BASE = 0.2


class HttpClient:
    """Synchronous HTTP client for the cluster service.

    Args:
        base_url: Service root, without the project/region prefix.
        auth: Supplies and refreshes the bearer token.
        timeout: Per-request timeout in seconds.
        max_retries: Extra attempts for GET requests on transient failures.
        verify_ssl: Verify the server certificate.
    """

    def __init__(
        self,
        base_url: str,
        auth: AuthProvider | None = None,
        timeout: float = 60.0,
        max_retries: int = 3,
        verify_ssl: bool = True,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout = timeout
        self._max_retries = max_retries

        self._client = httpx.Client(
            base_url=self._base_url,
            headers=DEFAULT_HEADERS.copy(),
            timeout=timeout,
            verify=verify_ssl,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, *, json: dict[str, Any] | None = None) -> Any:
        return self._request("POST", path, json=json)

    def patch(self, path: str, *, json: dict[str, Any] | None = None) -> Any:
        return self._request("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    def _refresh_auth(self) -> None:
        """Fetch a new token, reporting failures as clusterpool errors."""
        if self._auth is None:
            return
        try:
            self._auth.refresh(self._client)
        except httpx.HTTPStatusError as e:
            raise AuthenticationError(
                f"Token refresh failed: HTTP {e.response.status_code}", response=e.response
            ) from e
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Token refresh timed out: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"Token refresh failed: {e}") from e
        except ValueError as e:
            raise AuthenticationError(f"Token endpoint returned an unreadable body: {e}") from e

    def _ensure_auth(self) -> None:
        if self._auth is not None and self._auth.needs_refresh():
            self._refresh_auth()

    def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
    ) -> httpx.Response:
        headers = self._auth.get_headers() if self._auth is not None else {}
        try:
            return self._client.request(
                method,
                path,
                params=_filter_none(params) if params else None,
                json=json,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(f"{method} {path} timed out: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"{method} {path} failed: {e}") from e

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        _auth_retry: bool = False,
    ) -> Any:
        """Send one request, retrying GETs on transient failures.

        A 401/403 triggers one token refresh and a single resend for any
        method: the service rejected the request without acting on it.
        """
        attempts = 1 + (self._max_retries if method in RETRYABLE_METHODS else 0)
        self._ensure_auth()

        for attempt in range(attempts):
            try:
                return self._handle_response(self._send(method, path, params, json))
            except AuthenticationError:
                if _auth_retry or self._auth is None:
                    raise
                self._refresh_auth()
                return self._request(method, path, params=params, json=json, _auth_retry=True)
            except RETRYABLE_ERRORS as e:
                if attempt + 1 >= attempts:
                    raise
                delay = _backoff(e, attempt)
                logger.debug("%s %s failed (%s), retrying in %.1fs", method, path, e, delay)
                time.sleep(delay)

        raise PoolError(f"{method} {path} made no attempt")

    def _handle_response(self, response: httpx.Response) -> Any:
        """Return the decoded body or raise the matching PoolError."""
        if response.status_code == 204:
            return None

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.is_success:
            return data

        message = _error_message(data, response)
        status = response.status_code

        if status in (401, 403):
            raise AuthenticationError(message, response=response)
        if status == 404:
            raise NotFoundError(message, response=response)
        if status == 409:
            raise ConflictError(message, response=response)
        if status == 422:
            errors = data.get("errors", []) if isinstance(data, dict) else []
            raise ValidationError(message, errors=errors, response=response)
        if status == 429:
            retry_after: int | None = None
            with contextlib.suppress(ValueError, TypeError):
                retry_after = int(response.headers.get("Retry-After"))
            raise RateLimitError(message, retry_after=retry_after, response=response)
        if status >= 500:
            raise ServerError(f"Server error: {message}", response=response)

        raise PoolError(message, response=response)


def _backoff(error: PoolError, attempt: int) -> float:
    if isinstance(error, RateLimitError) and error.retry_after:
        return float(error.retry_after)
    return BACKOFF_BASE * 2**attempt


def _error_message(data: Any, response: httpx.Response) -> str:
    if isinstance(data, dict):
        if "message" in data:
            return data["message"]
        error = data.get("error")
        if isinstance(error, str):
            return error
        if isinstance(error, dict) and "message" in error:
            return error["message"]
        if "detail" in data:
            return str(data["detail"])

    return f"HTTP {response.status_code}: {response.reason_phrase}"


def _filter_none(params: dict[str, Any]) -> dict[str, Any]:
    """Remove None values from params dict."""
    return {k: v for k, v in params.items() if v is not None}
