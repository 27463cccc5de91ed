"""Cloud project and credential sourcing.

``CloudConfiguration.create()`` picks one of two variants once at startup:

- application default credentials, when CLUSTERPOOL_APPLICATION_CREDENTIALS
  is unset: project from CLUSTERPOOL_PROJECT, token from CLUSTERPOOL_ACCESS_TOKEN,
  no user id;
- a service account key file, when CLUSTERPOOL_APPLICATION_CREDENTIALS points
  at one: project from ``project_id``, user id from ``client_email``.
"""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from clusterpool.auth import APIKeyAuth, AuthProvider, ServiceAccountAuth
from clusterpool.exceptions import CredentialsError

CREDENTIALS_ENV = "CLUSTERPOOL_APPLICATION_CREDENTIALS"
PROJECT_ENV = "CLUSTERPOOL_PROJECT"
ACCESS_TOKEN_ENV = "CLUSTERPOOL_ACCESS_TOKEN"


def json_credential_path() -> str | None:
    return os.environ.get(CREDENTIALS_ENV)


class CloudConfiguration(ABC):
    """Where the project id, credentials and user id come from."""

    @staticmethod
    def create() -> CloudConfiguration:
        if json_credential_path() is None:
            return DefaultCredentialsConfiguration()
        return ServiceAccountKeyConfiguration()

    @property
    @abstractmethod
    def project_id(self) -> str | None: ...

    @property
    @abstractmethod
    def user_id(self) -> str | None: ...

    @abstractmethod
    def get_credentials(self) -> AuthProvider: ...

    @property
    def json_credentials_path(self) -> str | None:
        return json_credential_path()


class DefaultCredentialsConfiguration(CloudConfiguration):
    """Application default credentials taken from the environment."""

    @property
    def project_id(self) -> str | None:
        return os.environ.get(PROJECT_ENV)

    @property
    def user_id(self) -> str | None:
        return None

    def get_credentials(self) -> AuthProvider:
        token = os.environ.get(ACCESS_TOKEN_ENV)
        if not token:
            raise CredentialsError(
                f"Failed to load application default credentials: {ACCESS_TOKEN_ENV} is not set"
            )
        return APIKeyAuth(api_key=token)


class ServiceAccountKeyConfiguration(CloudConfiguration):
    """Credentials read from a service account JSON key file."""

    def _key(self) -> dict[str, Any]:
        json_file = json_credential_path()
        if json_file is None or not Path(json_file).exists():
            raise CredentialsError(
                f"{CREDENTIALS_ENV} needs to be set and point to a valid credential json"
            )
        try:
            return json.loads(Path(json_file).read_text())
        except (OSError, ValueError) as e:
            raise CredentialsError(f"Failed to read {json_file}: {e}") from e

    @property
    def project_id(self) -> str | None:
        key = self._key()
        if "project_id" not in key:
            raise CredentialsError("Could not parse project_id from credentials.")
        return key["project_id"]

    @property
    def user_id(self) -> str | None:
        key = self._key()
        if "client_email" not in key:
            raise CredentialsError(
                "No valid service account credentials were available to forward to the cluster."
            )
        return key["client_email"]

    def get_credentials(self) -> AuthProvider:
        key = self._key()
        try:
            return ServiceAccountAuth(
                client_email=key["client_email"],
                private_key=key["private_key"],
                token_uri=key.get("token_uri", "https://oauth2.googleapis.com/token"),
            )
        except KeyError as e:
            raise CredentialsError(f"Service account key is missing {e.args[0]!r}") from e
