"""Base resource class."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clusterpool._http import HttpClient


class SyncResource:
    """Base class for API resources scoped to one project and region."""

    def __init__(self, http: HttpClient, project: str, region: str) -> None:
        self._http = http
        self._project = project
        self._region = region

    @property
    def _prefix(self) -> str:
        return f"/v1/projects/{self._project}/regions/{self._region}"
