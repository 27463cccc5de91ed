"""Clusters resource for clusterpool."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from clusterpool.models.cluster import Cluster, ClusterList
from clusterpool.resources._base import SyncResource

if TYPE_CHECKING:
    from clusterpool._http import HttpClient


def label_filter(labels: dict[str, str]) -> str:
    """Render a label selector, e.g. ``labels.a = 1 AND labels.b = x``.

    Keys are sorted so the same selector always renders the same way.
    """
    return " AND ".join(f"labels.{key} = {value}" for key, value in sorted(labels.items()))


class Clusters(SyncResource):
    """Clusters resource for one project and region.

    Example:
        ```python
        from clusterpool import PoolClient

        client = PoolClient(project="my-project", region="europe-west1")

        # List one client's pool
        for cluster in client.clusters.list_all({"clusterpool-client-id": "etl"}):
            print(f"{cluster.name}: {cluster.state}")

        # Create a labeled cluster
        cluster = client.clusters.create("etl-0", labels={"team": "data"}, node_count=3)
        ```
    """

    def __init__(self, http: HttpClient, project: str, region: str) -> None:
        """Initialize clusters resource.

        Args:
            http: HTTP client instance.
            project: Cloud project id.
            region: Region the clusters live in.
        """
        super().__init__(http, project, region)

    def list(
        self,
        labels: dict[str, str] | None = None,
        *,
        page_token: str | None = None,
    ) -> ClusterList:
        """List one page of clusters.

        Args:
            labels: Only return clusters carrying all of these labels.
            page_token: Token from a previous page.

        Returns:
            ClusterList with clusters and the next page token.
        """
        params = {
            "filter": label_filter(labels) if labels else None,
            "pageToken": page_token,
        }
        data = self._http.get(f"{self._prefix}/clusters", params=params)
        return ClusterList.model_validate(data or {})

    def list_all(self, labels: dict[str, str] | None = None) -> list[Cluster]:
        """List every cluster matching ``labels``, following pagination."""
        clusters: list[Cluster] = []
        page_token: str | None = None
        while True:
            page = self.list(labels, page_token=page_token)
            clusters.extend(page.clusters)
            if not page.next_page_token:
                return clusters
            page_token = page.next_page_token

    def get(self, name: str) -> Cluster:
        """Get a specific cluster.

        Args:
            name: The cluster name.

        Returns:
            Cluster details.
        """
        data = self._http.get(f"{self._prefix}/clusters/{name}")
        return Cluster.model_validate(data)

    def create(
        self,
        name: str,
        *,
        labels: dict[str, str] | None = None,
        node_count: int = 2,
        config: dict[str, Any] | None = None,
        heartbeat: datetime | None = None,
    ) -> Cluster:
        """Create a new cluster.

        Args:
            name: Cluster name, unique within the region.
            labels: Labels to attach.
            node_count: Number of worker nodes.
            config: Optional provider-specific configuration.
            heartbeat: Initial in-use expiry.

        Returns:
            Created cluster.

        Raises:
            ConflictError: If a cluster with this name already exists.
        """
        payload: dict[str, Any] = {
            "clusterName": name,
            "labels": labels or {},
            "nodeCount": node_count,
        }
        if config:
            payload["config"] = config
        if heartbeat is not None:
            payload["heartbeat"] = heartbeat.isoformat()

        data = self._http.post(f"{self._prefix}/clusters", json=payload)
        return Cluster.model_validate(data)

    def set_heartbeat(self, name: str, expires_at: datetime) -> Cluster:
        """Move a cluster's heartbeat.

        Args:
            name: The cluster name.
            expires_at: New in-use expiry.

        Returns:
            Updated cluster.
        """
        data = self._http.patch(
            f"{self._prefix}/clusters/{name}",
            json={"heartbeat": expires_at.isoformat()},
        )
        return Cluster.model_validate(data)

    def delete(self, name: str) -> None:
        """Delete a cluster.

        Args:
            name: The cluster name to delete.
        """
        self._http.delete(f"{self._prefix}/clusters/{name}")
