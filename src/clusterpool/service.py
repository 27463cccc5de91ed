"""Cluster service boundary.

``ClusterService`` is everything the allocator needs from the outside world.
``RemoteClusterService`` implements it on top of the HTTP ``Clusters``
resource and turns create/delete failures into ``None``/``False`` results.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

from clusterpool.exceptions import NotFoundError, PoolError

if TYPE_CHECKING:
    from clusterpool.models.cluster import Cluster
    from clusterpool.models.pooling import AllocationArgs
    from clusterpool.resources.clusters import Clusters

logger = logging.getLogger("clusterpool.service")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClusterService(Protocol):
    """List, create and delete clusters by label."""

    def list_clusters(self, args: AllocationArgs, labels: dict[str, str]) -> list[Cluster]:
        """Snapshot of clusters carrying all ``labels``. Raises on remote failure."""
        ...

    def create_cluster(self, args: AllocationArgs, labels: dict[str, str]) -> Cluster | None:
        """Create the cluster named ``args.cluster.name``. None on failure."""
        ...

    def delete_cluster(self, args: AllocationArgs) -> bool:
        """Delete the cluster named ``args.cluster.name``."""
        ...

    def extend_heartbeat(self, args: AllocationArgs, cluster: Cluster, expires_at: datetime) -> bool:
        """Push the cluster's in-use expiry to ``expires_at``."""
        ...


class RemoteClusterService:
    """ClusterService backed by the cluster management REST API."""

    def __init__(
        self,
        clusters: Clusters,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._clusters = clusters
        self._clock = clock

    def list_clusters(self, args: AllocationArgs, labels: dict[str, str]) -> list[Cluster]:
        clusters = self._clusters.list_all(labels)
        logger.debug("Listed %d clusters for client %s", len(clusters), args.client_id)
        return clusters

    def create_cluster(self, args: AllocationArgs, labels: dict[str, str]) -> Cluster | None:
        name = args.cluster.name
        if not name:
            raise ValueError("create_cluster needs args.cluster.name")
        try:
            cluster = self._clusters.create(
                name,
                labels={**args.cluster.labels, **labels},
                node_count=args.cluster.node_count,
                config=args.cluster.config,
                heartbeat=self._clock() + args.heartbeat_interval,
            )
        except PoolError as e:
            logger.warning("Failed to create cluster %s: %s", name, e)
            return None
        logger.info("Created cluster %s for client %s", cluster.name, args.client_id)
        return cluster

    def delete_cluster(self, args: AllocationArgs) -> bool:
        name = args.cluster.name
        if not name:
            raise ValueError("delete_cluster needs args.cluster.name")
        try:
            self._clusters.delete(name)
        except NotFoundError:
            logger.info("Cluster %s already gone", name)
            return True
        except PoolError as e:
            logger.warning("Failed to delete cluster %s: %s", name, e)
            return False
        logger.info("Deleted cluster %s", name)
        return True

    def extend_heartbeat(self, args: AllocationArgs, cluster: Cluster, expires_at: datetime) -> bool:
        try:
            self._clusters.set_heartbeat(cluster.name, expires_at)
        except PoolError as e:
            logger.warning("Failed to extend heartbeat of %s: %s", cluster.name, e)
            return False
        return True
