"""Collect a client's dead pooled clusters.

A pooled cluster is dead once it errored or its heartbeat expired, meaning
no allocator has touched it for a whole heartbeat interval.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from clusterpool.models.cluster import Cluster, ClusterState
from clusterpool.models.pooling import pool_filter
from clusterpool.service import utcnow

if TYPE_CHECKING:
    from clusterpool.models.pooling import AllocationArgs
    from clusterpool.service import ClusterService

logger = logging.getLogger("clusterpool.pooling")

_GONE = (ClusterState.DELETING, ClusterState.DELETED)


def is_collectable(cluster: Cluster, now: datetime) -> bool:
    if cluster.state in _GONE:
        return False
    return cluster.state is ClusterState.ERROR or cluster.heartbeat_expired(now)


def collect(
    args: AllocationArgs,
    service: ClusterService,
    clock: Callable[[], datetime] = utcnow,
) -> list[str]:
    """Delete every dead cluster in the client's pool.

    Returns:
        Names of the clusters whose deletion was accepted.
    """
    now = clock()
    deleted: list[str] = []
    for cluster in service.list_clusters(args, pool_filter(args.client_id)):
        if not is_collectable(cluster, now):
            continue
        target = args.model_copy(update={"cluster": args.cluster.model_copy(update={"name": cluster.name})})
        if service.delete_cluster(target):
            deleted.append(cluster.name)
        else:
            logger.warning("Could not collect cluster %s, skipping", cluster.name)
    logger.info("Collected %d clusters for client %s", len(deleted), args.client_id)
    return deleted
