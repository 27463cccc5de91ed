"""Pool allocator.

Decides, for one client, whether an existing cluster is reused or a new one
is created, and in which slot. Every call works on a fresh listing from the
cluster service; nothing about the pool is remembered between calls, so any
number of independent processes may allocate for the same client.

A cluster is usable when it is RUNNING and has been so for at most
``max_age``. Slots only count as taken by usable clusters: a slot whose
occupant errored or aged out is offered again, one generation higher than
anything seen in it.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from clusterpool.exceptions import ConfigurationError
from clusterpool.models.cluster import Cluster, ClusterState
from clusterpool.models.placement import ClusterPlacement
from clusterpool.models.pooling import PLACEMENT_TOKEN_LABEL, pool_filter
from clusterpool.pooling.placement import (
    DefaultRandomPlacementGenerator,
    RandomPlacementGenerator,
)
from clusterpool.service import utcnow

if TYPE_CHECKING:
    from clusterpool.models.pooling import AllocationArgs, PoolingConfig
    from clusterpool.service import ClusterService

logger = logging.getLogger("clusterpool.pooling")

CLUSTER_NAME_PREFIX = "clusterpool"
_MAX_CLIENT_SLUG = 30
_CLIENT_DIGEST_LENGTH = 8


def pooled_cluster_name(client_id: str, placement: ClusterPlacement) -> str:
    """Deterministic name for a placement.

    Two allocators that pick the same placement pick the same name, so the
    loser's create fails with a name conflict. The readable slug is lossy;
    the digest of the exact client id keeps names of different clients apart.
    """
    slug = re.sub(r"[^a-z0-9]+", "-", client_id.lower()).strip("-")[:_MAX_CLIENT_SLUG].rstrip("-")
    digest = hashlib.sha256(client_id.encode()).hexdigest()[:_CLIENT_DIGEST_LENGTH]
    return (
        f"{CLUSTER_NAME_PREFIX}-{slug or 'client'}-{digest}"
        f"-{placement.slot}-{placement.generation}"
    )


def is_usable(cluster: Cluster, pooling: PoolingConfig, now: datetime) -> bool:
    return cluster.state is ClusterState.RUNNING and cluster.age(now) <= pooling.max_age


def _reuse_order(cluster: Cluster) -> tuple[float, int, str]:
    # Lowest slot first, newest generation within a slot, then name.
    placement = cluster.placement
    if placement is None:
        return (float("inf"), 0, cluster.name)
    return (placement.slot, -placement.generation, cluster.name)


def candidate_placements(
    clusters: Sequence[Cluster],
    pooling: PoolingConfig,
    now: datetime,
) -> list[ClusterPlacement]:
    """Placements a new cluster may take, given a pool snapshot.

    Every slot in ``[0, limit)`` not held by a usable cluster, each at one
    generation above the highest seen in that slot, usable or not.
    """
    taken: set[int] = set()
    newest: dict[int, int] = {}
    for cluster in clusters:
        placement = cluster.placement
        if placement is None:
            continue
        if placement.slot not in newest or placement.generation > newest[placement.slot]:
            newest[placement.slot] = placement.generation
        if is_usable(cluster, pooling, now):
            taken.add(placement.slot)

    return [
        ClusterPlacement(slot=slot, generation=newest[slot] + 1 if slot in newest else 0)
        for slot in range(pooling.limit)
        if slot not in taken
    ]


class PoolAllocator:
    """Acquire and release pooled clusters.

    Args:
        clock: Returns the current time as an aware datetime.
        placement_generator: Picks among candidate placements.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        placement_generator: RandomPlacementGenerator | None = None,
    ) -> None:
        self._clock = clock
        self._placement_generator = placement_generator or DefaultRandomPlacementGenerator()

    @property
    def placement_generator(self) -> RandomPlacementGenerator:
        return self._placement_generator

    def acquire(self, args: AllocationArgs, service: ClusterService) -> bool:
        """Bind a cluster from the client's pool to ``args``, creating one if needed.

        Returns:
            True when ``args.cluster.name`` names a cluster to run on.

        Raises:
            ConfigurationError: If the pooling config is missing or has limit 0.
        """
        pooling = _pooling(args)
        now = self._clock()
        clusters = service.list_clusters(args, pool_filter(args.client_id))
        usable = [cluster for cluster in clusters if is_usable(cluster, pooling, now)]

        if usable and not (pooling.grow_to_limit and len(usable) < pooling.limit):
            return self._reuse(args, service, min(usable, key=_reuse_order), now)

        return self.create_pooled_cluster(args, service, clusters, now)

    def create_pooled_cluster(
        self,
        args: AllocationArgs,
        service: ClusterService,
        clusters: Sequence[Cluster],
        now: datetime,
    ) -> bool:
        """Create a cluster in a randomly chosen free slot of the snapshot ``clusters``."""
        pooling = _pooling(args)
        candidates = candidate_placements(clusters, pooling, now)
        placement = self._placement_generator.random_placement(candidates)
        name = pooled_cluster_name(args.client_id, placement)

        logger.info(
            "Creating cluster %s for client %s in slot %d (generation %d), %d candidate slots",
            name,
            args.client_id,
            placement.slot,
            placement.generation,
            len(candidates),
        )
        request = args.model_copy(update={"cluster": args.cluster.model_copy(update={"name": name})})
        labels = {**pool_filter(args.client_id), PLACEMENT_TOKEN_LABEL: placement.token}
        cluster = service.create_cluster(request, labels)
        if cluster is None:
            logger.warning("Could not create cluster %s for client %s", name, args.client_id)
            return False

        args.cluster.name = cluster.name
        return True

    def release(self, args: AllocationArgs, service: ClusterService) -> bool:
        """Return the bound cluster to the pool, deleting it if it errored.

        Returns:
            False only when a broken cluster could not be deleted.
        """
        name = args.cluster.name
        if not name:
            raise ValueError("release needs a bound cluster; call acquire first")

        clusters = service.list_clusters(args, pool_filter(args.client_id))
        cluster = next((c for c in clusters if c.name == name), None)
        if cluster is None:
            logger.info("Cluster %s is no longer in the pool of %s", name, args.client_id)
            return True

        if cluster.state is ClusterState.ERROR:
            logger.warning("Cluster %s is in state ERROR, deleting it", name)
            return service.delete_cluster(args)

        logger.debug("Keeping cluster %s (%s) in the pool", name, cluster.state.value)
        return True

    def _reuse(
        self,
        args: AllocationArgs,
        service: ClusterService,
        cluster: Cluster,
        now: datetime,
    ) -> bool:
        args.cluster.name = cluster.name
        logger.info(
            "Reusing cluster %s (%s) for client %s",
            cluster.name,
            cluster.placement or "no placement",
            args.client_id,
        )
        service.extend_heartbeat(args, cluster, now + args.heartbeat_interval)
        return True


def _pooling(args: AllocationArgs) -> PoolingConfig:
    if args.pooling is None:
        raise ConfigurationError(f"Client {args.client_id} has no pooling configuration")
    if args.pooling.limit < 1:
        raise ConfigurationError(
            f"Pool limit for client {args.client_id} must be at least 1, got {args.pooling.limit}"
        )
    return args.pooling
