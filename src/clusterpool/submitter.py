"""Run jobs on acquired clusters.

A submitter brackets a job with acquire and release:

    submitter = create_submitter(args)
    submitter.submit(args, job, service)

If no cluster can be acquired the job never runs and ``AcquireError`` is
raised. Release problems are logged and do not change the job's outcome.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, TypeVar

from clusterpool.exceptions import AcquireError, PoolError
from clusterpool.models.pooling import POOL_LABEL, POOL_LABEL_VALUE
from clusterpool.pooling.allocator import PoolAllocator
from clusterpool.service import utcnow

if TYPE_CHECKING:
    from clusterpool.models.pooling import AllocationArgs
    from clusterpool.pooling.placement import RandomPlacementGenerator
    from clusterpool.service import ClusterService

logger = logging.getLogger("clusterpool.submitter")

T = TypeVar("T")

DYNAMIC_CLUSTER_PREFIX = "clusterpool"


class Submitter(ABC):
    """Acquire a cluster, run a job on it, release it."""

    @abstractmethod
    def acquire_cluster(self, args: AllocationArgs, service: ClusterService) -> bool:
        """Bind a cluster name into ``args.cluster.name``."""
        ...

    @abstractmethod
    def release_cluster(self, args: AllocationArgs, service: ClusterService) -> bool:
        """Give back the cluster bound by ``acquire_cluster``."""
        ...

    def submit(
        self,
        args: AllocationArgs,
        job: Callable[[str], T],
        service: ClusterService,
    ) -> T:
        """Run ``job(cluster_name)`` on an acquired cluster and return its result.

        Raises:
            AcquireError: If no cluster could be acquired.
        """
        if not self.acquire_cluster(args, service) or not args.cluster.name:
            raise AcquireError(
                f"Failed to acquire a cluster for client {args.client_id}",
                client_id=args.client_id,
            )

        cluster_name = args.cluster.name
        try:
            return job(cluster_name)
        finally:
            self._release(args, service, cluster_name)

    def _release(self, args: AllocationArgs, service: ClusterService, cluster_name: str) -> None:
        try:
            released = self.release_cluster(args, service)
        except PoolError as e:
            logger.warning("Failed to release cluster %s: %s", cluster_name, e)
            return
        if not released:
            logger.warning("Failed to release cluster %s", cluster_name)


class DynamicSubmitter(Submitter):
    """One fresh cluster per job, deleted afterwards."""

    def acquire_cluster(self, args: AllocationArgs, service: ClusterService) -> bool:
        name = args.cluster.name or f"{DYNAMIC_CLUSTER_PREFIX}-{uuid.uuid4().hex[:12]}"
        request = args.model_copy(update={"cluster": args.cluster.model_copy(update={"name": name})})
        cluster = service.create_cluster(request, {POOL_LABEL: POOL_LABEL_VALUE})
        if cluster is None:
            return False
        args.cluster.name = cluster.name
        return True

    def release_cluster(self, args: AllocationArgs, service: ClusterService) -> bool:
        return service.delete_cluster(args)


class PoolingSubmitter(Submitter):
    """Borrow clusters from the client's pool."""

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        placement_generator: RandomPlacementGenerator | None = None,
    ) -> None:
        self.allocator = PoolAllocator(clock, placement_generator)

    def acquire_cluster(self, args: AllocationArgs, service: ClusterService) -> bool:
        return self.allocator.acquire(args, service)

    def release_cluster(self, args: AllocationArgs, service: ClusterService) -> bool:
        return self.allocator.release(args, service)


def create_submitter(
    args: AllocationArgs,
    clock: Callable[[], datetime] = utcnow,
    placement_generator: RandomPlacementGenerator | None = None,
) -> Submitter:
    """Pooled submitter when ``args`` carries pooling config, dynamic otherwise."""
    if args.pooling is not None:
        return PoolingSubmitter(clock, placement_generator)
    return DynamicSubmitter()
