"""Pydantic models for clusterpool."""

from clusterpool.models.cluster import Cluster, ClusterList, ClusterState, ClusterStatus
from clusterpool.models.common import PoolModel
from clusterpool.models.placement import ClusterPlacement
from clusterpool.models.pooling import (
    CLIENT_ID_LABEL,
    PLACEMENT_TOKEN_LABEL,
    POOL_LABEL,
    POOL_LABEL_VALUE,
    AllocationArgs,
    ClusterSpec,
    PoolingConfig,
    pool_filter,
)

__all__ = [
    # Common
    "PoolModel",
    # Cluster
    "Cluster",
    "ClusterList",
    "ClusterState",
    "ClusterStatus",
    # Pooling
    "AllocationArgs",
    "ClusterPlacement",
    "ClusterSpec",
    "PoolingConfig",
    "pool_filter",
    # Labels
    "POOL_LABEL",
    "POOL_LABEL_VALUE",
    "CLIENT_ID_LABEL",
    "PLACEMENT_TOKEN_LABEL",
]
