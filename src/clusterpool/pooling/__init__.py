"""Cluster pooling: placement, allocation and collection."""

from clusterpool.pooling.allocator import (
    PoolAllocator,
    candidate_placements,
    is_usable,
    pooled_cluster_name,
)
from clusterpool.pooling.placement import (
    DefaultRandomPlacementGenerator,
    RandomPlacementGenerator,
)
from clusterpool.pooling.reaper import collect, is_collectable

__all__ = [
    "PoolAllocator",
    "candidate_placements",
    "is_usable",
    "pooled_cluster_name",
    "DefaultRandomPlacementGenerator",
    "RandomPlacementGenerator",
    "collect",
    "is_collectable",
]
