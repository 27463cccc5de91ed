"""
clusterpool - lease warm, shared compute clusters to short-lived jobs.

Pooled allocation, slot placement and reclamation on top of a
label-queryable cluster service.
"""

from clusterpool._version import __version__
from clusterpool.client import PoolClient
from clusterpool.exceptions import (
    AcquireError,
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    ConnectionError,
    CredentialsError,
    NotFoundError,
    PoolError,
    RateLimitError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from clusterpool.models import (
    AllocationArgs,
    Cluster,
    ClusterPlacement,
    ClusterSpec,
    ClusterState,
    PoolingConfig,
)
from clusterpool.pooling import DefaultRandomPlacementGenerator, PoolAllocator
from clusterpool.service import ClusterService, RemoteClusterService
from clusterpool.submitter import DynamicSubmitter, PoolingSubmitter, create_submitter

__all__ = [
    # Version
    "__version__",
    # Client
    "PoolClient",
    # Pooling
    "PoolAllocator",
    "DefaultRandomPlacementGenerator",
    "ClusterService",
    "RemoteClusterService",
    # Submitters
    "DynamicSubmitter",
    "PoolingSubmitter",
    "create_submitter",
    # Models
    "AllocationArgs",
    "Cluster",
    "ClusterPlacement",
    "ClusterSpec",
    "ClusterState",
    "PoolingConfig",
    # Exceptions
    "PoolError",
    "AcquireError",
    "AuthenticationError",
    "ConfigurationError",
    "ConflictError",
    "ConnectionError",
    "CredentialsError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "TimeoutError",
    "ValidationError",
]
