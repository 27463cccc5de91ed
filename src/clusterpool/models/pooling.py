"""Pooling configuration and allocation arguments."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from pydantic import ConfigDict, Field

from clusterpool.models.common import PoolModel

# Label schema shared with every existing pool; values must not change.
POOL_LABEL = "clusterpool-cluster"
POOL_LABEL_VALUE = "1"
CLIENT_ID_LABEL = "clusterpool-client-id"
PLACEMENT_TOKEN_LABEL = "clusterpool-placement-token"

DEFAULT_HEARTBEAT_INTERVAL = timedelta(minutes=30)


def pool_filter(client_id: str) -> dict[str, str]:
    """Labels selecting one client's pool."""
    return {POOL_LABEL: POOL_LABEL_VALUE, CLIENT_ID_LABEL: client_id}


class PoolingConfig(PoolModel):
    """Per-client pool sizing."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(..., ge=0, description="Number of slots in the pool")
    max_age: timedelta = Field(..., description="Age after which a cluster is not reused")
    grow_to_limit: bool = Field(
        False, description="Create new clusters until limit usable ones exist before reusing"
    )


class ClusterSpec(PoolModel):
    """The cluster a job runs on, and how to create one."""

    name: str | None = Field(None, description="Bound cluster name")
    node_count: int = Field(2, ge=1, description="Worker nodes for new clusters")
    labels: dict[str, str] = Field(default_factory=dict, description="Extra labels")
    config: dict[str, Any] | None = Field(None, description="Provider-specific cluster config")


class AllocationArgs(PoolModel):
    """Everything one acquire/release pair needs.

    ``acquire`` writes the chosen cluster's name into ``cluster.name``;
    ``release`` reads it back.
    """

    client_id: str = Field(..., min_length=1, description="Owning client identifier")
    pooling: PoolingConfig | None = Field(None, description="Pool sizing, None for dynamic")
    cluster: ClusterSpec = Field(default_factory=ClusterSpec)
    heartbeat_interval: timedelta = Field(
        DEFAULT_HEARTBEAT_INTERVAL, description="Heartbeat extension on acquire"
    )
