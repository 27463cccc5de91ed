"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest
import respx

from clusterpool._http import HttpClient
from clusterpool.auth import APIKeyAuth
from clusterpool.models.cluster import Cluster, ClusterState
from clusterpool.models.pooling import (
    CLIENT_ID_LABEL,
    PLACEMENT_TOKEN_LABEL,
    POOL_LABEL,
    POOL_LABEL_VALUE,
    AllocationArgs,
    PoolingConfig,
)
from clusterpool.resources.clusters import Clusters
from clusterpool.service import RemoteClusterService

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
CLUSTER_NAME = "clusterpool-uuid"


@pytest.fixture
def now() -> datetime:
    """Fixed wall clock for allocation decisions."""
    return NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def client_id() -> str:
    return "my-client-id"


@pytest.fixture
def base_url() -> str:
    """Test API base URL."""
    return "https://clusters.test.example.com"


@pytest.fixture
def prefix(base_url: str) -> str:
    """Base URL plus project/region path."""
    return f"{base_url}/v1/projects/test-project/regions/europe-west1"


@pytest.fixture
def mock_api(base_url: str) -> Generator[respx.MockRouter, None, None]:
    """Mock API router."""
    with respx.mock(base_url=base_url, assert_all_called=False) as router:
        yield router


@pytest.fixture
def http(base_url: str) -> Generator[HttpClient, None, None]:
    """HTTP client that never retries, so error tests do not sleep."""
    client = HttpClient(base_url=base_url, auth=APIKeyAuth(api_key="test-key"), max_retries=0)
    yield client
    client.close()


@pytest.fixture
def clusters(http: HttpClient) -> Clusters:
    return Clusters(http, "test-project", "europe-west1")


@pytest.fixture
def remote_service(clusters: Clusters, clock: Callable[[], datetime]) -> RemoteClusterService:
    return RemoteClusterService(clusters, clock=clock)


@pytest.fixture
def service() -> MagicMock:
    """Cluster service double; create/delete/heartbeat succeed unless told otherwise."""
    mock = MagicMock(spec=RemoteClusterService)
    mock.list_clusters.return_value = []
    mock.delete_cluster.return_value = True
    mock.extend_heartbeat.return_value = True
    return mock


@pytest.fixture
def make_cluster(client_id: str) -> Callable[..., Cluster]:
    """Factory for pooled clusters.

    Defaults to a RUNNING cluster that entered its state at NOW.
    """

    def factory(
        slot: int,
        generation: int,
        *,
        state: ClusterState = ClusterState.RUNNING,
        age: timedelta = timedelta(0),
        name: str = CLUSTER_NAME,
        owner: str | None = None,
        heartbeat: datetime | None = None,
    ) -> Cluster:
        return Cluster(
            name=name,
            status={"state": state, "state_start_time": NOW - age},
            labels={
                POOL_LABEL: POOL_LABEL_VALUE,
                CLIENT_ID_LABEL: owner or client_id,
                PLACEMENT_TOKEN_LABEL: f"{slot}-{generation}",
            },
            heartbeat=heartbeat if heartbeat is not None else NOW + timedelta(minutes=60),
        )

    return factory


@pytest.fixture
def make_args(client_id: str) -> Callable[..., AllocationArgs]:
    def factory(
        limit: int = 2,
        max_age: timedelta = timedelta(minutes=30),
        *,
        name: str | None = None,
        grow_to_limit: bool = False,
    ) -> AllocationArgs:
        return AllocationArgs(
            client_id=client_id,
            pooling=PoolingConfig(limit=limit, max_age=max_age, grow_to_limit=grow_to_limit),
            cluster={"name": name},
        )

    return factory


@pytest.fixture
def sample_cluster() -> dict[str, Any]:
    """Sample cluster response."""
    return {
        "clusterName": "clusterpool-my-client-id-0-1",
        "status": {"state": "RUNNING", "stateStartTime": "2024-01-01T11:50:00Z"},
        "labels": {
            POOL_LABEL: POOL_LABEL_VALUE,
            CLIENT_ID_LABEL: "my-client-id",
            PLACEMENT_TOKEN_LABEL: "0-1",
        },
        "heartbeat": "2024-01-01T12:30:00Z",
    }
