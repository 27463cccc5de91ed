"""Tests for PoolClient."""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Generator, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest
import respx

from clusterpool import PoolClient
from clusterpool.auth import APIKeyAuth
from clusterpool.exceptions import ConfigurationError
from clusterpool.models.placement import ClusterPlacement

CLUSTERS_PATH = "/v1/projects/test-project/regions/europe-west1/clusters"


class FirstPlacement:
    def random_placement(self, candidates: Sequence[ClusterPlacement]) -> ClusterPlacement:
        return candidates[0]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path) -> Generator[None, None, None]:
    """Keep the user's config file and environment out of the tests."""
    with (
        patch("clusterpool._config.CONFIG_FILE", tmp_path / "config.toml"),
        patch.dict(os.environ, {}, clear=True),
    ):
        yield


@pytest.fixture
def client(base_url: str, clock: Callable[[], datetime]) -> Generator[PoolClient, None, None]:
    with PoolClient(
        project="test-project",
        region="europe-west1",
        auth=APIKeyAuth(api_key="test-key"),
        base_url=base_url,
        max_retries=0,
        clock=clock,
        placement_generator=FirstPlacement(),
    ) as client:
        yield client


class TestPoolClientInit:
    def test_missing_project(self) -> None:
        with pytest.raises(ConfigurationError, match="No project configured"):
            PoolClient(auth=APIKeyAuth(api_key="tok"))

    def test_project_from_environment(self) -> None:
        env = {"CLUSTERPOOL_PROJECT": "env-project", "CLUSTERPOOL_ACCESS_TOKEN": "tok"}
        with patch.dict(os.environ, env):
            client = PoolClient()

        assert client.project == "env-project"
        assert client.region == "global"
        assert client.user_id is None
        client.close()

    def test_project_from_service_account_key(self, tmp_path: Path) -> None:
        key = tmp_path / "key.json"
        key.write_text(
            json.dumps(
                {
                    "project_id": "key-project",
                    "client_email": "runner@key-project.iam.example.com",
                    "private_key": "secret",
                }
            )
        )
        with patch.dict(os.environ, {"CLUSTERPOOL_APPLICATION_CREDENTIALS": str(key)}):
            client = PoolClient(region="europe-west1")

            assert client.project == "key-project"
            assert client.user_id == "runner@key-project.iam.example.com"
        client.close()

    def test_repr(self, client: PoolClient) -> None:
        assert repr(client) == "PoolClient(project='test-project', region='europe-west1')"


class TestPoolClientAllocation:
    def test_acquire_reuses_running_cluster(
        self,
        mock_api: respx.MockRouter,
        client: PoolClient,
        make_args,
        sample_cluster: dict[str, Any],
    ) -> None:
        mock_api.get(CLUSTERS_PATH).mock(
            return_value=httpx.Response(200, json={"clusters": [sample_cluster]})
        )
        heartbeat = mock_api.patch(f"{CLUSTERS_PATH}/clusterpool-my-client-id-0-1").mock(
            return_value=httpx.Response(200, json=sample_cluster)
        )
        create = mock_api.post(CLUSTERS_PATH)
        args = make_args()

        assert client.acquire(args)

        assert args.cluster.name == "clusterpool-my-client-id-0-1"
        assert json.loads(heartbeat.calls.last.request.content) == {
            "heartbeat": "2024-01-01T12:30:00+00:00"
        }
        assert not create.called

    def test_acquire_creates_into_empty_pool(
        self,
        mock_api: respx.MockRouter,
        client: PoolClient,
        make_args,
        sample_cluster: dict[str, Any],
    ) -> None:
        mock_api.get(CLUSTERS_PATH).mock(return_value=httpx.Response(200, json={"clusters": []}))
        created = {**sample_cluster, "clusterName": "clusterpool-my-client-id-68f87890-0-0"}
        create = mock_api.post(CLUSTERS_PATH).mock(return_value=httpx.Response(200, json=created))
        args = make_args()

        assert client.acquire(args)

        assert args.cluster.name == "clusterpool-my-client-id-68f87890-0-0"
        body = json.loads(create.calls.last.request.content)
        assert body["clusterName"] == "clusterpool-my-client-id-68f87890-0-0"
        assert body["labels"] == {
            "clusterpool-cluster": "1",
            "clusterpool-client-id": "my-client-id",
            "clusterpool-placement-token": "0-0",
        }

    def test_acquire_loses_race(
        self, mock_api: respx.MockRouter, client: PoolClient, make_args
    ) -> None:
        """Another allocator created the same name first."""
        mock_api.get(CLUSTERS_PATH).mock(return_value=httpx.Response(200, json={"clusters": []}))
        mock_api.post(CLUSTERS_PATH).mock(
            return_value=httpx.Response(409, json={"message": "Already exists"})
        )
        args = make_args()

        assert client.acquire(args) is False
        assert args.cluster.name is None

    def test_create_timeout_is_not_resent(
        self, mock_api: respx.MockRouter, base_url: str, clock, make_args
    ) -> None:
        """With default retries, a create whose response was lost is sent once."""
        mock_api.get(CLUSTERS_PATH).mock(return_value=httpx.Response(200, json={"clusters": []}))
        create = mock_api.post(CLUSTERS_PATH)
        create.side_effect = [
            httpx.ReadTimeout("lost response"),
            httpx.Response(409, json={"message": "Already exists"}),
        ]
        args = make_args()

        with PoolClient(
            project="test-project",
            region="europe-west1",
            auth=APIKeyAuth(api_key="test-key"),
            base_url=base_url,
            clock=clock,
        ) as client, patch("clusterpool._http.time.sleep"):
            assert client.acquire(args) is False

        assert create.call_count == 1

    def test_release_deletes_errored_cluster(
        self,
        mock_api: respx.MockRouter,
        client: PoolClient,
        make_args,
        sample_cluster: dict[str, Any],
    ) -> None:
        errored = {**sample_cluster, "status": {**sample_cluster["status"], "state": "ERROR"}}
        mock_api.get(CLUSTERS_PATH).mock(
            return_value=httpx.Response(200, json={"clusters": [errored]})
        )
        delete = mock_api.delete(f"{CLUSTERS_PATH}/clusterpool-my-client-id-0-1").mock(
            return_value=httpx.Response(204)
        )

        assert client.release(make_args(name="clusterpool-my-client-id-0-1"))
        assert delete.called

    def test_reap(
        self,
        mock_api: respx.MockRouter,
        client: PoolClient,
        make_args,
        sample_cluster: dict[str, Any],
    ) -> None:
        stale = {**sample_cluster, "clusterName": "stale", "heartbeat": "2024-01-01T11:00:00Z"}
        mock_api.get(CLUSTERS_PATH).mock(
            return_value=httpx.Response(200, json={"clusters": [sample_cluster, stale]})
        )
        mock_api.delete(f"{CLUSTERS_PATH}/stale").mock(return_value=httpx.Response(204))

        assert client.reap(make_args()) == ["stale"]
