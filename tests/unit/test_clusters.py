"""Tests for Clusters resource."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import httpx
import pytest
import respx

from clusterpool.exceptions import ConflictError, NotFoundError
from clusterpool.resources.clusters import Clusters, label_filter


class TestLabelFilter:
    def test_label_filter_is_sorted(self) -> None:
        assert label_filter({"b": "2", "a": "1"}) == "labels.a = 1 AND labels.b = 2"


class TestClustersResource:
    """Test Clusters resource methods."""

    def test_clusters_list(
        self, mock_api: respx.MockRouter, clusters: Clusters, sample_cluster: dict[str, Any]
    ) -> None:
        """Clusters should list one page filtered by labels."""
        route = mock_api.get("/v1/projects/test-project/regions/europe-west1/clusters").mock(
            return_value=httpx.Response(200, json={"clusters": [sample_cluster]})
        )

        result = clusters.list({"clusterpool-client-id": "my-client-id"})

        assert len(result.clusters) == 1
        assert result.clusters[0].name == "clusterpool-my-client-id-0-1"
        request = route.calls.last.request
        assert request.url.params["filter"] == "labels.clusterpool-client-id = my-client-id"
        assert "pageToken" not in request.url.params

    def test_clusters_list_empty_response(self, mock_api: respx.MockRouter, clusters: Clusters) -> None:
        """An empty body means an empty pool."""
        mock_api.get("/v1/projects/test-project/regions/europe-west1/clusters").mock(
            return_value=httpx.Response(200, json={})
        )

        assert clusters.list().clusters == []

    def test_clusters_list_all_follows_pages(
        self, mock_api: respx.MockRouter, clusters: Clusters, sample_cluster: dict[str, Any]
    ) -> None:
        """list_all should follow nextPageToken until exhausted."""
        second = {**sample_cluster, "clusterName": "second"}
        route = mock_api.get("/v1/projects/test-project/regions/europe-west1/clusters")
        route.side_effect = [
            httpx.Response(200, json={"clusters": [sample_cluster], "nextPageToken": "p2"}),
            httpx.Response(200, json={"clusters": [second]}),
        ]

        result = clusters.list_all({"a": "1"})

        assert [c.name for c in result] == ["clusterpool-my-client-id-0-1", "second"]
        assert route.calls[1].request.url.params["pageToken"] == "p2"

    def test_clusters_get(
        self, mock_api: respx.MockRouter, clusters: Clusters, sample_cluster: dict[str, Any]
    ) -> None:
        """Clusters should get a single cluster."""
        mock_api.get(
            "/v1/projects/test-project/regions/europe-west1/clusters/clusterpool-my-client-id-0-1"
        ).mock(return_value=httpx.Response(200, json=sample_cluster))

        result = clusters.get("clusterpool-my-client-id-0-1")

        assert result.labels["clusterpool-placement-token"] == "0-1"

    def test_clusters_get_missing(self, mock_api: respx.MockRouter, clusters: Clusters) -> None:
        mock_api.get("/v1/projects/test-project/regions/europe-west1/clusters/nope").mock(
            return_value=httpx.Response(404, json={"error": {"message": "Not found"}})
        )

        with pytest.raises(NotFoundError):
            clusters.get("nope")

    def test_clusters_create(
        self, mock_api: respx.MockRouter, clusters: Clusters, sample_cluster: dict[str, Any]
    ) -> None:
        """Clusters should create a new cluster."""
        route = mock_api.post("/v1/projects/test-project/regions/europe-west1/clusters").mock(
            return_value=httpx.Response(200, json=sample_cluster)
        )

        result = clusters.create(
            "clusterpool-my-client-id-0-1",
            labels={"clusterpool-placement-token": "0-1"},
            node_count=4,
            config={"machineType": "n1-standard-4"},
            heartbeat=datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc),
        )

        assert result.name == "clusterpool-my-client-id-0-1"
        body = json.loads(route.calls.last.request.content)
        assert body == {
            "clusterName": "clusterpool-my-client-id-0-1",
            "labels": {"clusterpool-placement-token": "0-1"},
            "nodeCount": 4,
            "config": {"machineType": "n1-standard-4"},
            "heartbeat": "2024-01-01T12:30:00+00:00",
        }

    def test_clusters_create_conflict(self, mock_api: respx.MockRouter, clusters: Clusters) -> None:
        """A taken name surfaces as ConflictError."""
        mock_api.post("/v1/projects/test-project/regions/europe-west1/clusters").mock(
            return_value=httpx.Response(409, json={"message": "Already exists"})
        )

        with pytest.raises(ConflictError, match="Already exists"):
            clusters.create("taken")

    def test_clusters_set_heartbeat(
        self, mock_api: respx.MockRouter, clusters: Clusters, sample_cluster: dict[str, Any]
    ) -> None:
        route = mock_api.patch(
            "/v1/projects/test-project/regions/europe-west1/clusters/clusterpool-my-client-id-0-1"
        ).mock(return_value=httpx.Response(200, json=sample_cluster))

        clusters.set_heartbeat(
            "clusterpool-my-client-id-0-1", datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc)
        )

        assert json.loads(route.calls.last.request.content) == {
            "heartbeat": "2024-01-01T13:00:00+00:00"
        }

    def test_clusters_delete(self, mock_api: respx.MockRouter, clusters: Clusters) -> None:
        """Clusters should delete a cluster."""
        route = mock_api.delete("/v1/projects/test-project/regions/europe-west1/clusters/c-1").mock(
            return_value=httpx.Response(204)
        )

        clusters.delete("c-1")

        assert route.called
