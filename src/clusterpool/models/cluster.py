"""Cluster models for clusterpool."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from clusterpool.models.common import PoolModel
from clusterpool.models.placement import ClusterPlacement
from clusterpool.models.pooling import CLIENT_ID_LABEL, PLACEMENT_TOKEN_LABEL


class ClusterState(str, Enum):
    """Cluster lifecycle state reported by the cluster service."""

    CREATING = "CREATING"
    RUNNING = "RUNNING"
    ERROR = "ERROR"
    DELETING = "DELETING"
    DELETED = "DELETED"
    UNKNOWN = "UNKNOWN"


class ClusterStatus(PoolModel):
    """Current state and when it began."""

    state: ClusterState = Field(ClusterState.UNKNOWN, description="Current state")
    state_start_time: datetime = Field(
        ..., alias="stateStartTime", description="When the current state began"
    )
    detail: str | None = Field(None, description="Optional status detail")

    @field_validator("state", mode="before")
    @classmethod
    def _unknown_state(cls, value: Any) -> Any:
        if isinstance(value, str) and value.upper() not in ClusterState.__members__:
            return ClusterState.UNKNOWN
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("state_start_time")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Cluster(PoolModel):
    """A leased compute cluster."""

    name: str = Field(..., alias="clusterName", description="Cluster name")
    status: ClusterStatus = Field(..., description="Cluster status")
    labels: dict[str, str] = Field(default_factory=dict, description="Cluster labels")
    heartbeat: datetime | None = Field(None, description="In-use expiry timestamp")

    @property
    def state(self) -> ClusterState:
        return self.status.state

    @property
    def client_id(self) -> str | None:
        return self.labels.get(CLIENT_ID_LABEL)

    @property
    def placement(self) -> ClusterPlacement | None:
        return ClusterPlacement.parse(self.labels.get(PLACEMENT_TOKEN_LABEL))

    def age(self, now: datetime) -> timedelta:
        """Time spent in the current state as of ``now``."""
        return now - self.status.state_start_time

    def heartbeat_expired(self, now: datetime) -> bool:
        """True once the heartbeat has passed. Clusters without one never expire."""
        if self.heartbeat is None:
            return False
        heartbeat = self.heartbeat
        if heartbeat.tzinfo is None:
            heartbeat = heartbeat.replace(tzinfo=timezone.utc)
        return heartbeat < now


class ClusterList(PoolModel):
    """Clusters returned by one listing call."""

    clusters: list[Cluster] = Field(default_factory=list, description="Cluster items")
    next_page_token: str | None = Field(
        None, alias="nextPageToken", description="Token for the next page"
    )
