"""clusterpool client.

Main entry point: wires configuration, credentials and HTTP together and
exposes the pool allocator.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from clusterpool._config import PoolConfig
from clusterpool._http import HttpClient
from clusterpool.auth import AuthProvider
from clusterpool.credentials import CloudConfiguration
from clusterpool.exceptions import ConfigurationError
from clusterpool.models.pooling import AllocationArgs
from clusterpool.pooling.allocator import PoolAllocator
from clusterpool.pooling.placement import RandomPlacementGenerator
from clusterpool.pooling.reaper import collect
from clusterpool.resources.clusters import Clusters
from clusterpool.service import RemoteClusterService, utcnow


class PoolClient:
    """Synchronous client for pooled clusters.

    Example:
        ```python
        from datetime import timedelta

        from clusterpool import AllocationArgs, PoolClient, PoolingConfig

        args = AllocationArgs(
            client_id="nightly-etl",
            pooling=PoolingConfig(limit=2, max_age=timedelta(minutes=30)),
        )
        with PoolClient(project="my-project", region="europe-west1") as client:
            if client.acquire(args):
                run_job_on(args.cluster.name)
                client.release(args)
        ```

    Resolution order for project and credentials:
        1. Explicit arguments (`project`, `auth`)
        2. The cloud configuration (key file or application defaults)
        3. Config file / CLUSTERPOOL_* environment variables
    """

    def __init__(
        self,
        project: str | None = None,
        region: str | None = None,
        *,
        auth: AuthProvider | None = None,
        configuration: CloudConfiguration | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        verify_ssl: bool | None = None,
        clock: Callable[[], datetime] = utcnow,
        placement_generator: RandomPlacementGenerator | None = None,
    ) -> None:
        config = PoolConfig.load()
        self._config = config
        self._configuration = configuration or CloudConfiguration.create()

        self._project = project or self._configuration.project_id or config.project
        if not self._project:
            raise ConfigurationError(
                "No project configured. Pass project=, set CLUSTERPOOL_PROJECT, "
                "or point CLUSTERPOOL_APPLICATION_CREDENTIALS at a service account key."
            )
        self._region = region or config.region
        self._base_url = base_url or config.base_url
        self._auth = auth or self._configuration.get_credentials()

        self._http = HttpClient(
            base_url=self._base_url,
            auth=self._auth,
            timeout=timeout if timeout is not None else config.timeout,
            max_retries=max_retries if max_retries is not None else config.max_retries,
            verify_ssl=verify_ssl if verify_ssl is not None else config.verify_ssl,
        )
        self._clock = clock

        self.clusters = Clusters(self._http, self._project, self._region)
        self.cluster_service = RemoteClusterService(self.clusters, clock=clock)
        self.allocator = PoolAllocator(clock, placement_generator)

    def acquire(self, args: AllocationArgs) -> bool:
        """Bind a pooled cluster to ``args``. See ``PoolAllocator.acquire``."""
        return self.allocator.acquire(args, self.cluster_service)

    def release(self, args: AllocationArgs) -> bool:
        """Return the bound cluster to the pool. See ``PoolAllocator.release``."""
        return self.allocator.release(args, self.cluster_service)

    def reap(self, args: AllocationArgs) -> list[str]:
        """Delete the client's errored and heartbeat-expired clusters."""
        return collect(args, self.cluster_service, self._clock)

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def project(self) -> str:
        return self._project

    @property
    def region(self) -> str:
        return self._region

    @property
    def user_id(self) -> str | None:
        return self._configuration.user_id

    def close(self) -> None:
        """Close the client and release resources."""
        self._http.close()

    def __enter__(self) -> PoolClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PoolClient(project={self._project!r}, region={self._region!r})"
